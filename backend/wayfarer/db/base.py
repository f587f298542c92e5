"""
Database base configuration
Imports all models to ensure they're registered with SQLModel metadata
"""

from sqlmodel import SQLModel

# Import all models so they're registered with SQLModel.metadata
from wayfarer.db.models import (
    User,
    Itinerary,
    ItineraryItem,
    Destination,
)

# Metadata used by DatabaseManager.init_db
Base = SQLModel.metadata

__all__ = ["Base", "SQLModel", "User", "Itinerary", "ItineraryItem", "Destination"]
