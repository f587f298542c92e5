import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, DateTime, Index, CheckConstraint, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import declared_attr, Mapped
from pydantic import field_validator, computed_field
from uuid import UUID as PyUUID

# Enums
class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"

# Base model with common fields
class BaseModel(SQLModel):
    """Base model for all tables"""
    pass

class AuditMixin:
    __allow_unmapped__ = True

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return Column(
            DateTime(timezone=True),
            nullable=False,
            default=lambda: datetime.now(timezone.utc),
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return Column(
            DateTime(timezone=True),
            nullable=False,
            default=lambda: datetime.now(timezone.utc),
            onupdate=lambda: datetime.now(timezone.utc),
        )

# Models
class User(AuditMixin, BaseModel, table=True):
    __tablename__ = "users"

    __table_args__ = (
        Index('idx_users_status', 'status'),
        CheckConstraint('length(username) >= 3', name='check_username_length'),
        CheckConstraint('length(email) > 0', name='check_email_not_empty'),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    username: str = Field(
        index=True,
        unique=True,
        nullable=False,
        max_length=50,
        description="Unique username for login"
    )
    email: str = Field(
        index=True,
        unique=True,
        nullable=False,
        max_length=255,
        description="User's email address"
    )
    password_hash: str = Field(
        nullable=False,
        max_length=255,
        description="Hashed password"
    )
    status: UserStatus = Field(
        default=UserStatus.ACTIVE,
        sa_column=Column(
            SAEnum(UserStatus, name="userstatus"),
            nullable=False,
            default=UserStatus.ACTIVE,
        ),
        description="User account status"
    )

    # Relationships
    itineraries: List["Itinerary"] = Relationship(back_populates="user")

    # Validators
    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v or len(v.strip()) < 3:
            raise ValueError('Username must be at least 3 characters')
        return v.strip().lower()

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not v or '@' not in v:
            raise ValueError('Invalid email format')
        return v.strip().lower()

    @computed_field
    @property
    def is_active(self) -> bool:
        """Check if user account is active"""
        return self.status == UserStatus.ACTIVE


class Itinerary(AuditMixin, BaseModel, table=True):
    __tablename__ = "itineraries"

    __table_args__ = (
        Index('idx_itineraries_user_id', 'user_id'),
        Index('idx_itineraries_created_at', 'created_at'),
        CheckConstraint('length(title) > 0', name='check_title_not_empty'),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(
        max_length=200,
        description="Itinerary title"
    )
    user_id: Optional[PyUUID] = Field(
        default=None,
        foreign_key="users.id",
        nullable=True,
        description="Owner of this itinerary"
    )
    latitude: Optional[float] = Field(
        default=None,
        description="Map centre latitude, geocoded from the first destination"
    )
    longitude: Optional[float] = Field(
        default=None,
        description="Map centre longitude, geocoded from the first destination"
    )

    # Relationships
    user: Optional[User] = Relationship(back_populates="itineraries")
    items: List["ItineraryItem"] = Relationship(back_populates="itinerary")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v or len(v.strip()) == 0:
            raise ValueError('Itinerary title cannot be empty')
        return v.strip()


class Destination(AuditMixin, BaseModel, table=True):
    __tablename__ = "destinations"

    __table_args__ = (
        Index('idx_destinations_name', 'name'),
        Index('idx_destinations_coordinates', 'latitude', 'longitude'),
        CheckConstraint('latitude BETWEEN -90 AND 90', name='check_valid_latitude'),
        CheckConstraint('longitude BETWEEN -180 AND 180', name='check_valid_longitude'),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(
        max_length=200,
        description="Destination name"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Destination description"
    )
    latitude: float = Field(description="Latitude coordinate")
    longitude: float = Field(description="Longitude coordinate")
    image_url: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Cover image URL"
    )

    # Relationships
    items: List["ItineraryItem"] = Relationship(back_populates="destination")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or len(v.strip()) == 0:
            raise ValueError('Destination name cannot be empty')
        return v.strip()


class ItineraryItem(AuditMixin, BaseModel, table=True):
    """One row per itinerary day; notes holds the day JSON (see core.itinerary_notes)"""
    __tablename__ = "itinerary_items"

    __table_args__ = (
        Index('idx_itinerary_items_itinerary', 'itinerary_id'),
        Index('idx_itinerary_items_destination', 'destination_id'),
        Index('idx_itinerary_items_order', 'itinerary_id', 'day', 'position'),
        CheckConstraint('day >= 1', name='check_valid_day'),
        CheckConstraint('position >= 0', name='check_valid_position'),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    itinerary_id: PyUUID = Field(foreign_key="itineraries.id", nullable=False)
    destination_id: Optional[PyUUID] = Field(
        default=None,
        foreign_key="destinations.id",
        nullable=True
    )
    day: int = Field(default=1, ge=1, description="Day number, starting at 1")
    position: int = Field(default=0, ge=0, description="Order within the itinerary")
    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Day JSON or free text"
    )

    # Relationships
    itinerary: Itinerary = Relationship(back_populates="items")
    destination: Optional[Destination] = Relationship(back_populates="items")
