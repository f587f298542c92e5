"""
CRUD operations for users, itineraries, itinerary items and destinations
"""

import logging
from typing import List, Optional, Dict, Any
from uuid import UUID

from sqlalchemy import select, delete, update, exists, desc, asc
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import User, Itinerary, ItineraryItem, Destination

logger = logging.getLogger(__name__)

# ===== USER CRUD OPERATIONS =====

async def create_user(
    session: AsyncSession,
    username: str,
    email: str,
    password_hash: str,
) -> User:
    """Create a new user"""
    try:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        logger.info(f"Created user: {username}")
        return user
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating user: {e}")
        raise

async def get_user_by_username(session: AsyncSession, username: str) -> Optional[User]:
    try:
        result = await session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Error getting user by username {username}: {e}")
        return None

async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    try:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Error getting user by email {email}: {e}")
        return None

# ===== ITINERARY CRUD OPERATIONS =====

async def get_itinerary(session: AsyncSession, itinerary_id: UUID) -> Optional[Itinerary]:
    try:
        return await session.get(Itinerary, itinerary_id)
    except Exception as e:
        logger.error(f"Error getting itinerary {itinerary_id}: {e}")
        return None

async def get_user_itineraries(
    session: AsyncSession,
    user_id: UUID,
    limit: int = 50
) -> List[Itinerary]:
    """Newest itineraries first"""
    try:
        result = await session.execute(
            select(Itinerary)
            .where(Itinerary.user_id == user_id)
            .order_by(desc(Itinerary.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())
    except Exception as e:
        logger.error(f"Error getting itineraries for user {user_id}: {e}")
        return []

async def delete_itinerary(session: AsyncSession, itinerary_id: UUID) -> Optional[Itinerary]:
    """Delete an itinerary and its items; returns the deleted itinerary or None when missing"""
    try:
        itinerary = await session.get(Itinerary, itinerary_id)
        if itinerary is None:
            return None

        # Items first (foreign key)
        await session.execute(
            delete(ItineraryItem).where(ItineraryItem.itinerary_id == itinerary_id)
        )
        await session.delete(itinerary)
        await session.commit()
        logger.info(f"Deleted itinerary {itinerary_id}")
        return itinerary
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting itinerary {itinerary_id}: {e}")
        raise

# ===== ITINERARY ITEM CRUD OPERATIONS =====

async def get_itinerary_items(
    session: AsyncSession,
    itinerary_id: Optional[UUID] = None,
    destination_id: Optional[UUID] = None,
    owner_id: Optional[UUID] = None,
) -> List[ItineraryItem]:
    """Items ordered by day then position, optionally filtered"""
    try:
        query = select(ItineraryItem)
        if owner_id is not None:
            query = query.join(Itinerary).where(Itinerary.user_id == owner_id)
        if itinerary_id is not None:
            query = query.where(ItineraryItem.itinerary_id == itinerary_id)
        if destination_id is not None:
            query = query.where(ItineraryItem.destination_id == destination_id)
        query = query.order_by(asc(ItineraryItem.day), asc(ItineraryItem.position))

        result = await session.execute(query)
        return list(result.scalars().all())
    except Exception as e:
        logger.error(f"Error getting itinerary items: {e}")
        return []

async def get_itinerary_item(session: AsyncSession, item_id: UUID) -> Optional[ItineraryItem]:
    try:
        return await session.get(ItineraryItem, item_id)
    except Exception as e:
        logger.error(f"Error getting itinerary item {item_id}: {e}")
        return None

async def create_itinerary_item(
    session: AsyncSession,
    itinerary_id: UUID,
    day: int,
    position: int,
    notes: Optional[str] = None,
    destination_id: Optional[UUID] = None,
) -> ItineraryItem:
    try:
        item = ItineraryItem(
            itinerary_id=itinerary_id,
            destination_id=destination_id,
            day=day,
            position=position,
            notes=notes,
        )
        session.add(item)
        await session.commit()
        await session.refresh(item)
        return item
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating itinerary item: {e}")
        raise

async def update_itinerary_item(
    session: AsyncSession,
    item: ItineraryItem,
    update_data: Dict[str, Any],
) -> ItineraryItem:
    """Apply the given fields to an item and commit"""
    try:
        for field, value in update_data.items():
            if hasattr(item, field):
                setattr(item, field, value)
        session.add(item)
        await session.commit()
        await session.refresh(item)
        logger.info(f"Updated itinerary item {item.id}")
        return item
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating itinerary item {item.id}: {e}")
        raise

async def delete_itinerary_item(session: AsyncSession, item: ItineraryItem) -> None:
    try:
        await session.delete(item)
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting itinerary item {item.id}: {e}")
        raise

# ===== DESTINATION CRUD OPERATIONS =====

async def get_destinations(session: AsyncSession, limit: int = 200) -> List[Destination]:
    try:
        result = await session.execute(
            select(Destination).order_by(asc(Destination.name)).limit(limit)
        )
        return list(result.scalars().all())
    except Exception as e:
        logger.error(f"Error getting destinations: {e}")
        return []

async def get_destinations_for_itinerary(
    session: AsyncSession,
    itinerary_id: UUID,
) -> List[Dict[str, Any]]:
    """Every destination, flagged with whether the itinerary has an item pointing at it"""
    try:
        in_itinerary = exists().where(
            ItineraryItem.destination_id == Destination.id,
            ItineraryItem.itinerary_id == itinerary_id,
        )
        result = await session.execute(
            select(Destination, in_itinerary.label("in_itinerary"))
            .order_by(asc(Destination.name))
        )
        return [
            {
                **destination.model_dump(),
                "created_at": destination.created_at,
                "in_itinerary": bool(flag),
            }
            for destination, flag in result.all()
        ]
    except Exception as e:
        logger.error(f"Error getting destinations for itinerary {itinerary_id}: {e}")
        return []

async def create_destination(
    session: AsyncSession,
    name: str,
    latitude: float,
    longitude: float,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
) -> Destination:
    try:
        destination = Destination(
            name=name,
            latitude=latitude,
            longitude=longitude,
            description=description,
            image_url=image_url,
        )
        session.add(destination)
        await session.commit()
        await session.refresh(destination)
        logger.info(f"Created destination: {name}")
        return destination
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating destination: {e}")
        raise

async def delete_destination(session: AsyncSession, destination_id: UUID) -> bool:
    try:
        destination = await session.get(Destination, destination_id)
        if destination is None:
            return False
        # Items keep their day notes but lose the link
        await session.execute(
            update(ItineraryItem)
            .where(ItineraryItem.destination_id == destination_id)
            .values(destination_id=None)
        )
        await session.delete(destination)
        await session.commit()
        return True
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting destination {destination_id}: {e}")
        raise
