from uuid import UUID
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import User, ItineraryItem
from wayfarer.api.schemas import ItineraryItemCreate, ItineraryItemUpdate, ItineraryItemRead
from wayfarer.api.rate_limit import limiter, READ_LIMIT, UPDATE_LIMIT, DELETE_LIMIT
from wayfarer.db.session import get_db_session
from wayfarer.db import crud
from wayfarer.core.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/itinerary-items", tags=["itinerary-items"])


async def _check_itinerary_owner(session: AsyncSession, itinerary_id: UUID, user: User) -> None:
    itinerary = await crud.get_itinerary(session, itinerary_id)
    if not itinerary:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    if itinerary.user_id != user.id:
        raise HTTPException(status_code=403, detail="Not authorized to access this itinerary")


async def _owned_item(session: AsyncSession, item_id: UUID, user: User) -> ItineraryItem:
    item = await crud.get_itinerary_item(session, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Itinerary item not found")
    await _check_itinerary_owner(session, item.itinerary_id, user)
    return item


@router.get("/",
    response_model=List[ItineraryItemRead],
    summary="List itinerary items",
    description="Items ordered by day and position, filtered by itinerary and/or destination"
)
@limiter.limit(READ_LIMIT)
async def list_items(
    request: Request,
    itinerary_id: Optional[UUID] = Query(None),
    destination_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    if itinerary_id is None and destination_id is None:
        raise HTTPException(status_code=400, detail="itinerary_id or destination_id is required")
    if itinerary_id is not None:
        await _check_itinerary_owner(session, itinerary_id, current_user)

    return await crud.get_itinerary_items(
        session,
        itinerary_id=itinerary_id,
        destination_id=destination_id,
        owner_id=current_user.id,
    )


@router.post("/",
    response_model=ItineraryItemRead,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Itinerary not found"}}
)
@limiter.limit(UPDATE_LIMIT)
async def add_item(
    request: Request,
    payload: ItineraryItemCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    await _check_itinerary_owner(session, payload.itinerary_id, current_user)
    try:
        return await crud.create_itinerary_item(session, **payload.model_dump())
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to add itinerary item")


@router.put("/{item_id}",
    response_model=ItineraryItemRead,
    responses={404: {"description": "Itinerary item not found"}},
    summary="Update an itinerary item",
    description="Replace the notes, day, position or destination of one item"
)
@limiter.limit(UPDATE_LIMIT)
async def update_item(
    request: Request,
    item_id: UUID,
    payload: ItineraryItemUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    item = await _owned_item(session, item_id, current_user)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return item
    try:
        return await crud.update_itinerary_item(session, item, changes)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to update itinerary item")


@router.delete("/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Itinerary item not found"}}
)
@limiter.limit(DELETE_LIMIT)
async def delete_item(
    request: Request,
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    item = await _owned_item(session, item_id, current_user)
    try:
        await crud.delete_itinerary_item(session, item)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to delete itinerary item")
