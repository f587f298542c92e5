from uuid import UUID
from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request
from geopy.exc import GeopyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import User
from wayfarer.api.schemas import DestinationCreate, DestinationRead, PlaceSearchResult
from wayfarer.api.rate_limit import limiter, READ_LIMIT, UPDATE_LIMIT, DELETE_LIMIT
from wayfarer.db.session import get_db_session
from wayfarer.db import crud
from wayfarer.core.security import get_current_user
from wayfarer.core.geocoding import search_places
from wayfarer.core.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/destinations", tags=["destinations"])


@router.get("/search",
    response_model=List[PlaceSearchResult],
    responses={
        502: {"description": "Geocoding service error"},
        503: {"description": "Geocoding not configured"}
    },
    summary="Search places",
    description="Forward geocoding for the destination search box, up to five matches"
)
@limiter.limit(READ_LIMIT)
async def search_destinations(
    request: Request,
    q: str = Query(..., min_length=1, max_length=200),
    current_user: User = Depends(get_current_user),
):
    if not get_settings().MAPBOX_ACCESS_TOKEN:
        raise HTTPException(status_code=503, detail="Place search is not configured")
    try:
        return await search_places(q)
    except GeopyError as e:
        logger.error(f"Place search failed for '{q}': {e}")
        raise HTTPException(status_code=502, detail="Place search failed")


@router.get("/", response_model=List[DestinationRead])
@limiter.limit(READ_LIMIT)
async def list_destinations(
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    return await crud.get_destinations(session)


@router.post("/",
    response_model=DestinationRead,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit(UPDATE_LIMIT)
async def add_destination(
    request: Request,
    payload: DestinationCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    try:
        return await crud.create_destination(session, **payload.model_dump())
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to create destination")


@router.delete("/{destination_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Destination not found"}}
)
@limiter.limit(DELETE_LIMIT)
async def remove_destination(
    request: Request,
    destination_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    try:
        deleted = await crud.delete_destination(session, destination_id)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to delete destination")
    if not deleted:
        raise HTTPException(status_code=404, detail="Destination not found")
