from uuid import UUID
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.db.models import User, Itinerary, ItineraryItem
from wayfarer.api.schemas import (
    ItineraryCreate, ItineraryRead, ItineraryCreateResponse,
    ItineraryDestinationRead, DayPlanRead,
    ReorderRequest, ReorderResponse,
    ParseRequest, ParseResponse,
)
from wayfarer.api.rate_limit import limiter, READ_LIMIT, LIST_LIMIT, UPDATE_LIMIT, DELETE_LIMIT
from wayfarer.db.session import get_db_session
from wayfarer.db import crud
from wayfarer.core.security import get_current_user, performance_timer
from wayfarer.core.settings import Settings, get_settings
from wayfarer.core.geocoding import geocode_destination, fallback_coordinates
from wayfarer.core.itinerary_text import DayPlan, extract_activities, parse_itinerary
from wayfarer.core.itinerary_notes import encode_day_notes, decode_day_notes
from wayfarer.core.reorder import DragState, DropTarget, move_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/itineraries", tags=["itineraries"])


def default_title(destinations: List[str]) -> str:
    return f"Trip to {', '.join(destinations) if destinations else 'Unknown'}"


class ItineraryService:
    """Itinerary persistence and day-level operations for one request"""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    async def get_owned(self, itinerary_id: UUID, user: User) -> Itinerary:
        itinerary = await crud.get_itinerary(self.session, itinerary_id)
        if not itinerary:
            raise HTTPException(status_code=404, detail="Itinerary not found")
        if itinerary.user_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to access this itinerary")
        return itinerary

    async def load_days(self, itinerary_id: UUID) -> List[DayPlan]:
        items = await crud.get_itinerary_items(self.session, itinerary_id=itinerary_id)
        return [decode_day_notes(item.notes, item.day) for item in items]

    def build_days(self, payload: ItineraryCreate) -> List[DayPlan]:
        """Days from the request, each with the activities parsed out of its content"""
        days = []
        for index, day in enumerate(payload.itinerary):
            content = day.content or ""
            days.append(DayPlan(
                title=day.title or f"Day {index + 1}",
                content=content,
                activities=extract_activities(content),
            ))
        return days

    async def create(self, payload: ItineraryCreate, user: User) -> ItineraryCreateResponse:
        if not payload.itinerary:
            raise HTTPException(status_code=400, detail="Itinerary items are required")
        if len(payload.itinerary) > self.settings.MAX_ITINERARY_DAYS:
            raise HTTPException(
                status_code=400,
                detail=f"Itinerary cannot exceed {self.settings.MAX_ITINERARY_DAYS} days"
            )

        if payload.destinations:
            coordinates = await geocode_destination(payload.destinations[0], self.settings)
        else:
            coordinates = fallback_coordinates(self.settings)

        days = self.build_days(payload)
        itinerary = Itinerary(
            title=(payload.title or "").strip() or default_title(payload.destinations),
            user_id=user.id,
            latitude=coordinates["latitude"],
            longitude=coordinates["longitude"],
        )

        # Itinerary and all of its days commit together
        try:
            self.session.add(itinerary)
            await self.session.flush()
            for index, day in enumerate(days):
                self.session.add(ItineraryItem(
                    itinerary_id=itinerary.id,
                    day=index + 1,
                    position=index,
                    notes=encode_day_notes(
                        day, payload.destinations, payload.preferences, coordinates
                    ),
                ))
            await self.session.commit()
            await self.session.refresh(itinerary)
        except Exception:
            await self.session.rollback()
            raise

        extracted = sum(len(day.activities) for day in days)
        logger.info(f"Saved itinerary {itinerary.id} with {len(days)} days and {extracted} activities")
        return ItineraryCreateResponse(
            success=True,
            itinerary=ItineraryRead.model_validate(itinerary),
            extracted_activities=extracted,
            message=(
                f"Itinerary saved with {extracted} individual activities "
                f"organized under {len(days)} days!"
            ),
        )

    async def preview_reorder(self, itinerary_id: UUID, payload: ReorderRequest) -> ReorderResponse:
        days = await self.load_days(itinerary_id)
        validate_reorder_indices(days, payload)

        moved = move_activity(
            days,
            DragState(payload.source_day_index, payload.source_activity_index),
            DropTarget(payload.target_day_index, payload.target_activity_index, payload.position),
        )
        return ReorderResponse(
            changed=moved is not days,
            days=[DayPlanRead.from_day(day) for day in moved],
        )


def validate_reorder_indices(days: List[DayPlan], payload: ReorderRequest) -> None:
    """400 unless the drag source is an existing activity and the target slot exists"""
    if payload.source_day_index >= len(days) or payload.target_day_index >= len(days):
        raise HTTPException(status_code=400, detail="Day index out of range")
    source = days[payload.source_day_index].activities
    if payload.source_activity_index >= len(source):
        raise HTTPException(status_code=400, detail="Source activity index out of range")
    target = days[payload.target_day_index].activities
    if payload.target_activity_index > max(len(target) - 1, 0):
        raise HTTPException(status_code=400, detail="Target activity index out of range")


# ===== PARSING =====

@router.post("/parse",
    response_model=ParseResponse,
    responses={
        400: {"description": "Text too long"},
        429: {"description": "Rate limit exceeded"}
    },
    summary="Parse itinerary text",
    description="Split text on Day headings and extract timed activities without saving anything"
)
@limiter.limit(READ_LIMIT)
async def parse_itinerary_text(
    request: Request,
    payload: ParseRequest,
    settings: Settings = Depends(get_settings),
):
    if len(payload.text) > settings.MAX_PARSE_TEXT_LENGTH:
        raise HTTPException(status_code=400, detail="Text too long")
    days = parse_itinerary(payload.text)
    return ParseResponse(
        days=[DayPlanRead.from_day(day) for day in days],
        activity_count=sum(len(day.activities) for day in days),
    )


# ===== ITINERARIES =====

@router.get("/",
    response_model=List[ItineraryRead],
    summary="List itineraries",
    description="The current user's itineraries, newest first"
)
@limiter.limit(LIST_LIMIT)
async def list_itineraries(
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    return await crud.get_user_itineraries(
        session, user_id=current_user.id, limit=get_settings().ITINERARY_LIST_LIMIT
    )


@router.post("/",
    response_model=ItineraryCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "No days given or too many days"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Failed to save itinerary"}
    },
    summary="Save an itinerary",
    description="Stores one item per day and extracts the timed activities from each day's text"
)
@limiter.limit(UPDATE_LIMIT)
async def create_itinerary(
    request: Request,
    payload: ItineraryCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    async with performance_timer("itinerary_save"):
        try:
            return await ItineraryService(session).create(payload, current_user)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to save itinerary for user {current_user.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save itinerary")


@router.get("/{itinerary_id}",
    response_model=ItineraryRead,
    responses={404: {"description": "Itinerary not found"}}
)
@limiter.limit(READ_LIMIT)
async def read_itinerary(
    request: Request,
    itinerary_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    return await ItineraryService(session).get_owned(itinerary_id, current_user)


@router.get("/{itinerary_id}/days",
    response_model=List[DayPlanRead],
    responses={404: {"description": "Itinerary not found"}},
    summary="Itinerary days",
    description="Stored days with their activities, in day order"
)
@limiter.limit(READ_LIMIT)
async def read_itinerary_days(
    request: Request,
    itinerary_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    service = ItineraryService(session)
    await service.get_owned(itinerary_id, current_user)
    days = await service.load_days(itinerary_id)
    return [DayPlanRead.from_day(day) for day in days]


@router.get("/{itinerary_id}/destinations",
    response_model=List[ItineraryDestinationRead],
    responses={404: {"description": "Itinerary not found"}},
    summary="Destinations for an itinerary",
    description="Every destination, flagged with whether this itinerary uses it"
)
@limiter.limit(READ_LIMIT)
async def read_itinerary_destinations(
    request: Request,
    itinerary_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    await ItineraryService(session).get_owned(itinerary_id, current_user)
    return await crud.get_destinations_for_itinerary(session, itinerary_id)


@router.post("/{itinerary_id}/reorder",
    response_model=ReorderResponse,
    responses={
        400: {"description": "Index out of range"},
        404: {"description": "Itinerary not found"}
    },
    summary="Preview an activity move",
    description="Moves one activity to a drop target, recomputes times and returns the days without saving"
)
@limiter.limit(UPDATE_LIMIT)
async def reorder_preview(
    request: Request,
    itinerary_id: UUID,
    payload: ReorderRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    service = ItineraryService(session)
    await service.get_owned(itinerary_id, current_user)
    return await service.preview_reorder(itinerary_id, payload)


@router.delete("/{itinerary_id}",
    responses={404: {"description": "Itinerary not found"}}
)
@limiter.limit(DELETE_LIMIT)
async def remove_itinerary(
    request: Request,
    itinerary_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session)
):
    await ItineraryService(session).get_owned(itinerary_id, current_user)
    try:
        deleted = await crud.delete_itinerary(session, itinerary_id)
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to delete itinerary")
    if deleted is None:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    return {"success": True, "message": "Itinerary deleted successfully"}
