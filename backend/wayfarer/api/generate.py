import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from wayfarer.db.models import User
from wayfarer.api.schemas import GenerateRequest, TikTokExtractRequest, TikTokExtractResponse
from wayfarer.api.rate_limit import limiter, GENERATE_LIMIT, EXTRACT_LIMIT
from wayfarer.core.security import get_current_user, performance_timer
from wayfarer.core.settings import get_settings
from wayfarer.core.generation import ItineraryGenerator, build_prompt
from wayfarer.core.tiktok import TikTokExtractor, tiktok_urls

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _require_openai() -> None:
    if not get_settings().OPENAI_API_KEY:
        raise HTTPException(status_code=503, detail="Itinerary generation is not configured")


@router.post("/generate",
    responses={
        200: {"description": "text/event-stream of content chunks ending with a done event"},
        400: {"description": "Too many days or request too long"},
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Language model not configured"}
    },
    summary="Generate an itinerary",
    description="Streams itinerary text as Server-Sent Events in the Day N / time-line format the parser reads"
)
@limiter.limit(GENERATE_LIMIT)
async def generate_itinerary(
    request: Request,
    payload: GenerateRequest,
    current_user: User = Depends(get_current_user),
):
    settings = get_settings()
    _require_openai()
    if payload.days > settings.MAX_ITINERARY_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Trips are limited to {settings.MAX_ITINERARY_DAYS} days"
        )

    prompt = build_prompt(
        [d.name for d in payload.destinations],
        payload.preferences,
        payload.days,
        payload.tiktok_tips,
    )
    if len(prompt) > settings.MAX_REQUEST_LENGTH:
        raise HTTPException(status_code=400, detail="Request too long")

    logger.info(f"Generating {payload.days}-day itinerary for user {current_user.id}")
    generator = ItineraryGenerator(settings)
    return StreamingResponse(
        generator.stream_events(prompt),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/extract-tiktok",
    response_model=TikTokExtractResponse,
    responses={
        400: {"description": "No TikTok URLs given"},
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Language model not configured"}
    },
    summary="Extract destinations from TikTok videos",
    description="Reads each video's caption and returns a destination and a tip per URL"
)
@limiter.limit(EXTRACT_LIMIT)
async def extract_tiktok(
    request: Request,
    payload: TikTokExtractRequest,
    current_user: User = Depends(get_current_user),
):
    settings = get_settings()
    urls = tiktok_urls(payload.urls)
    if not urls:
        raise HTTPException(status_code=400, detail="Please provide at least one TikTok URL")
    if len(urls) > settings.MAX_TIKTOK_URLS:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.MAX_TIKTOK_URLS} TikTok URLs per request"
        )
    _require_openai()

    async with performance_timer("tiktok_extraction"):
        extracted = await TikTokExtractor(settings).extract(urls)
    return {"extracted": extracted}
