from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import structlog
from prometheus_fastapi_instrumentator import Instrumentator

from wayfarer.core.log_config import configure_logging
from wayfarer.core.settings import get_settings
from wayfarer.db.session import init_db, db_manager, database_health_check
from wayfarer.api import auth, itinerary, itinerary_items, destinations, generate
from wayfarer.api.rate_limit import limiter
from wayfarer.middleware.logging import RequestLoggingMiddleware

VERSION = "1.0.0"

settings = get_settings()
configure_logging(settings)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("application_starting", version=VERSION)
    try:
        await init_db()
    except Exception:
        logger.exception("database_initialization_failed")
        raise

    yield

    logger.info("application_stopping")
    try:
        await db_manager.close()
    except Exception as e:
        logger.error("database_cleanup_failed", error=str(e))

app = FastAPI(
    title="Wayfarer API",
    description="Travel itinerary generation, parsing and day-by-day editing",
    version=VERSION,
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


@app.get("/")
def health_check():
    return {"status": "API active", "version": VERSION}


@app.get("/health")
async def health_check_detailed():
    """Liveness plus database connectivity"""
    if db_manager.engine is None:
        db_status = "unknown"
    else:
        db_health = await database_health_check()
        db_status = db_health["status"]

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "version": VERSION,
        "components": {
            "database": db_status,
            "geocoding": "configured" if settings.MAPBOX_ACCESS_TOKEN else "fallback",
            "generation": "configured" if settings.OPENAI_API_KEY else "disabled",
            "api": "healthy"
        },
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

prefix = "/api/v1"

app.include_router(auth.router, prefix=prefix)
app.include_router(itinerary.router, prefix=prefix)
app.include_router(itinerary_items.router, prefix=prefix)
app.include_router(destinations.router, prefix=prefix)
app.include_router(generate.router, prefix=prefix)
