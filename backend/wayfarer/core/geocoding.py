"""
Mapbox forward geocoding through geopy's async adapter
"""

import logging
from typing import Dict, List, Optional, Tuple

from geopy.adapters import AioHTTPAdapter
from geopy.exc import GeopyError
from geopy.geocoders import MapBox

from wayfarer.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 5


def _geocoder(settings: Settings) -> MapBox:
    return MapBox(
        api_key=settings.MAPBOX_ACCESS_TOKEN,
        timeout=settings.EXTERNAL_API_TIMEOUT_SECONDS,
        adapter_factory=AioHTTPAdapter,
    )


def fallback_coordinates(settings: Optional[Settings] = None) -> Dict[str, float]:
    settings = settings or get_settings()
    return {"latitude": settings.DEFAULT_LATITUDE, "longitude": settings.DEFAULT_LONGITUDE}


async def geocode_destination(name: str, settings: Optional[Settings] = None) -> Dict[str, float]:
    """
    Coordinates of the best match for a place name.

    Never raises: a missing token, no match or any lookup failure gives the
    fallback coordinates.
    """
    settings = settings or get_settings()
    if not name or not settings.MAPBOX_ACCESS_TOKEN:
        logger.warning("Geocoding skipped, using fallback coordinates")
        return fallback_coordinates(settings)

    try:
        async with _geocoder(settings) as geocoder:
            location = await geocoder.geocode(name)
    except (GeopyError, OSError) as e:
        logger.error(f"Error geocoding '{name}': {e}")
        return fallback_coordinates(settings)

    if location is None:
        logger.warning(f"No features found for '{name}'")
        return fallback_coordinates(settings)

    logger.info(f"Geocoded '{name}' to ({location.latitude}, {location.longitude})")
    return {"latitude": location.latitude, "longitude": location.longitude}


def _search_result(raw: Dict) -> Optional[Dict]:
    center: Tuple[float, float] = raw.get("center") or ()
    if len(center) != 2:
        return None
    return {
        "id": str(raw.get("id", "")),
        "name": raw.get("place_name", ""),
        "short_name": raw.get("text", ""),
        "coordinates": [float(center[0]), float(center[1])],
    }


async def search_places(query: str, settings: Optional[Settings] = None) -> List[Dict]:
    """Up to five candidate places for a search box; raises GeopyError on lookup failure"""
    settings = settings or get_settings()
    if not query.strip():
        return []

    async with _geocoder(settings) as geocoder:
        locations = await geocoder.geocode(query, exactly_one=False)

    results = []
    for location in (locations or [])[:SEARCH_RESULT_LIMIT]:
        result = _search_result(location.raw)
        if result:
            results.append(result)
    return results
