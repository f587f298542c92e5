"""
Stored shape of an itinerary day.

Each day is one itinerary item whose notes column holds a JSON object:
{title, content, destinations, preferences, coordinates, activities?}
with activities stored as {title, content, type, time}.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from wayfarer.core.itinerary_text import Activity, ActivityCategory, DayPlan, extract_activities

logger = logging.getLogger(__name__)


def activity_to_stored(activity: Activity) -> Dict[str, str]:
    return {
        "title": activity.location,
        "content": activity.description,
        "type": activity.category.value,
        "time": activity.time,
    }


def activity_from_stored(data: Dict[str, Any]) -> Activity:
    return Activity(
        time=str(data.get("time") or ""),
        location=str(data.get("title") or ""),
        description=str(data.get("content") or ""),
        category=ActivityCategory.coerce(data.get("type")),
    )


def encode_day_notes(
    day: DayPlan,
    destinations: Optional[List[str]] = None,
    preferences: Optional[List[str]] = None,
    coordinates: Optional[Dict[str, float]] = None,
) -> str:
    """Serialize a day to the notes JSON; activities are only written when present"""
    notes: Dict[str, Any] = {
        "title": day.title,
        "content": day.content,
        "destinations": destinations or [],
        "preferences": preferences or [],
    }
    if coordinates is not None:
        notes["coordinates"] = coordinates
    if day.activities:
        notes["activities"] = [activity_to_stored(a) for a in day.activities]
    return json.dumps(notes)


def load_notes(notes: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse notes JSON, returning None for empty or non-object notes"""
    if not notes:
        return None
    try:
        data = json.loads(notes)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def decode_day_notes(notes: Optional[str], day_number: int) -> DayPlan:
    """
    Rebuild a day from stored notes.

    Notes that are not a JSON object are treated as free text: the day gets a
    default title, the raw notes as content and no activities. JSON notes
    without an activities list are parsed from their content.
    """
    data = load_notes(notes)
    if data is None:
        if notes:
            logger.warning(f"Day {day_number} notes are not JSON, using raw content")
        return DayPlan(title=f"Day {day_number}", content=notes or "", activities=[])

    content = data.get("content")
    if not isinstance(content, str):
        content = ""
    title = data.get("title")
    if isinstance(data.get("activities"), list):
        activities = [
            activity_from_stored(a) for a in data["activities"] if isinstance(a, dict)
        ]
    else:
        activities = extract_activities(content)
    return DayPlan(
        title=str(title) if title not in (None, "") else f"Day {day_number}",
        content=content,
        activities=activities,
    )
