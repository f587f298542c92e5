"""
Itinerary text parsing: turns generated itinerary prose into days and activities
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ActivityCategory(str, Enum):
    RESTAURANT = "restaurant"
    MUSEUM = "museum"
    PARK = "park"
    SHOPPING = "shopping"
    NIGHTLIFE = "nightlife"
    HOTEL = "hotel"
    ACTIVITY = "activity"

    @classmethod
    def coerce(cls, value: Any) -> "ActivityCategory":
        """Map any stored or client-supplied value onto a category, defaulting to ACTIVITY"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ACTIVITY


# Checked in order, first match wins. "market" sits in both the restaurant and
# shopping groups; restaurant is checked first.
CATEGORY_RULES: List[Tuple[ActivityCategory, Tuple[str, ...]]] = [
    (ActivityCategory.RESTAURANT, ("restaurant", "lunch", "dinner", "food", "cuisine", "market")),
    (ActivityCategory.MUSEUM, ("museum", "temple", "shrine", "pavilion", "art")),
    (ActivityCategory.PARK, ("park", "garden", "nature", "scenic")),
    (ActivityCategory.SHOPPING, ("shopping", "market", "boutique", "store")),
    (ActivityCategory.NIGHTLIFE, ("nightlife", "bar", "club", "lounge")),
    (ActivityCategory.HOTEL, ("hotel", "accommodation", "stay")),
]

CATEGORY_ICONS: Dict[ActivityCategory, str] = {
    ActivityCategory.RESTAURANT: "🍽️",
    ActivityCategory.MUSEUM: "🏛️",
    ActivityCategory.PARK: "🌳",
    ActivityCategory.SHOPPING: "🛍️",
    ActivityCategory.NIGHTLIFE: "🌃",
    ActivityCategory.HOTEL: "🏨",
    ActivityCategory.ACTIVITY: "🎯",
}
DEFAULT_ICON = "📍"

DAY_HEADING = re.compile(r"Day\s*\d+", re.IGNORECASE)
TIMED_LINE = re.compile(r"^(\d{1,2}:\d{2}\s*(?:AM|PM)?)\s*-\s*(.+)", re.IGNORECASE)


@dataclass
class Activity:
    time: str
    location: str
    description: str
    category: ActivityCategory = ActivityCategory.ACTIVITY


@dataclass
class DayPlan:
    title: str
    content: str
    activities: List[Activity] = field(default_factory=list)


def infer_activity_type(location: str, description: str) -> ActivityCategory:
    """Classify an activity by keyword search over its location and description"""
    text = f"{location or ''} {description or ''}".lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            return category
    return ActivityCategory.ACTIVITY


def icon_for_category(category: Any) -> str:
    """Display icon for a category; values outside the known set get the pin icon"""
    try:
        return CATEGORY_ICONS[ActivityCategory(category)]
    except ValueError:
        return DEFAULT_ICON


def split_into_days(text: str) -> List[DayPlan]:
    """
    Split itinerary text on "Day N" headings.

    Text before the first heading is discarded. Input without any heading
    becomes a single "Day 1" holding the whole trimmed text.
    """
    if not text:
        return []

    headings = list(DAY_HEADING.finditer(text))
    days: List[DayPlan] = []
    for i, match in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(text)
        days.append(DayPlan(title=match.group(0), content=text[match.end():end].strip()))

    if not days and text.strip():
        days.append(DayPlan(title="Day 1", content=text.strip()))

    return days


def _split_location(text: str) -> Optional[Tuple[str, str]]:
    location, sep, description = text.partition(":")
    if not sep:
        return None
    return location.strip(), description.strip()


def parse_activity_line(line: str) -> Optional[Activity]:
    """Parse one trimmed line into an Activity, or None when it is not an activity line"""
    if not line or line == "-":
        return None

    timed = TIMED_LINE.match(line)
    if timed:
        time_text = timed.group(1).strip()
        rest = timed.group(2)
        parts = _split_location(rest)
        location, description = parts if parts else (rest.strip(), "")
        return Activity(
            time=time_text,
            location=location,
            description=description,
            category=infer_activity_type(location, description),
        )

    if line.startswith("-"):
        # Untimed bullets need a "Place: description" shape; bare bullets are dropped
        parts = _split_location(line[1:].strip())
        if parts is None:
            return None
        location, description = parts
        return Activity(
            time="",
            location=location,
            description=description,
            category=infer_activity_type(location, description),
        )

    return None


def extract_activities(content: str) -> List[Activity]:
    """Extract activities from one day's content, in line order"""
    activities: List[Activity] = []
    for raw_line in (content or "").split("\n"):
        activity = parse_activity_line(raw_line.strip())
        if activity is not None:
            activities.append(activity)
    return activities


def parse_itinerary(text: str) -> List[DayPlan]:
    """Split text into days and extract each day's activities"""
    days = split_into_days(text)
    for day in days:
        day.activities = extract_activities(day.content)

    logger.debug(
        f"Parsed itinerary into {len(days)} days with "
        f"{sum(len(d.activities) for d in days)} activities"
    )
    return days
