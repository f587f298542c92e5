"""
Drag-and-drop reordering of activities across itinerary days
"""

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from wayfarer.core.itinerary_text import Activity, DayPlan

logger = logging.getLogger(__name__)

START_TIME = "9:00 AM"
TIME_STEP_HOURS = 2

_CLOCK_TIME = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE)


class DropPosition(str, Enum):
    BEFORE = "before"
    CENTER = "center"
    AFTER = "after"


@dataclass(frozen=True)
class DragState:
    source_day_index: int
    source_activity_index: int


@dataclass(frozen=True)
class DropTarget:
    day_index: int
    activity_index: int
    position: DropPosition = DropPosition.AFTER


def advance_time(value: str, hours: int = TIME_STEP_HOURS) -> str:
    """
    Advance a 12-hour clock string such as "9:00 AM" by whole hours.

    Empty input yields the start time, unreadable input is returned as-is and
    a missing AM/PM marker counts as AM. Passing 12 flips the meridiem.
    """
    if not value:
        return START_TIME

    match = _CLOCK_TIME.search(value)
    if not match:
        return value

    hour = int(match.group(1)) + hours
    minute = int(match.group(2))
    period = (match.group(3) or "AM").upper()

    while hour > 12:
        hour -= 12
        period = "PM" if period == "AM" else "AM"

    return f"{hour}:{minute:02d} {period}"


def recompute_times(activities: List[Activity]) -> List[Activity]:
    """Reassign times from the start time onwards in fixed steps"""
    timed: List[Activity] = []
    for index, activity in enumerate(activities):
        time = START_TIME if index == 0 else advance_time(timed[index - 1].time)
        timed.append(replace(activity, time=time))
    return timed


def resolve_insert_index(drag: DragState, target: DropTarget) -> Optional[int]:
    """
    Index at which the dragged activity lands in the target day after removal.

    Returns None when the drop would leave the activity where it is. CENTER
    drops land after the hovered activity.
    """
    index = target.activity_index
    if target.position in (DropPosition.AFTER, DropPosition.CENTER):
        index += 1

    same_day = drag.source_day_index == target.day_index
    if same_day and drag.source_activity_index == index:
        return None
    if same_day and drag.source_activity_index < index:
        index -= 1
    return index


def move_activity(days: List[DayPlan], drag: DragState, target: DropTarget) -> List[DayPlan]:
    """
    Move one activity to a drop target and recompute times in the affected days.

    Returns a new list of days; the input is not modified. A no-op drop returns
    the input list itself. Indices are assumed to refer to existing items.
    """
    index = resolve_insert_index(drag, target)
    if index is None:
        return days

    moved = [replace(day, activities=list(day.activities)) for day in days]
    source_day = moved[drag.source_day_index]
    target_day = moved[target.day_index]

    activity = source_day.activities.pop(drag.source_activity_index)
    target_day.activities.insert(index, activity)

    target_day.activities = recompute_times(target_day.activities)
    if source_day is not target_day and source_day.activities:
        source_day.activities = recompute_times(source_day.activities)

    logger.info(
        f"Moved activity day {drag.source_day_index}#{drag.source_activity_index} "
        f"-> day {target.day_index}#{index}"
    )
    return moved


class ReorderSession:
    """Owns the days of one editing session plus the state of the current drag gesture"""

    def __init__(self, days: List[DayPlan]):
        self.days = list(days)
        self.drag: Optional[DragState] = None
        self.drop_target: Optional[DropTarget] = None

    @property
    def state(self) -> str:
        return "dragging" if self.drag is not None else "idle"

    def start_drag(self, day_index: int, activity_index: int) -> None:
        self.drag = DragState(day_index, activity_index)
        self.drop_target = None

    def enter_slot(self, day_index: int, activity_index: int, position: DropPosition) -> None:
        if self.drag is None:
            return
        self.drop_target = DropTarget(day_index, activity_index, DropPosition(position))

    def leave_slots(self) -> None:
        """Pointer left every slot; the drag itself stays active"""
        self.drop_target = None

    def drop(self, day_index: int, activity_index: int, position: DropPosition) -> bool:
        """Complete the gesture. Returns True when the days changed."""
        drag = self.drag
        self.drag = None
        self.drop_target = None
        if drag is None:
            return False

        target = DropTarget(day_index, activity_index, DropPosition(position))
        updated = move_activity(self.days, drag, target)
        if updated is self.days:
            return False
        self.days = updated
        return True

    def cancel(self) -> None:
        self.drag = None
        self.drop_target = None

    def set_time(self, day_index: int, activity_index: int, time: str) -> None:
        """Manual time edit; neighbouring times are left alone until the next move"""
        day = self.days[day_index]
        activities = list(day.activities)
        activities[activity_index] = replace(activities[activity_index], time=time)
        self.days[day_index] = replace(day, activities=activities)
