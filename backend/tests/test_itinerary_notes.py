"""
Tests for the stored day notes format
"""

import json

from wayfarer.core.itinerary_notes import (
    activity_from_stored,
    activity_to_stored,
    decode_day_notes,
    encode_day_notes,
    load_notes,
)
from wayfarer.api.schemas import DayPlanRead
from wayfarer.core.itinerary_text import Activity, ActivityCategory, DayPlan


def test_encode_day_with_activities():
    day = DayPlan(
        title="Day 1",
        content="9:00 AM - Louvre: Visit the museum",
        activities=[Activity("9:00 AM", "Louvre", "Visit the museum", ActivityCategory.MUSEUM)],
    )
    notes = json.loads(encode_day_notes(
        day, ["Paris"], ["art"], {"latitude": 48.85, "longitude": 2.35}
    ))

    assert notes == {
        "title": "Day 1",
        "content": "9:00 AM - Louvre: Visit the museum",
        "destinations": ["Paris"],
        "preferences": ["art"],
        "coordinates": {"latitude": 48.85, "longitude": 2.35},
        "activities": [
            {"title": "Louvre", "content": "Visit the museum", "type": "museum", "time": "9:00 AM"}
        ],
    }


def test_encode_day_without_activities_omits_key():
    notes = json.loads(encode_day_notes(DayPlan("Day 2", "Rest day", [])))
    assert "activities" not in notes
    assert "coordinates" not in notes
    assert notes["destinations"] == []


def test_decode_restores_the_encoded_day():
    day = DayPlan(
        title="Day 3",
        content="text",
        activities=[Activity("", "Central Park", "Picnic", ActivityCategory.PARK)],
    )
    assert decode_day_notes(encode_day_notes(day), 3) == day


def test_decode_free_text_notes():
    day = decode_day_notes("Walk around the old town", 2)
    assert day.title == "Day 2"
    assert day.content == "Walk around the old town"
    assert day.activities == []


def test_decode_empty_notes():
    day = decode_day_notes(None, 4)
    assert day == DayPlan("Day 4", "", [])


def test_decode_non_object_json_is_free_text():
    day = decode_day_notes("[1, 2]", 1)
    assert day.content == "[1, 2]"


def test_decode_missing_title_defaults():
    day = decode_day_notes(json.dumps({"content": "x"}), 5)
    assert day.title == "Day 5"


def test_decode_non_string_content_is_blank():
    day = decode_day_notes(json.dumps({"title": "Day 1", "content": 5}), 1)
    assert day.content == ""
    assert day.activities == []


def test_decode_non_string_title_is_stringified():
    day = decode_day_notes(json.dumps({"title": 7, "content": ["a"]}), 2)
    assert day.title == "7"
    assert day.content == ""
    assert DayPlanRead.from_day(day).title == "7"


def test_decode_skips_malformed_activities():
    notes = json.dumps({"title": "Day 1", "activities": ["oops", {"title": "Cafe", "type": "spa"}]})
    day = decode_day_notes(notes, 1)
    assert len(day.activities) == 1
    assert day.activities[0].location == "Cafe"
    assert day.activities[0].category == ActivityCategory.ACTIVITY


def test_decode_without_stored_activities_parses_content():
    notes = json.dumps({"title": "Day 1", "content": "9:00 AM - Tsukiji: Sushi breakfast"})
    day = decode_day_notes(notes, 1)
    assert [(a.time, a.location) for a in day.activities] == [("9:00 AM", "Tsukiji")]


def test_decode_empty_stored_activities_are_kept_empty():
    notes = json.dumps({"title": "Day 1", "content": "9:00 AM - Tsukiji: Sushi", "activities": []})
    assert decode_day_notes(notes, 1).activities == []


def test_stored_activity_field_names():
    activity = Activity("7:00 PM", "Bar", "Drinks", ActivityCategory.NIGHTLIFE)
    stored = activity_to_stored(activity)
    assert set(stored) == {"title", "content", "type", "time"}
    assert activity_from_stored(stored) == activity


def test_load_notes():
    assert load_notes("") is None
    assert load_notes("not json") is None
    assert load_notes('"a string"') is None
    assert load_notes('{"title": "Day 1"}') == {"title": "Day 1"}
