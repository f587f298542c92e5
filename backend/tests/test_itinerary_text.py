"""
Tests for itinerary text parsing: day splitting, activity extraction and
category inference
"""

import pytest

from wayfarer.core.itinerary_text import (
    Activity,
    ActivityCategory,
    DEFAULT_ICON,
    extract_activities,
    icon_for_category,
    infer_activity_type,
    parse_activity_line,
    parse_itinerary,
    split_into_days,
)


SAMPLE = """Here is your trip!

Day 1: Arrival in Paris
9:00 AM - Louvre: Visit the museum
11:00 AM - Le Cinq: Lunch with a view
- Tip: buy tickets online

Day 2: Parks
9:00 AM - Jardin du Luxembourg: Morning walk
- Eiffel Tower
"""


class TestSplitIntoDays:

    def test_two_headings(self):
        days = split_into_days("Day 1\nfoo\nDay 2\nbar")
        assert [(d.title, d.content) for d in days] == [("Day 1", "foo"), ("Day 2", "bar")]

    def test_no_heading_becomes_single_day(self):
        days = split_into_days("no headings here")
        assert len(days) == 1
        assert days[0].title == "Day 1"
        assert days[0].content == "no headings here"

    def test_no_heading_content_is_trimmed(self):
        days = split_into_days("   spaced out \n")
        assert days[0].content == "spaced out"

    def test_empty_input(self):
        assert split_into_days("") == []

    def test_whitespace_only_input(self):
        assert split_into_days("   \n  ") == []

    def test_preamble_is_discarded(self):
        days = split_into_days(SAMPLE)
        assert len(days) == 2
        assert "Here is your trip" not in days[0].content

    def test_heading_is_case_and_space_tolerant(self):
        days = split_into_days("DAY1\nfirst\nday   2\nsecond")
        assert [d.title for d in days] == ["DAY1", "day   2"]
        assert [d.content for d in days] == ["first", "second"]

    def test_heading_suffix_stays_in_content(self):
        days = split_into_days("Day 1: Arrival\n9:00 AM - Hotel: Check in")
        assert days[0].title == "Day 1"
        assert days[0].content.startswith(": Arrival")

    def test_multi_digit_day_numbers(self):
        days = split_into_days("Day 9\na\nDay 10\nb")
        assert [d.title for d in days] == ["Day 9", "Day 10"]


class TestExtractActivities:

    def test_timed_line_with_location(self):
        activities = extract_activities("9:00 AM - Louvre: Visit the museum")
        assert activities == [
            Activity(
                time="9:00 AM",
                location="Louvre",
                description="Visit the museum",
                category=ActivityCategory.MUSEUM,
            )
        ]

    def test_bullet_without_colon_is_dropped(self):
        assert extract_activities("- Eiffel Tower") == []

    def test_bullet_with_colon_is_untimed_activity(self):
        activities = extract_activities("- Central Park: Picnic")
        assert len(activities) == 1
        assert activities[0].time == ""
        assert activities[0].location == "Central Park"
        assert activities[0].description == "Picnic"
        assert activities[0].category == ActivityCategory.PARK

    def test_timed_line_without_colon_keeps_whole_text(self):
        activities = extract_activities("2:30 PM - Free time around the hotel")
        assert activities[0].location == "Free time around the hotel"
        assert activities[0].description == ""
        assert activities[0].category == ActivityCategory.HOTEL

    def test_time_without_meridiem(self):
        activities = extract_activities("14:00 - Museum of Art: Afternoon visit")
        assert activities[0].time == "14:00"

    def test_only_first_colon_splits(self):
        activities = extract_activities("7:00 PM - Bar Hemingway: Cocktails: classic")
        assert activities[0].location == "Bar Hemingway"
        assert activities[0].description == "Cocktails: classic"

    def test_blank_bare_dash_and_prose_lines_are_skipped(self):
        content = "\n   \n-\nJust some prose\n9:00 AM - Cafe: Breakfast"
        activities = extract_activities(content)
        assert [a.location for a in activities] == ["Cafe"]

    def test_lines_are_trimmed(self):
        activities = extract_activities("    9:00 AM - Louvre: Visit   ")
        assert activities[0].description == "Visit"

    def test_order_is_line_order(self):
        content = "11:00 AM - B: second\n9:00 AM - A: first"
        assert [a.location for a in extract_activities(content)] == ["B", "A"]

    def test_empty_content(self):
        assert extract_activities("") == []

    def test_parse_activity_line_rejects_prose(self):
        assert parse_activity_line("Welcome to Paris") is None


class TestInferActivityType:

    @pytest.mark.parametrize("location,description,expected", [
        ("Central Park", "", ActivityCategory.PARK),
        ("Night Market", "", ActivityCategory.RESTAURANT),
        ("Senso-ji", "Ancient temple", ActivityCategory.MUSEUM),
        ("Ginza", "Boutique hopping", ActivityCategory.SHOPPING),
        ("Golden Gai", "Tiny bars", ActivityCategory.NIGHTLIFE),
        ("Park Hyatt", "Check in to the hotel", ActivityCategory.PARK),
        ("Check-in", "Hotel lobby", ActivityCategory.HOTEL),
        ("Shibuya Crossing", "Walk around", ActivityCategory.ACTIVITY),
    ])
    def test_first_matching_group_wins(self, location, description, expected):
        assert infer_activity_type(location, description) == expected

    def test_case_insensitive(self):
        assert infer_activity_type("NATIONAL MUSEUM", "") == ActivityCategory.MUSEUM

    def test_substring_match_inside_words(self):
        # "art" inside "start"
        assert infer_activity_type("Start line", "") == ActivityCategory.MUSEUM

    def test_idempotent(self):
        first = infer_activity_type("Tsukiji", "Fresh food stalls")
        assert infer_activity_type("Tsukiji", "Fresh food stalls") == first


class TestCategories:

    def test_unknown_value_coerces_to_activity(self):
        assert ActivityCategory.coerce("spa") == ActivityCategory.ACTIVITY
        assert ActivityCategory.coerce(None) == ActivityCategory.ACTIVITY

    def test_coerce_is_case_insensitive(self):
        assert ActivityCategory.coerce(" Museum ") == ActivityCategory.MUSEUM

    def test_icons(self):
        assert icon_for_category("restaurant") == "🍽️"
        assert icon_for_category(ActivityCategory.PARK) == "🌳"
        assert icon_for_category("activity") == "🎯"
        assert icon_for_category("unknown") == DEFAULT_ICON


class TestParseItinerary:

    def test_full_text(self):
        days = parse_itinerary(SAMPLE)

        assert [len(d.activities) for d in days] == [3, 1]
        day_one = days[0].activities
        assert [a.location for a in day_one] == ["Louvre", "Le Cinq", "Tip"]
        assert day_one[1].category == ActivityCategory.RESTAURANT
        assert day_one[2].time == ""
