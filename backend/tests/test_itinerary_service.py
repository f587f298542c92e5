"""
ItineraryService tests: saving days, reading them back and previewing moves
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from fastapi import HTTPException

from wayfarer.api.itinerary import ItineraryService, default_title, validate_reorder_indices
from wayfarer.api.schemas import ItineraryCreate, ReorderRequest
from wayfarer.core.itinerary_text import icon_for_category, parse_itinerary
from wayfarer.core.settings import Settings
from wayfarer.db import crud

PARIS = {"latitude": 48.8566, "longitude": 2.3522}

DAYS = [
    {"title": "Day 1", "content": "9:00 AM - Louvre: Visit the museum\n1:00 PM - Le Cinq: Lunch"},
    {"content": "- Eiffel Tower\nFree afternoon"},
]


@pytest.fixture
def settings():
    return Settings(_env_file=None, MAX_ITINERARY_DAYS=3)


@pytest_asyncio.fixture
async def owner(db_session):
    return await crud.create_user(
        db_session, username="traveller", email="traveller@example.com", password_hash="x"
    )


async def save(db_session, owner, settings, **fields):
    payload = ItineraryCreate(**{"destinations": ["Paris"], "itinerary": DAYS, **fields})
    with patch("wayfarer.api.itinerary.geocode_destination", AsyncMock(return_value=PARIS)) as geocode:
        response = await ItineraryService(db_session, settings).create(payload, owner)
    return response, geocode


def test_default_title():
    assert default_title(["Paris", "Lyon"]) == "Trip to Paris, Lyon"
    assert default_title([]) == "Trip to Unknown"


@pytest.mark.asyncio
async def test_create_saves_one_item_per_day(db_session, owner, settings):
    response, geocode = await save(db_session, owner, settings, preferences=["art"])

    geocode.assert_awaited_once_with("Paris", settings)
    assert response.success
    assert response.extracted_activities == 2
    assert response.message == "Itinerary saved with 2 individual activities organized under 2 days!"
    assert response.itinerary.title == "Trip to Paris"
    assert (response.itinerary.latitude, response.itinerary.longitude) == (48.8566, 2.3522)

    items = await crud.get_itinerary_items(db_session, itinerary_id=response.itinerary.id)
    assert [(item.day, item.position) for item in items] == [(1, 0), (2, 1)]

    first = json.loads(items[0].notes)
    assert first["destinations"] == ["Paris"]
    assert first["preferences"] == ["art"]
    assert first["coordinates"] == PARIS
    assert [a["title"] for a in first["activities"]] == ["Louvre", "Le Cinq"]
    assert first["activities"][0]["type"] == "museum"

    second = json.loads(items[1].notes)
    assert second["title"] == "Day 2"
    assert "activities" not in second


@pytest.mark.asyncio
async def test_create_keeps_explicit_title(db_session, owner, settings):
    response, _ = await save(db_session, owner, settings, title="  Paris in spring ")
    assert response.itinerary.title == "Paris in spring"


@pytest.mark.asyncio
async def test_create_without_destinations_uses_fallback(db_session, owner, settings):
    response, geocode = await save(db_session, owner, settings, destinations=[])
    geocode.assert_not_awaited()
    assert response.itinerary.title == "Trip to Unknown"
    assert (response.itinerary.latitude, response.itinerary.longitude) == (40.7128, -74.0060)


@pytest.mark.asyncio
async def test_create_rejects_empty_and_oversized(db_session, owner, settings):
    with pytest.raises(HTTPException) as exc:
        await save(db_session, owner, settings, itinerary=[])
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        await save(db_session, owner, settings, itinerary=DAYS * 2)
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_load_days_round_trip(db_session, owner, settings):
    response, _ = await save(db_session, owner, settings)

    days = await ItineraryService(db_session, settings).load_days(response.itinerary.id)

    assert [d.title for d in days] == ["Day 1", "Day 2"]
    assert [a.location for a in days[0].activities] == ["Louvre", "Le Cinq"]
    assert days[1].activities == []


@pytest.mark.asyncio
async def test_get_owned(db_session, owner, settings):
    response, _ = await save(db_session, owner, settings)
    service = ItineraryService(db_session, settings)

    assert (await service.get_owned(response.itinerary.id, owner)).id == response.itinerary.id

    stranger = await crud.create_user(
        db_session, username="stranger", email="stranger@example.com", password_hash="x"
    )
    with pytest.raises(HTTPException) as exc:
        await service.get_owned(response.itinerary.id, stranger)
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_preview_reorder_does_not_persist(db_session, owner, settings):
    response, _ = await save(db_session, owner, settings)
    service = ItineraryService(db_session, settings)

    preview = await service.preview_reorder(response.itinerary.id, ReorderRequest(
        source_day_index=0, source_activity_index=0,
        target_day_index=1, target_activity_index=0, position="after",
    ))

    assert preview.changed
    assert [a.location for a in preview.days[0].activities] == ["Le Cinq"]
    assert [a.time for a in preview.days[0].activities] == ["9:00 AM"]
    assert [a.location for a in preview.days[1].activities] == ["Louvre"]
    assert preview.days[1].activities[0].icon == icon_for_category("museum")

    stored = await service.load_days(response.itinerary.id)
    assert [a.location for a in stored[0].activities] == ["Louvre", "Le Cinq"]


@pytest.mark.asyncio
async def test_preview_reorder_no_op(db_session, owner, settings):
    response, _ = await save(db_session, owner, settings)

    preview = await ItineraryService(db_session, settings).preview_reorder(
        response.itinerary.id,
        ReorderRequest(
            source_day_index=0, source_activity_index=1,
            target_day_index=0, target_activity_index=1, position="before",
        ),
    )

    assert not preview.changed
    assert [a.time for a in preview.days[0].activities] == ["9:00 AM", "1:00 PM"]


class TestValidateReorderIndices:

    days = parse_itinerary("Day 1\n9:00 AM - A: a\n11:00 AM - B: b\nDay 2\nnothing timed")

    def request(self, **overrides):
        fields = dict(source_day_index=0, source_activity_index=0, target_day_index=1, target_activity_index=0)
        fields.update(overrides)
        return ReorderRequest(**fields)

    def test_empty_target_day_accepts_first_slot(self):
        validate_reorder_indices(self.days, self.request())

    @pytest.mark.parametrize("overrides", [
        {"source_day_index": 2},
        {"target_day_index": 2},
        {"source_activity_index": 2},
        {"target_day_index": 0, "target_activity_index": 2},
        {"target_activity_index": 1},
    ])
    def test_out_of_range(self, overrides):
        with pytest.raises(HTTPException) as exc:
            validate_reorder_indices(self.days, self.request(**overrides))
        assert exc.value.status_code == 400
