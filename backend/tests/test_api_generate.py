"""
HTTP tests for streamed generation and TikTok extraction
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from wayfarer.core.settings import get_settings

REQUEST = {"destinations": [{"name": "Lisbon"}], "preferences": ["food"], "days": 2}


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setattr(get_settings(), "OPENAI_API_KEY", "sk-test")


def test_generate_not_configured(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "OPENAI_API_KEY", "")
    response = client.post("/api/v1/generate", json=REQUEST)
    assert response.status_code == 503


def test_generate_streams_events(client, openai_key):
    async def fake_stream(self, prompt):
        assert "2-day trip to Lisbon" in prompt
        yield "Day 1: Arrival\n"
        yield "9:00 AM - Time Out Market: Lunch"

    with patch("wayfarer.core.generation.ItineraryGenerator.stream", fake_stream):
        response = client.post("/api/v1/generate", json=REQUEST)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    events = [
        json.loads(line[len("data: "):])
        for line in response.text.split("\n\n") if line.startswith("data: ")
    ]
    assert events == [
        {"content": "Day 1: Arrival\n"},
        {"content": "9:00 AM - Time Out Market: Lunch"},
        {"done": True},
    ]


def test_generate_too_many_days(client, openai_key):
    response = client.post("/api/v1/generate", json={**REQUEST, "days": 31})
    assert response.status_code == 400


def test_generate_needs_a_destination(client, openai_key):
    response = client.post("/api/v1/generate", json={**REQUEST, "destinations": []})
    assert response.status_code == 422


def test_generate_requires_auth(anonymous_client, openai_key):
    assert anonymous_client.post("/api/v1/generate", json=REQUEST).status_code == 401


def test_extract_tiktok(client, openai_key):
    extracted = [{"url": "https://www.tiktok.com/@a/video/1", "destination": "Lisbon", "tips": "Go early"}]
    with patch("wayfarer.core.tiktok.TikTokExtractor.extract", AsyncMock(return_value=extracted)) as extract:
        response = client.post("/api/v1/extract-tiktok", json={
            "urls": ["https://www.tiktok.com/@a/video/1", "https://example.com/not-tiktok"]
        })

    assert response.status_code == 200
    assert response.json() == {"extracted": extracted}
    assert extract.await_args.args[-1] == ["https://www.tiktok.com/@a/video/1"]


def test_extract_tiktok_without_tiktok_urls(client, openai_key):
    response = client.post("/api/v1/extract-tiktok", json={"urls": ["https://example.com/video"]})
    assert response.status_code == 400


def test_extract_tiktok_too_many_urls(client, openai_key):
    urls = [f"https://www.tiktok.com/@a/video/{i}" for i in range(11)]
    response = client.post("/api/v1/extract-tiktok", json={"urls": urls})
    assert response.status_code == 400


def test_extract_tiktok_not_configured(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "OPENAI_API_KEY", "")
    response = client.post("/api/v1/extract-tiktok", json={"urls": ["https://www.tiktok.com/@a/video/1"]})
    assert response.status_code == 503
