"""
Itinerary text generation with the OpenAI chat API.

The prompt pins the output to the shape the itinerary parser reads:
"Day N" headings followed by "H:MM AM - Place: description" lines.
"""

import json
import logging
from typing import AsyncIterator, List, Optional

from openai import AsyncOpenAI, OpenAIError

from wayfarer.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a travel planner. Write day-by-day itineraries in plain text. "
    "Start every day with a heading line 'Day N: <theme>'. Under it, write one "
    "activity per line as 'H:MM AM - Place: short description' (12-hour clock, "
    "AM or PM). Add practical tips as lines starting with '- '. No markdown."
)


def build_prompt(
    destinations: List[str],
    preferences: List[str],
    days: int,
    tiktok_tips: Optional[List[str]] = None,
) -> str:
    lines = [
        f"Plan a {days}-day trip to {', '.join(destinations)}.",
        f"Write exactly {days} days, Day 1 to Day {days}, with 4 to 6 activities each.",
    ]
    if preferences:
        lines.append(f"Traveller preferences: {', '.join(preferences)}.")
    if tiktok_tips:
        lines.append(f"Work in these tips from travel videos where they fit: {'. '.join(tiktok_tips)}.")
    return "\n".join(lines)


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


class ItineraryGenerator:
    """Streams generated itinerary text chunk by chunk"""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self.client = client or AsyncOpenAI(
            api_key=self.settings.OPENAI_API_KEY,
            timeout=self.settings.EXTERNAL_API_TIMEOUT_SECONDS * 4,
        )

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(
            model=self.settings.OPENAI_MODEL,
            temperature=self.settings.OPENAI_TEMPERATURE,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            stream=True,
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    async def stream_events(self, prompt: str) -> AsyncIterator[str]:
        """
        Server-Sent Events for a generation run.

        Emits {"content": ...} per chunk and {"done": true} at the end. A failure
        midway is reported in-band as {"error": ...} since the response status
        has already been sent.
        """
        total = 0
        try:
            async for content in self.stream(prompt):
                total += len(content)
                yield sse_event({"content": content})
        except OpenAIError as e:
            logger.error(f"Itinerary generation failed after {total} characters: {e}")
            yield sse_event({"error": "Failed to generate itinerary"})
            return

        logger.info(f"Itinerary generation streamed {total} characters")
        yield sse_event({"done": True})

    async def complete(self, messages: List[dict], json_output: bool = False) -> str:
        """Single non-streaming completion"""
        kwargs = {"response_format": {"type": "json_object"}} if json_output else {}
        response = await self.client.chat.completions.create(
            model=self.settings.OPENAI_MODEL,
            temperature=0,
            messages=messages,
            **kwargs,
        )
        return response.choices[0].message.content or ""
