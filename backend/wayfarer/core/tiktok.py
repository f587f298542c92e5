"""
Destination and tip extraction from TikTok videos.

Captions come from TikTok's public oEmbed endpoint; the language model turns
each caption into a destination plus a one-line tip.
"""

import asyncio
import json
import logging
from typing import Dict, List, Optional

import aiohttp
from openai import OpenAIError

from wayfarer.core.generation import ItineraryGenerator
from wayfarer.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

NOT_EXTRACTED = "Could not extract"

EXTRACTION_PROMPT = (
    "Read this TikTok travel video caption and reply with a JSON object "
    '{"destination": "<city or place, country>", "tips": "<one sentence of advice>"}. '
    f'Use "{NOT_EXTRACTED}" for any field you cannot determine.'
)


def tiktok_urls(urls: List[str]) -> List[str]:
    """Trimmed URLs that point at tiktok.com, in input order"""
    return [url.strip() for url in urls if url and "tiktok.com" in url]


def _not_extracted(url: str) -> Dict[str, str]:
    return {"url": url, "destination": NOT_EXTRACTED, "tips": NOT_EXTRACTED}


class TikTokExtractor:
    def __init__(self, settings: Optional[Settings] = None, generator: Optional[ItineraryGenerator] = None):
        self.settings = settings or get_settings()
        self.generator = generator or ItineraryGenerator(self.settings)

    async def fetch_caption(self, http: aiohttp.ClientSession, url: str) -> Optional[str]:
        """Title plus author of the video, or None when oEmbed has nothing"""
        async with http.get(self.settings.TIKTOK_OEMBED_URL, params={"url": url}) as response:
            if response.status != 200:
                logger.warning(f"oEmbed returned {response.status} for {url}")
                return None
            data = await response.json(content_type=None)

        title = (data.get("title") or "").strip()
        if not title:
            return None
        author = data.get("author_name")
        return f"{title} (by {author})" if author else title

    async def summarize(self, caption: str) -> Dict[str, str]:
        content = await self.generator.complete(
            [
                {"role": "system", "content": EXTRACTION_PROMPT},
                {"role": "user", "content": caption},
            ],
            json_output=True,
        )
        data = json.loads(content)
        return {
            "destination": str(data.get("destination") or NOT_EXTRACTED),
            "tips": str(data.get("tips") or NOT_EXTRACTED),
        }

    async def extract(self, urls: List[str]) -> List[Dict[str, str]]:
        """One result per URL; a URL that fails at any step yields the not-extracted marker"""
        timeout = aiohttp.ClientTimeout(total=self.settings.EXTERNAL_API_TIMEOUT_SECONDS)
        results = []
        async with aiohttp.ClientSession(timeout=timeout) as http:
            for url in urls:
                try:
                    caption = await self.fetch_caption(http, url)
                    if caption is None:
                        results.append(_not_extracted(url))
                        continue
                    results.append({"url": url, **await self.summarize(caption)})
                except (aiohttp.ClientError, asyncio.TimeoutError, OpenAIError, ValueError) as e:
                    logger.error(f"TikTok extraction failed for {url}: {e}")
                    results.append(_not_extracted(url))
        return results
