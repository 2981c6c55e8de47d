"""Serper.dev (Google results) search provider."""

import asyncio
import logging
from typing import List, Optional, Sequence

import aiohttp

from ..models import SearchResult
from .base import SearchProvider, build_search_query

logger = logging.getLogger(__name__)

SERPER_API_URL = "https://google.serper.dev/search"


class SerperSearchProvider(SearchProvider):
    """Commercial search API, used when SERPER_API_KEY is configured."""

    name = "serper"

    def __init__(
        self,
        api_key: str,
        country: str = "nl",
        language: str = "nl",
        max_results: int = 5,
        timeout: float = 4.5,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(max_results=max_results, timeout=timeout, session=session)
        self.api_key = api_key
        self.country = country
        self.language = language

    def parse_results(self, payload) -> List[SearchResult]:
        if not isinstance(payload, dict):
            return []
        organic = payload.get("organic")
        if not isinstance(organic, list):
            return []

        results: List[SearchResult] = []
        for item in organic:
            if not isinstance(item, dict):
                continue
            url = str(item.get("link") or "")
            if not url.startswith("http"):
                continue
            results.append(SearchResult(
                url=url,
                title=str(item.get("title") or ""),
                snippet=str(item.get("snippet") or ""),
                provider=self.name,
            ))
            if len(results) >= self.max_results:
                break
        return results

    async def search(self, query: str, exclude_hosts: Sequence[str]) -> List[SearchResult]:
        if not self.api_key:
            return []

        body = {
            "q": build_search_query(query, exclude_hosts),
            "num": self.max_results,
            "gl": self.country,
            "hl": self.language,
        }
        headers = {"Content-Type": "application/json", "X-API-KEY": self.api_key}

        try:
            session = await self.get_session()
            async with session.post(
                SERPER_API_URL, json=body, headers=headers, timeout=self.client_timeout()
            ) as response:
                if response.status != 200:
                    logger.warning(f"Serper search failed: status={response.status}")
                    return []
                payload = await response.json(content_type=None)
        except asyncio.TimeoutError:
            logger.warning(f"Serper search timed out after {self.timeout}s")
            return []
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Serper search error: {type(e).__name__}: {e}")
            return []

        return self.parse_results(payload)
