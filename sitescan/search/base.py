"""Search provider interface."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from urllib.parse import urlparse

import aiohttp

from ..http_client import get_session
from ..models import SearchResult

logger = logging.getLogger(__name__)

MAX_EXCLUDED_HOSTS = 2


def normalize_host(hostname: str) -> str:
    hostname = (hostname or "").lower()
    return hostname[4:] if hostname.startswith("www.") else hostname


def get_host(url: str) -> str:
    """Return the lowercased host of ``url`` without ``www.``, or ''."""
    try:
        return normalize_host(urlparse(url).hostname or "")
    except ValueError:
        return ""


def build_search_query(query: str, exclude_hosts: Sequence[str]) -> str:
    """Quote the query as an exact phrase and exclude the site's own hosts."""
    exclusions = " ".join(f"-site:{host}" for host in list(exclude_hosts)[:MAX_EXCLUDED_HOSTS])
    phrase = query.replace('"', "")
    return f'"{phrase}" {exclusions}'.strip()


class SearchProvider(ABC):
    """A web search backend used to look for copies of page text.

    ``search`` returns an empty list for network errors, non-2xx responses and
    malformed payloads. ``guarded_search`` adds the per-request timeout and
    turns anything else that goes wrong into an empty list too.
    """

    name: str = ""

    def __init__(
        self,
        max_results: int = 5,
        timeout: float = 4.5,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.max_results = max_results
        self.timeout = timeout
        self._session = session

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is not None:
            return self._session
        return await get_session()

    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.timeout)

    @abstractmethod
    async def search(self, query: str, exclude_hosts: Sequence[str]) -> List[SearchResult]:
        """Return at most ``max_results`` organic results for ``query``."""

    async def guarded_search(
        self,
        query: str,
        exclude_hosts: Sequence[str],
        timeout: Optional[float] = None,
    ) -> List[SearchResult]:
        """Run one request within ``timeout`` seconds; any failure gives []."""
        timeout = self.timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(self.search(query, exclude_hosts), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{self.name} search timed out after {timeout}s: {query[:60]}")
        except Exception as e:
            logger.warning(f"{self.name} search failed for '{query[:60]}': {type(e).__name__}: {e}")
        return []


class FallbackSearchProvider(SearchProvider):
    """Tries the primary provider and falls back when it finds nothing.

    Each provider gets its own request timeout, so a primary that times out
    or fails still leaves the fallback its full budget.
    """

    def __init__(self, primary: SearchProvider, fallback: SearchProvider):
        super().__init__(max_results=primary.max_results, timeout=primary.timeout)
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}+{fallback.name}"

    async def search(self, query: str, exclude_hosts: Sequence[str]) -> List[SearchResult]:
        return await self.guarded_search(query, exclude_hosts)

    async def guarded_search(
        self,
        query: str,
        exclude_hosts: Sequence[str],
        timeout: Optional[float] = None,
    ) -> List[SearchResult]:
        results = await self.primary.guarded_search(query, exclude_hosts, timeout)
        if results:
            return results
        logger.debug(f"{self.primary.name} returned nothing, falling back to {self.fallback.name}")
        return await self.fallback.guarded_search(query, exclude_hosts, timeout)
