"""DuckDuckGo HTML search provider (no API key needed)."""

import asyncio
import html as html_module
import logging
from typing import List, Optional, Sequence
from urllib.parse import parse_qs, quote, urlparse

import aiohttp
from bs4 import BeautifulSoup

from ..models import SearchResult
from ..similarity.text import collapse_whitespace
from .base import SearchProvider, build_search_query, get_host, normalize_host

logger = logging.getLogger(__name__)

DUCKDUCKGO_HTML_URL = "https://duckduckgo.com/html/"


def resolve_duckduckgo_redirect(url_or_path: str) -> str:
    """Unwrap ``duckduckgo.com/l/?uddg=...`` result links to the target URL."""
    decoded = html_module.unescape(url_or_path or "")
    if decoded.startswith("//"):
        candidate = f"https:{decoded}"
    elif decoded.startswith("/"):
        candidate = f"https://duckduckgo.com{decoded}"
    else:
        candidate = decoded

    try:
        parsed = urlparse(candidate)
    except ValueError:
        return decoded
    if not parsed.scheme or not parsed.netloc:
        return decoded

    if "duckduckgo.com" in normalize_host(parsed.hostname or ""):
        # parse_qs already percent-decodes the parameter
        target = parse_qs(parsed.query).get("uddg")
        if target and target[0]:
            return target[0]
    return candidate


class DuckDuckGoSearchProvider(SearchProvider):
    """Scrapes the public DuckDuckGo HTML endpoint."""

    name = "duckduckgo"

    def __init__(
        self,
        max_results: int = 5,
        timeout: float = 4.5,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(max_results=max_results, timeout=timeout, session=session)

    def parse_results(self, html: str) -> List[SearchResult]:
        soup = BeautifulSoup(html or "", "lxml")
        results: List[SearchResult] = []

        for anchor in soup.select("a.result__a"):
            href = resolve_duckduckgo_redirect(anchor.get("href", ""))
            if not href.startswith("http"):
                continue
            # ads and internal links stay on duckduckgo.com after unwrapping
            if "duckduckgo.com" in get_host(href):
                continue

            snippet = ""
            container = anchor.find_parent(class_="result") or anchor.parent
            snippet_tag = container.select_one(".result__snippet") if container else None
            if snippet_tag is not None:
                snippet = collapse_whitespace(snippet_tag.get_text(" "))

            results.append(SearchResult(
                url=href,
                title=collapse_whitespace(anchor.get_text(" ")),
                snippet=snippet,
                provider=self.name,
            ))
            if len(results) >= self.max_results:
                break

        return results

    async def search(self, query: str, exclude_hosts: Sequence[str]) -> List[SearchResult]:
        url = f"{DUCKDUCKGO_HTML_URL}?q={quote(build_search_query(query, exclude_hosts))}"
        try:
            session = await self.get_session()
            async with session.get(
                url, headers={"Accept": "text/html"}, timeout=self.client_timeout()
            ) as response:
                if response.status != 200:
                    logger.warning(f"DuckDuckGo search failed: status={response.status}")
                    return []
                html = await response.text()
        except asyncio.TimeoutError:
            logger.warning(f"DuckDuckGo search timed out after {self.timeout}s")
            return []
        except (aiohttp.ClientError, UnicodeDecodeError) as e:
            logger.warning(f"DuckDuckGo search error: {type(e).__name__}: {e}")
            return []

        return self.parse_results(html)
