"""Search provider selection."""

import logging
from typing import Optional

from ..config import Settings, settings as default_settings
from .base import FallbackSearchProvider, SearchProvider
from .duckduckgo import DuckDuckGoSearchProvider
from .serper import SerperSearchProvider

logger = logging.getLogger(__name__)


def create_search_provider(config: Optional[Settings] = None) -> SearchProvider:
    """Pick the search backend from PLAGIARISM_EXTERNAL_PROVIDER and SERPER_API_KEY.

    ``auto`` and ``serper`` use Serper when a key is set, with DuckDuckGo as
    fallback for empty answers; otherwise DuckDuckGo alone.
    """
    config = config or default_settings
    forced = (config.PLAGIARISM_EXTERNAL_PROVIDER or "auto").lower()
    max_results = config.EXTERNAL_MAX_RESULTS_PER_QUERY
    timeout = config.EXTERNAL_QUERY_TIMEOUT

    duckduckgo = DuckDuckGoSearchProvider(max_results=max_results, timeout=timeout)

    if forced not in ("auto", "serper", "duckduckgo"):
        logger.warning(f"Unknown search provider '{forced}', using auto")
        forced = "auto"

    if forced == "duckduckgo" or not config.SERPER_API_KEY:
        if forced == "serper":
            logger.warning("PLAGIARISM_EXTERNAL_PROVIDER=serper but SERPER_API_KEY is not set")
        return duckduckgo

    serper = SerperSearchProvider(
        api_key=config.SERPER_API_KEY,
        country=config.SEARCH_COUNTRY,
        language=config.SEARCH_LANGUAGE,
        max_results=max_results,
        timeout=timeout,
    )
    return FallbackSearchProvider(serper, duckduckgo)
