"""Web search backends for external plagiarism checks."""

from .base import (
    FallbackSearchProvider,
    SearchProvider,
    build_search_query,
    get_host,
    normalize_host,
)
from .duckduckgo import DuckDuckGoSearchProvider, resolve_duckduckgo_redirect
from .factory import create_search_provider
from .serper import SerperSearchProvider

__all__ = [
    "DuckDuckGoSearchProvider",
    "FallbackSearchProvider",
    "SearchProvider",
    "SerperSearchProvider",
    "build_search_query",
    "create_search_provider",
    "get_host",
    "normalize_host",
    "resolve_duckduckgo_redirect",
]
