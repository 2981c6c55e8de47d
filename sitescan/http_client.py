"""Shared aiohttp client session."""

import asyncio
import logging
from typing import Optional

import aiohttp

from .config import settings

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_session: Optional[aiohttp.ClientSession] = None
_session_lock = asyncio.Lock()


async def get_session() -> aiohttp.ClientSession:
    """Return the process-wide session, creating it on first use."""
    global _session
    async with _session_lock:
        if _session is None or _session.closed:
            connector = aiohttp.TCPConnector(
                limit=settings.AIOHTTP_CONNECTION_LIMIT,
                limit_per_host=settings.AIOHTTP_LIMIT_PER_HOST,
            )
            _session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": USER_AGENT},
            )
            logger.debug("Created shared aiohttp session")
        return _session


async def close_session() -> None:
    global _session
    async with _session_lock:
        if _session is not None and not _session.closed:
            await _session.close()
        _session = None
