"""
aiohttp ClientSession scoped to one analysis call.

The Streamlit page runs each submit in a fresh event loop, so a session
cannot outlive the call that opened it.

Usage:
    async with http_client.request_session() as sess:
        async with sess.post(url, data=form) as response:
            ...
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp

from mdrs.config import settings

logger = logging.getLogger(__name__)


def _timeout(total: Optional[float]) -> aiohttp.ClientTimeout:
    # total=None: no deadline, the call runs to completion or failure
    return aiohttp.ClientTimeout(total=total)


@asynccontextmanager
async def request_session(timeout: Optional[float] = None) -> AsyncIterator[aiohttp.ClientSession]:
    """Open a session with the configured deadline and close it on exit."""
    total = timeout if timeout is not None else settings.analysis_timeout_sec
    sess = aiohttp.ClientSession(timeout=_timeout(total))
    try:
        yield sess
    finally:
        await sess.close()
        logger.debug("[HTTP] Request session closed")
