"""aiohttp session helpers."""

from typing import Optional

import aiohttp


async def create_session(
    timeout: int = 300, connector: Optional[aiohttp.TCPConnector] = None
) -> aiohttp.ClientSession:
    """Create a client session for object store requests.

    Args:
        timeout: Total request timeout in seconds
        connector: aiohttp connector for connection pooling

    Returns:
        A new aiohttp.ClientSession, owned by the caller
    """
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout),
    )
