"""Fetch a persisted code map for the overlay.

``http(s)://`` locations are fetched with aiohttp; ``file://`` URLs and
plain paths are read from disk.
"""

import asyncio
from pathlib import Path
from urllib.parse import unquote, urlparse

import aiohttp

from ..errors import CodeMapLoadError
from ..models import CodeMap
from ..storage import load_code_map, loads_code_map

DEFAULT_TIMEOUT = 10.0


def is_remote(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def resolve_local_path(location: str, base_path: Path | None = None) -> Path:
    """Turn a ``file://`` URL or plain path into a filesystem path."""
    if location.startswith("file://"):
        return Path(unquote(urlparse(location).path))
    path = Path(location)
    if not path.is_absolute():
        path = (base_path or Path.cwd()) / path
    return path


async def fetch_code_map(
    location: str,
    base_path: Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> CodeMap:
    """Load a code map from a URL or path.

    Args:
        location: ``http(s)://`` URL, ``file://`` URL or filesystem path.
        base_path: Directory relative paths resolve against.
        timeout: Total request timeout in seconds for remote locations.

    Returns:
        The loaded CodeMap.

    Raises:
        CodeMapLoadError: On network failure, a non-success status or
            an unreadable or malformed document.
    """
    if not is_remote(location):
        return load_code_map(resolve_local_path(location, base_path))

    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                location, timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                if response.status != 200:
                    raise CodeMapLoadError(
                        location, f"HTTP {response.status} {response.reason}"
                    )
                text = await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
        raise CodeMapLoadError(location, str(e) or type(e).__name__) from e

    return loads_code_map(text, location)
