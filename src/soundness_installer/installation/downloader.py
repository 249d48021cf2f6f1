"""HTTP downloads for the helper binary and installer scripts."""

import asyncio
import os
import stat
from pathlib import Path
from typing import Optional

import aiohttp
import structlog

from .exceptions import DownloadError

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 64 * 1024


class Downloader:
    """Single-attempt HTTP fetcher built on aiohttp."""

    def __init__(self, timeout: Optional[float] = 300.0):
        self.timeout = timeout

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )

    async def download_file(self, url: str, destination: Path, executable: bool = False) -> int:
        """Download url into destination, following redirects.

        The body is written to a sibling ``.part`` file and moved into place
        once complete.

        Returns:
            Number of bytes written

        Raises:
            DownloadError: request failed, returned a non-200 status or the
                file could not be written
        """
        partial = destination.with_name(destination.name + ".part")
        written = 0

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            async with self._session() as session:
                async with session.get(url, allow_redirects=True) as response:
                    if response.status != 200:
                        raise DownloadError(
                            f"Download failed with HTTP {response.status}",
                            {"url": url, "status": response.status},
                        )
                    with open(partial, "wb") as f:
                        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                            f.write(chunk)
                            written += len(chunk)

            os.replace(partial, destination)
            if executable:
                mode = destination.stat().st_mode
                destination.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except DownloadError:
            _discard(partial)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            _discard(partial)
            raise DownloadError(f"Download failed: {e}", {"url": url, "error": str(e)})

        logger.info("Downloaded file", url=url, path=str(destination), bytes=written)
        return written

    async def fetch_text(self, url: str) -> str:
        """Fetch url and return the body as text.

        Raises:
            DownloadError: request failed or returned a non-200 status
        """
        try:
            async with self._session() as session:
                async with session.get(url, allow_redirects=True) as response:
                    if response.status != 200:
                        raise DownloadError(
                            f"Download failed with HTTP {response.status}",
                            {"url": url, "status": response.status},
                        )
                    return await response.text()
        except DownloadError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError(f"Download failed: {e}", {"url": url, "error": str(e)})


def _discard(partial: Path) -> None:
    try:
        partial.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove partial download", path=str(partial), error=str(e))
