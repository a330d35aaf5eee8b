from __future__ import annotations
import asyncio
import contextlib
import tempfile
import time
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional, Union

import aiofiles
import httpx

from .base import BaseClient, URLTypes
from ..exceptions import HTTPChainError
from ..utils import contained_path, maybe_await, parse_content_length

ProgressCallback = Callable[[int, int], Union[None, Awaitable[None]]]


class DownloadEngine(BaseClient):
    """
    Streams response bodies straight to disk.

    Features:
    - Chunked writes, the body is never buffered in memory
    - Progress callback ``(bytes_received, total_bytes)``, total is 0 when unknown
    - Partial files are deleted on any failure, including status >= 400
    - Successful downloads are tracked in ``downloaded_files``
    - Downloads to the same destination on one client run one at a time
    - Names must stay inside the download directory (no absolute paths or ..)

    Files land in ``settings.download_dir`` (system temp dir by default) under
    the given name. No collision detection is done across names; a second
    download with the same name overwrites the first.

    Example:
        async with HTTPSClient() as client:
            path = await client.download(
                "https://example.com/archive.zip",
                "archive.zip",
                on_progress=lambda received, total: print(f"{received}/{total}"),
            )
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # destination -> (lock, number of downloads holding or awaiting it)
        self._destination_locks: dict[Path, tuple[asyncio.Lock, int]] = {}

    @contextlib.asynccontextmanager
    async def _exclusive_destination(self, file_path: Path) -> AsyncIterator[None]:
        """Serialize downloads to one destination; the lock is dropped once unused."""
        key = file_path.resolve()
        lock, users = self._destination_locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._destination_locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._destination_locks[key]
            if users == 1:
                del self._destination_locks[key]
            else:
                self._destination_locks[key] = (lock, users - 1)

    @property
    def download_root(self) -> Path:
        """Directory every download is written below."""
        return Path(self.settings.download_dir or tempfile.gettempdir())

    def destination_for(self, file_name: str, url: Optional[str] = None) -> Path:
        """
        Where a download named ``file_name`` is written.

        Raises:
            HTTPChainError: If the name is not a relative path staying inside
                ``download_root``
        """
        file_path = contained_path(self.download_root, file_name)
        if file_path is None:
            raise HTTPChainError(
                message=f"File name must stay inside {self.download_root}, got {file_name!r}",
                url=url,
            )
        return file_path

    async def download(
        self,
        url: URLTypes,
        file_name: str,
        headers: Optional[Mapping[str, str]] = None,
        on_progress: Optional[ProgressCallback] = None,
        chunk_size: Optional[int] = None,
    ) -> Path:
        """
        Download ``url`` into the download directory as ``file_name``.

        Args:
            url: Absolute URL as ``str`` or ``httpx.URL``
            file_name: Destination name, relative to the download directory
            headers: Optional request headers
            on_progress: Optional sync or async callback(bytes_received, total_bytes)
            chunk_size: Read size in bytes (defaults to settings.chunk_size)

        Returns:
            Path of the complete file, also registered in ``downloaded_files``

        Raises:
            HTTPChainError: On invalid arguments, transport failure, stream or
                write failure, or status >= 400. No file is left behind.
        """
        target = self.to_url(url)
        if not isinstance(file_name, str) or not file_name.strip():
            raise HTTPChainError(
                message=f"File name must be a non-empty string, got {file_name!r}",
                url=str(target),
            )

        file_path = self.destination_for(file_name, url=str(target))

        async with self._exclusive_destination(file_path):
            size_bytes = await self._download_to_file(
                target,
                file_path,
                headers=headers,
                on_progress=on_progress,
                chunk_size=chunk_size or self.settings.chunk_size,
            )
            self.downloaded_files.track(file_name, file_path)

        self._logger.debug(
            "file_download.tracked",
            file_name=file_name,
            file_path=str(file_path),
            size_bytes=size_bytes,
        )
        return file_path

    async def _download_to_file(
        self,
        url: httpx.URL,
        file_path: Path,
        headers: Optional[Mapping[str, str]],
        on_progress: Optional[ProgressCallback],
        chunk_size: int,
    ) -> int:
        """Stream ``url`` into ``file_path``; returns the number of bytes written."""
        url_str = str(url)
        request = self._build_request("GET", url, headers)

        self._logger.info("file_download.started", url=url_str, file_path=str(file_path))
        start = time.perf_counter()

        await self._interceptors.run_on_request(request)

        try:
            response = await self._get_client().send(request, stream=True)
        except Exception as exc:
            await self._fail(
                exc,
                f"Failed to send download request to {url_str}: {exc}",
                url=url_str,
                event="file_download.failed",
            )

        total_bytes = parse_content_length(response.headers)
        bytes_received = 0

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                async for chunk in response.aiter_bytes(chunk_size=chunk_size):
                    await f.write(chunk)
                    bytes_received += len(chunk)

                    if on_progress is not None:
                        await maybe_await(on_progress(bytes_received, total_bytes))
        except Exception as exc:
            await self._close_quietly(response)
            file_path.unlink(missing_ok=True)
            status = response.status_code if response.status_code >= 400 else None
            await self._fail(
                exc,
                f"Error during download: {exc}",
                url=url_str,
                event="file_download.failed",
                status_code=status,
            )

        await self._close_quietly(response)

        # Interceptors see status and headers only; the body is on disk.
        terminal = httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            request=request,
        )
        try:
            await self._interceptors.run_on_response(terminal)
        except BaseException:
            file_path.unlink(missing_ok=True)
            raise

        status = response.status_code
        if status >= 400:
            file_path.unlink(missing_ok=True)
            await self._fail(
                HTTPChainError(
                    message=f"HTTP request failed with status code: {status}",
                    status_code=status,
                    url=url_str,
                ),
                "",
                url=url_str,
                event="file_download.failed",
            )

        duration_ms = int((time.perf_counter() - start) * 1000)
        self._logger.info(
            "file_download.completed",
            url=url_str,
            file_path=str(file_path),
            status_code=status,
            size_bytes=bytes_received,
            total_bytes=total_bytes,
            duration_ms=duration_ms,
        )
        return bytes_received
