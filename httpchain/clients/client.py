from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional

from .executor import RequestExecutor
from .download import DownloadEngine


class HTTPSClient(RequestExecutor, DownloadEngine):
    """
    Async HTTP client with interceptors, streaming downloads and file registries.

    Combines the request executor (GET/POST/PUT/PATCH/DELETE) and the download
    engine on one httpx client, one interceptor chain and one pair of
    registries. Wrap it in ``RetryClient`` for automatic retries.

    Example:
        async with HTTPSClient() as client:
            client.add_interceptor(LoggingInterceptor())
            response = await client.post("https://api.example.com/items", body={"name": "x"})
            path = await client.download("https://example.com/a.csv", "a.csv")
            await client.delete_all_downloaded_files()
    """

    # Temporary files

    async def create_temp_file(self, name: str, content: str = "") -> Path:
        """Create a tracked temporary file in a fresh directory; returns its path."""
        return await self.temp_files.create(name, content)

    def get_temp_file_path(self, name: str) -> Optional[Path]:
        return self.temp_files.get(name)

    def list_temp_files(self) -> Dict[str, Path]:
        return self.temp_files.list_files()

    async def delete_temp_file(self, name: str) -> bool:
        return await self.temp_files.delete(name)

    async def delete_all_temp_files(self) -> int:
        return await self.temp_files.delete_all()

    # Downloaded files

    def get_downloaded_file(self, name: str) -> Optional[Path]:
        return self.downloaded_files.get(name)

    def list_downloaded_files(self) -> Dict[str, Path]:
        return self.downloaded_files.list_files()

    async def delete_downloaded_file(self, name: str) -> bool:
        return await self.downloaded_files.delete(name)

    async def delete_all_downloaded_files(self) -> int:
        return await self.downloaded_files.delete_all()
