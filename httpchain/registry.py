"""
Name -> path registries for files produced by the pipeline.

Two independent registries exist per client:

- downloaded files, filled by ``download()`` on success
- temporary files, created on demand with literal content

Registries are plain per-instance state; clients own theirs and can share one
explicitly by passing the same instance to several clients.

Usage:
    registry = FileRegistry("downloaded")
    registry.track("report.pdf", Path("/tmp/report.pdf"))
    registry.get("report.pdf")          # Path('/tmp/report.pdf')
    await registry.delete("report.pdf") # True
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

import aiofiles
import aiofiles.os

from .exceptions import HTTPChainError
from .models.records import FileRecord
from .observability.logging import HttpchainLoggerAdapter, get_httpchain_logger
from .utils import contained_path

__all__ = [
    "FileRegistry",
    "TemporaryFileRegistry",
    "TEMP_DIR_PREFIX",
]

TEMP_DIR_PREFIX = "httpchain_"


class FileRegistry:
    """
    Tracks files by name.

    A path is only accepted if it exists when tracked; lookups do not re-check
    the disk, so an entry may go stale if the file is removed externally.
    Bookkeeping never suspends between reading and updating the mapping.
    """

    def __init__(self, kind: str = "downloaded", logger: Optional[HttpchainLoggerAdapter] = None):
        self.kind = kind
        self._entries: Dict[str, Path] = {}
        self._logger = logger or get_httpchain_logger(__name__, registry=kind)

    def track(self, name: str, path: Union[str, Path]) -> FileRecord:
        """
        Register ``path`` under ``name``, replacing any previous entry.

        Raises:
            HTTPChainError: If the path does not exist
        """
        path = Path(path)
        if not path.exists():
            raise HTTPChainError(
                message=f"Cannot track {self.kind} file {name!r}: {path} does not exist",
            )
        self._entries[name] = path
        self._logger.debug("registry.tracked", file_name=name, file_path=str(path))
        return FileRecord(name=name, path=path)

    def get(self, name: str) -> Optional[Path]:
        """Path registered under ``name``, or None."""
        return self._entries.get(name)

    def list_files(self) -> Dict[str, Path]:
        """Snapshot of all entries; later changes to the registry do not affect it."""
        return dict(self._entries)

    def records(self) -> list[FileRecord]:
        return [FileRecord(name=name, path=path) for name, path in self._entries.items()]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    async def delete(self, name: str) -> bool:
        """
        Delete the file registered under ``name`` and drop the entry.

        Returns:
            True if a tracked file existed and was deleted. False if the name is
            unknown or the file was already gone (the stale entry is dropped).

        Raises:
            HTTPChainError: If the file exists but cannot be removed
        """
        path = self._entries.get(name)
        if path is None:
            return False

        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            self._forget(name, path)
            await self._after_delete(path)
            self._logger.warning("registry.stale_entry", file_name=name, file_path=str(path))
            return False
        except OSError as exc:
            raise HTTPChainError(
                message=f"Failed to delete {self.kind} file {name}: {exc}",
                cause=exc,
            ) from exc

        self._forget(name, path)
        await self._after_delete(path)
        self._logger.info("registry.deleted", file_name=name, file_path=str(path))
        return True

    async def delete_all(self) -> int:
        """Delete every tracked file; returns how many were actually deleted."""
        count = 0
        for name in list(self._entries):
            if await self.delete(name):
                count += 1
        self._logger.info("registry.cleared", deleted=count)
        return count

    def _forget(self, name: str, path: Path) -> None:
        # Only drop the entry if it was not re-registered while we awaited.
        if self._entries.get(name) == path:
            del self._entries[name]

    async def _after_delete(self, path: Path) -> None:
        """Hook for subclasses; called once a tracked file is gone from disk."""


class TemporaryFileRegistry(FileRegistry):
    """
    Registry for scratch files written with literal content.

    Each file is created inside its own fresh directory under the system temp
    directory; that directory is removed with the file, and a failed create
    removes it as well. Names must be relative and stay inside it.
    """

    def __init__(self, logger: Optional[HttpchainLoggerAdapter] = None):
        super().__init__("temporary", logger=logger)
        self._scopes: Dict[Path, Path] = {}

    async def create(self, name: str, content: str = "", encoding: str = "utf-8") -> Path:
        """
        Create a temporary file named ``name`` containing ``content``.

        A file already tracked under ``name`` is deleted first, together with
        its directory.

        Returns:
            Full path of the created file

        Raises:
            HTTPChainError: If the name escapes the new directory (absolute or
                ``..``), or the file cannot be created or replaced
        """
        if name in self:
            await self.delete(name)

        try:
            scope = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
        except OSError as exc:
            raise HTTPChainError(
                message=f"Failed to create temporary file {name}: {exc}",
                cause=exc,
            ) from exc

        path = contained_path(scope, name)
        if path is None:
            shutil.rmtree(scope, ignore_errors=True)
            raise HTTPChainError(
                message=f"Temporary file name must stay inside its directory, got {name!r}",
            )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "w", encoding=encoding) as f:
                await f.write(content)
        except (OSError, LookupError, ValueError) as exc:
            shutil.rmtree(scope, ignore_errors=True)
            raise HTTPChainError(
                message=f"Failed to create temporary file {name}: {exc}",
                cause=exc,
            ) from exc

        self._scopes[path] = scope
        self.track(name, path)
        self._logger.info("registry.created", file_name=name, file_path=str(path), size_chars=len(content))
        return path

    async def _after_delete(self, path: Path) -> None:
        scope = self._scopes.pop(path, None)
        if scope is not None:
            shutil.rmtree(scope, ignore_errors=True)
