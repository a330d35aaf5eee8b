from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileRecord:
    """A tracked file: registry key and where it lives on disk."""

    name: str
    path: Path
