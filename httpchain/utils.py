from __future__ import annotations
import inspect
from pathlib import Path
from typing import Optional

import httpx

__all__ = [
    "contained_path",
    "maybe_await",
    "parse_content_length",
]


async def maybe_await(result):
    """Await value if it is awaitable, otherwise return as-is."""
    if inspect.isawaitable(result):
        return await result
    return result


def parse_content_length(hdrs: httpx.Headers) -> int:
    """Declared Content-Length, or 0 when absent or malformed (0 means unknown)."""
    raw: Optional[str] = hdrs.get("Content-Length")
    if not raw:
        return 0
    try:
        return max(int(raw.strip()), 0)
    except ValueError:
        return 0


def contained_path(base_dir: Path, name: str) -> Optional[Path]:
    """
    ``base_dir / name`` if it resolves to a location strictly below ``base_dir``.

    Returns None for absolute names, names climbing out with ``..`` (including
    through symlinks) and names that resolve to ``base_dir`` itself.
    """
    candidate = Path(base_dir) / name
    root = Path(base_dir).resolve()
    resolved = candidate.resolve()
    if resolved == root or not resolved.is_relative_to(root):
        return None
    return candidate
