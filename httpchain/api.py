"""
Module-level convenience functions bound to one shared default client.

All functions forward to ``default_client()``, a lazily created
``HTTPSClient``. Its registries are the only ones this layer uses, so files
downloaded here are visible through ``default_client().downloaded_files``
and vice versa.

Usage:
    from httpchain import api

    response = await api.get("https://api.example.com/items")
    path = await api.download("https://example.com/a.csv", "a.csv")
    await api.aclose()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import httpx

from .clients.base import URLTypes
from .clients.client import HTTPSClient
from .clients.download import ProgressCallback
from .interceptors import Interceptor

_default_client: Optional[HTTPSClient] = None


def default_client() -> HTTPSClient:
    """Return the shared client, creating it on first use."""
    global _default_client
    if _default_client is None:
        _default_client = HTTPSClient()
    return _default_client


def set_default_client(client: Optional[HTTPSClient]) -> None:
    """Replace the shared client (None resets to a fresh one on next use)."""
    global _default_client
    _default_client = client


async def aclose() -> None:
    """Close the shared client's connections. Registries are kept."""
    if _default_client is not None:
        await _default_client.aclose()


async def get(url: URLTypes, headers: Optional[Mapping[str, str]] = None) -> httpx.Response:
    return await default_client().get(url, headers=headers)


async def post(
    url: URLTypes,
    headers: Optional[Mapping[str, str]] = None,
    body: Any = None,
    encoding: Optional[str] = None,
) -> httpx.Response:
    return await default_client().post(url, headers=headers, body=body, encoding=encoding)


async def put(
    url: URLTypes,
    headers: Optional[Mapping[str, str]] = None,
    body: Any = None,
    encoding: Optional[str] = None,
) -> httpx.Response:
    return await default_client().put(url, headers=headers, body=body, encoding=encoding)


async def patch(
    url: URLTypes,
    headers: Optional[Mapping[str, str]] = None,
    body: Any = None,
    encoding: Optional[str] = None,
) -> httpx.Response:
    return await default_client().patch(url, headers=headers, body=body, encoding=encoding)


async def delete(url: URLTypes, headers: Optional[Mapping[str, str]] = None) -> httpx.Response:
    return await default_client().delete(url, headers=headers)


async def download(
    url: URLTypes,
    file_name: str,
    headers: Optional[Mapping[str, str]] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Path:
    return await default_client().download(url, file_name, headers=headers, on_progress=on_progress)


async def create_temp_file(name: str, content: str = "") -> Path:
    return await default_client().create_temp_file(name, content)


def get_temp_file_path(name: str) -> Optional[Path]:
    return default_client().get_temp_file_path(name)


def list_temp_files() -> Dict[str, Path]:
    return default_client().list_temp_files()


async def delete_temp_file(name: str) -> bool:
    return await default_client().delete_temp_file(name)


async def delete_all_temp_files() -> int:
    return await default_client().delete_all_temp_files()


def get_downloaded_file(name: str) -> Optional[Path]:
    return default_client().get_downloaded_file(name)


def list_downloaded_files() -> Dict[str, Path]:
    return default_client().list_downloaded_files()


async def delete_downloaded_file(name: str) -> bool:
    return await default_client().delete_downloaded_file(name)


async def delete_all_downloaded_files() -> int:
    return await default_client().delete_all_downloaded_files()


def add_interceptor(interceptor: Interceptor) -> None:
    default_client().add_interceptor(interceptor)


def remove_interceptor(interceptor: Interceptor) -> None:
    default_client().remove_interceptor(interceptor)
