from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

import httpx

from .base import Interceptor


class HeaderInterceptor(Interceptor):
    """
    Adds a fixed set of headers to every outbound request.

    Headers set here override same-named headers already on the request.

    Example:
        client.add_interceptor(HeaderInterceptor({"Authorization": f"Bearer {token}"}))
    """

    def __init__(self, headers: Mapping[str, str]):
        self._headers = MappingProxyType(dict(headers))

    @property
    def headers(self) -> Mapping[str, str]:
        return self._headers

    async def on_request(self, request: httpx.Request) -> None:
        for key, value in self._headers.items():
            request.headers[key] = value
