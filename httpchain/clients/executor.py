from __future__ import annotations
import time
from typing import Any, Mapping, Optional

import httpx

from .base import BaseClient, URLTypes
from ..exceptions import HTTPChainError

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


class RequestExecutor(BaseClient):
    """
    Executes ordinary (fully buffered) HTTP requests.

    Lifecycle of a call:
      1. validate the URL (fails fast, no interceptor notified)
      2. ``on_request`` hooks, which may mutate the request
      3. send through the transport
      4. read the whole body
      5. status >= 400 -> ``on_error`` + HTTPChainError(status_code=status)
         otherwise      -> ``on_response`` + return the response

    Transport and body-read failures are wrapped in HTTPChainError, passed to
    ``on_error`` hooks, then raised.

    Example:
        async with HTTPSClient() as client:
            response = await client.get("https://api.example.com/items/1")
            print(response.json())
    """

    async def execute(
        self,
        method: str,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Response:
        """
        Send a request and return the fully read response.

        Args:
            method: GET, POST, PUT, PATCH or DELETE
            url: Absolute URL as ``str`` or ``httpx.URL``
            headers: Optional request headers
            body: Optional body (str, bytes, or a JSON-serializable value)
            encoding: Text encoding for ``str``/JSON bodies (default utf-8)

        Returns:
            httpx.Response with status < 400 and its body read

        Raises:
            HTTPChainError: On invalid arguments, transport failure, body read
                failure, or status >= 400
        """
        target = self.to_url(url)
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise HTTPChainError(
                message=f"Unsupported HTTP method: {method}",
                url=str(target),
            )

        request = self._build_request(method, target, headers, body, encoding)
        url_str = str(target)
        self._logger.info("request.started", method=method, url=url_str)
        start = time.perf_counter()

        await self._interceptors.run_on_request(request)

        try:
            response = await self._get_client().send(request, stream=True)
        except Exception as exc:
            await self._fail(
                exc,
                f"Failed to send {method} request to {url_str}: {exc}",
                url=url_str,
                event="request.failed",
            )

        try:
            await response.aread()
        except Exception as exc:
            await self._close_quietly(response)
            await self._fail(
                exc,
                f"Failed to process response: {exc}",
                url=url_str,
                event="request.failed",
            )

        status = response.status_code
        if status >= 400:
            await self._fail(
                HTTPChainError(
                    message=f"HTTP request failed with status code: {status}",
                    status_code=status,
                    url=url_str,
                ),
                "",
                url=url_str,
                event="request.failed",
            )

        duration_ms = (time.perf_counter() - start) * 1000
        self._logger.info(
            "request.completed",
            method=method,
            url=url_str,
            status_code=status,
            size_bytes=len(response.content),
            duration_ms=round(duration_ms, 2),
        )

        await self._interceptors.run_on_response(response)
        return response

    async def request(self, method: str, url: URLTypes, **kwargs: Any) -> httpx.Response:
        """Alias of :meth:`execute`."""
        return await self.execute(method, url, **kwargs)

    async def get(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return await self.execute("GET", url, headers=headers)

    async def post(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Response:
        return await self.execute("POST", url, headers=headers, body=body, encoding=encoding)

    async def put(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Response:
        return await self.execute("PUT", url, headers=headers, body=body, encoding=encoding)

    async def patch(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Response:
        return await self.execute("PATCH", url, headers=headers, body=body, encoding=encoding)

    async def delete(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return await self.execute("DELETE", url, headers=headers)
