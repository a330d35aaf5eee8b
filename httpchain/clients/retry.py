from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

import httpx

from .base import URLTypes
from .client import HTTPSClient
from .download import ProgressCallback
from ..interceptors import Interceptor
from ..models.config import RetryPolicy
from ..retry import run_with_retry

T = TypeVar("T")


class RetryClient:
    """
    Retrying facade over an ``HTTPSClient``.

    Every call is re-run through ``run_with_retry`` on retryable failures
    (5xx responses, send/connection/network errors). Interceptors are those of
    the wrapped client, so they observe every attempt.

    Example:
        async with RetryClient(HTTPSClient(), RetryPolicy(max_retries=5)) as client:
            response = await client.get("https://api.example.com/flaky")
    """

    def __init__(
        self,
        client: HTTPSClient,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.policy = policy or client.settings.retry
        self._sleep = sleep
        self._logger = client._logger

    async def __aenter__(self) -> "RetryClient":
        await self.client.__aenter__()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.client.__aexit__(*exc)

    def add_interceptor(self, interceptor: Interceptor) -> None:
        self.client.add_interceptor(interceptor)

    def remove_interceptor(self, interceptor: Interceptor) -> None:
        self.client.remove_interceptor(interceptor)

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run any zero-argument coroutine function under this client's policy."""
        return await run_with_retry(
            operation,
            self.policy,
            logger=self._logger,
            sleep=self._sleep,
        )

    async def get(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return await self.call(lambda: self.client.get(url, headers=headers))

    async def post(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Response:
        return await self.call(
            lambda: self.client.post(url, headers=headers, body=body, encoding=encoding)
        )

    async def put(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Response:
        return await self.call(
            lambda: self.client.put(url, headers=headers, body=body, encoding=encoding)
        )

    async def patch(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Response:
        return await self.call(
            lambda: self.client.patch(url, headers=headers, body=body, encoding=encoding)
        )

    async def delete(
        self,
        url: URLTypes,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return await self.call(lambda: self.client.delete(url, headers=headers))

    async def download(
        self,
        url: URLTypes,
        file_name: str,
        headers: Optional[Mapping[str, str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        return await self.call(
            lambda: self.client.download(url, file_name, headers=headers, on_progress=on_progress)
        )
