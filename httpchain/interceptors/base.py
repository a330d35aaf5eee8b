from __future__ import annotations

from typing import Iterator, List, Union

import httpx

from ..exceptions import HTTPChainError
from ..utils import maybe_await


class Interceptor:
    """
    Base class for request/response observers.

    Every hook is optional: the defaults do nothing. ``on_request`` may mutate
    the outbound request (e.g. inject headers); ``on_response`` and ``on_error``
    only observe and their return values are ignored.

    Example:
        class TimingInterceptor(Interceptor):
            async def on_request(self, request):
                request.extensions["started"] = time.perf_counter()
    """

    async def on_request(self, request: httpx.Request) -> None:
        """Called before a request is sent."""

    async def on_response(self, response: httpx.Response) -> None:
        """Called after a successful response is received."""

    async def on_error(self, error: Union[HTTPChainError, BaseException]) -> None:
        """Called when a request or download fails."""


class InterceptorChain:
    """
    Ordered interceptors, invoked one at a time in registration order.

    Failures raised by a hook are not caught here; they propagate to the caller
    of the ``run_*`` method.
    """

    def __init__(self) -> None:
        self._interceptors: List[Interceptor] = []

    def add(self, interceptor: Interceptor) -> None:
        self._interceptors.append(interceptor)

    def remove(self, interceptor: Interceptor) -> None:
        """Remove the first matching interceptor; no-op if it is not registered."""
        try:
            self._interceptors.remove(interceptor)
        except ValueError:
            pass

    def clear(self) -> None:
        self._interceptors.clear()

    def __len__(self) -> int:
        return len(self._interceptors)

    def __iter__(self) -> Iterator[Interceptor]:
        return iter(list(self._interceptors))

    def __contains__(self, interceptor: object) -> bool:
        return interceptor in self._interceptors

    # Each run works on a snapshot, so hooks that add or remove interceptors
    # only affect later invocations.

    async def run_on_request(self, request: httpx.Request) -> None:
        for interceptor in list(self._interceptors):
            await maybe_await(interceptor.on_request(request))

    async def run_on_response(self, response: httpx.Response) -> None:
        for interceptor in list(self._interceptors):
            await maybe_await(interceptor.on_response(response))

    async def run_on_error(self, error: BaseException) -> None:
        for interceptor in list(self._interceptors):
            await maybe_await(interceptor.on_error(error))
