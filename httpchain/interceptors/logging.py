from __future__ import annotations

from typing import Optional

import httpx

from .base import Interceptor
from ..observability.logging import HttpchainLoggerAdapter, get_httpchain_logger


class LoggingInterceptor(Interceptor):
    """
    Logs outbound requests, inbound responses and errors.

    Each kind of event can be switched off independently. Events are emitted at
    DEBUG (request/response) and ERROR (error) level as ``http.request``,
    ``http.response`` and ``http.error``.
    """

    def __init__(
        self,
        log_requests: bool = True,
        log_responses: bool = True,
        log_errors: bool = True,
        logger: Optional[HttpchainLoggerAdapter] = None,
    ):
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_errors = log_errors
        self._logger = logger or get_httpchain_logger(__name__)

    async def on_request(self, request: httpx.Request) -> None:
        if not self.log_requests:
            return
        try:
            body = request.content.decode("utf-8", "replace") or None
        except httpx.RequestNotRead:
            body = None
        self._logger.debug(
            "http.request",
            method=request.method,
            url=str(request.url),
            headers=dict(request.headers),
            body=body,
        )

    async def on_response(self, response: httpx.Response) -> None:
        if not self.log_responses:
            return
        try:
            body = response.text or None
        except httpx.ResponseNotRead:
            body = None
        self._logger.debug(
            "http.response",
            status_code=response.status_code,
            url=_response_url(response),
            headers=dict(response.headers),
            body=body,
        )

    async def on_error(self, error: BaseException) -> None:
        if not self.log_errors:
            return
        self._logger.error(
            "http.error",
            error_type=error.__class__.__name__,
            error_message=str(error),
            status_code=getattr(error, "status_code", None),
        )


def _response_url(response: httpx.Response) -> Optional[str]:
    try:
        return str(response.request.url)
    except RuntimeError:
        # Response built without an attached request.
        return None
