"""
Error model for the httpchain request pipeline.

Every failure raised by the pipeline is an ``HTTPChainError``. Failures are told
apart by the combination of ``status_code``, ``cause`` and message rather than
by subclasses:

    argument validation      status_code=None, cause=None
    transport send failure   status_code=None, cause=<transport error>
    body/stream failure      status_code=None, cause=<read/write error>
    HTTP status >= 400       status_code=<status>, cause=None
    retry exhausted          wraps the last failure (cause + its status_code)
    retry not retryable      wraps the failure (cause + its status_code)

Usage:
    from httpchain import HTTPChainError

    try:
        response = await client.get(url)
    except HTTPChainError as e:
        if e.status_code == 404:
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = [
    "HTTPChainError",
    "wrap_error",
]


@dataclass(slots=True, eq=False)
class HTTPChainError(Exception):
    """
    Single exception type for all pipeline failures.

    Carries an optional HTTP status code and the original exception that caused
    the failure. The cause is also chained as ``__cause__`` so tracebacks show it.
    """

    message: str
    status_code: Optional[int] = None
    cause: Optional[BaseException] = None
    url: Optional[str] = None

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        if self.url:
            parts.append(f"url={self.url}")
        return " | ".join(parts)


def wrap_error(
    exc: BaseException,
    message: str,
    url: Optional[str] = None,
    status_code: Optional[int] = None,
) -> HTTPChainError:
    """
    Return ``exc`` unchanged if it already is an ``HTTPChainError``, otherwise
    wrap it in one with ``message`` and ``exc`` as the cause.

    Args:
        exc: The original exception
        message: Message for the wrapping error
        url: Optional request URL for context
        status_code: Optional status code for the wrapping error

    Returns:
        HTTPChainError to surface to the caller
    """
    if isinstance(exc, HTTPChainError):
        return exc
    return HTTPChainError(
        message=message,
        status_code=status_code,
        cause=exc,
        url=url,
    )
