"""
Logging adapter for the httpchain request pipeline.

This module provides dependency injection for structured logging while keeping
httpchain decoupled from specific logging implementations.

Architecture:
- HttpchainLoggerAdapter wraps any LoggerAdapter and provides event-style helpers
- _logger_factory allows consumers to inject their logger factory
- Default factory uses standard library logging when no custom factory is configured

Usage in httpchain:
    from httpchain.observability.logging import get_httpchain_logger

    logger = get_httpchain_logger(__name__, client="default")
    logger.info("request.started", method="GET", url=url)

Usage in consumer applications (configuring the factory):
    from httpchain.observability.logging import configure_logging
    from myapp.logging import get_custom_logger

    configure_logging(logger_factory=get_custom_logger)

Field names passed as ``extra`` must not collide with ``logging.LogRecord``
attributes (``name``, ``message``, ``filename``, ``module``...).
"""

from __future__ import annotations

import logging
from logging import Logger, LoggerAdapter
from typing import Any, Callable, Dict, MutableMapping, Optional


# Global logger factory (can be injected by embedding applications)
_logger_factory: Optional[Callable[..., LoggerAdapter]] = None


class HttpchainLoggerAdapter:
    """
    Thin wrapper around LoggerAdapter providing event-style logging helpers.

    Keeps event naming and metadata structure consistent across the package
    while allowing flexible backend implementations.
    """

    def __init__(self, logger: LoggerAdapter, context: Optional[Dict[str, Any]] = None):
        """
        Initialize the adapter.

        Args:
            logger: Underlying LoggerAdapter (from custom logger or stdlib)
            context: Additional context to bind to all log records
        """
        self._logger = logger
        self._context = context or {}

    def _merge_context(self, **extra: Any) -> Dict[str, Any]:
        """Merge bound context with extra fields."""
        return {**self._context, **extra}

    def debug(self, event: str, **extra: Any) -> None:
        """Log DEBUG-level event."""
        self._logger.debug(event, extra=self._merge_context(**extra))

    def info(self, event: str, **extra: Any) -> None:
        """Log INFO-level event."""
        self._logger.info(event, extra=self._merge_context(**extra))

    def warning(self, event: str, **extra: Any) -> None:
        """Log WARNING-level event."""
        self._logger.warning(event, extra=self._merge_context(**extra))

    def error(self, event: str, exc_info: Optional[BaseException] = None, **extra: Any) -> None:
        """Log ERROR-level event."""
        self._logger.error(event, extra=self._merge_context(**extra), exc_info=exc_info)


class _ContextLoggerAdapter(LoggerAdapter):
    """LoggerAdapter that merges call-site ``extra`` over the bound context."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def _default_logger_factory(name: str, **context: Any) -> LoggerAdapter:
    """
    Default logger factory using standard library logging.

    Returns a basic LoggerAdapter when no custom factory is configured.
    """
    base_logger: Logger = logging.getLogger(name)
    return _ContextLoggerAdapter(base_logger, context)


def configure_logging(logger_factory: Optional[Callable[..., LoggerAdapter]]) -> None:
    """
    Configure httpchain to use a custom logger factory.

    Args:
        logger_factory: Callable that returns a LoggerAdapter, signature:
                       (name: str, **context) -> LoggerAdapter.
                       Pass None to restore the stdlib default.
    """
    global _logger_factory
    _logger_factory = logger_factory


def get_httpchain_logger(name: str, **context: Any) -> HttpchainLoggerAdapter:
    """
    Get an httpchain logger with bound context.

    Uses the configured logger factory if set, otherwise falls back to stdlib logging.

    Args:
        name: Logger name (typically __name__)
        **context: Context to bind to every record

    Returns:
        HttpchainLoggerAdapter with bound context
    """
    factory = _logger_factory or _default_logger_factory
    base_logger = factory(name, **context)

    return HttpchainLoggerAdapter(base_logger, context)


def log_exception(
    logger: HttpchainLoggerAdapter,
    exc: BaseException,
    event: str,
    **context: Any
) -> None:
    """
    Log an exception with httpchain context.

    Args:
        logger: Logger instance
        exc: Exception to log
        event: Event name (e.g., "request.failed")
        **context: Additional context

    Usage:
        try:
            response = await client.get(url)
        except HTTPChainError as exc:
            log_exception(logger, exc, "request.failed", method="GET")
            raise
    """
    error_context = {
        **context,
        "error_type": exc.__class__.__name__,
        "error_message": str(exc),
    }
    status_code = getattr(exc, "status_code", None)
    if status_code is not None:
        error_context.setdefault("status_code", status_code)

    logger.error(event, exc_info=exc, **error_context)


def log_retry(
    logger: HttpchainLoggerAdapter,
    attempt: int,
    max_retries: int,
    delay_ms: float,
    reason: str,
    **context: Any
) -> None:
    """
    Log a retry attempt with backoff details.

    Args:
        logger: Logger instance
        attempt: Number of failed attempts so far (1-indexed)
        max_retries: Maximum retries allowed by the policy
        delay_ms: Backoff delay in milliseconds
        reason: Why the failed attempt is being retried
        **context: Additional context
    """
    logger.warning(
        "request.retry",
        attempt=attempt,
        max_retries=max_retries,
        delay_ms=round(delay_ms, 2),
        reason=reason,
        **context
    )
