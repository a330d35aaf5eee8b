from .logging import (
    HttpchainLoggerAdapter,
    configure_logging,
    get_httpchain_logger,
    log_exception,
    log_retry,
)

__all__ = [
    "HttpchainLoggerAdapter",
    "configure_logging",
    "get_httpchain_logger",
    "log_exception",
    "log_retry",
]
