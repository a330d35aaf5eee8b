from .clients import (
    BaseClient,
    RequestExecutor,
    DownloadEngine,
    HTTPSClient,
    RetryClient,
)
from .models import (
    ClientSettings,
    RetryPolicy,
    Timeouts,
    FileRecord,
)
from .exceptions import (
    HTTPChainError,
    wrap_error,
)
from .interceptors import (
    Interceptor,
    InterceptorChain,
    HeaderInterceptor,
    LoggingInterceptor,
)
from .registry import (
    FileRegistry,
    TemporaryFileRegistry,
)
from .retry import (
    is_retryable,
    run_with_retry,
)
from .observability.logging import (
    HttpchainLoggerAdapter,
    configure_logging,
    get_httpchain_logger,
)
from . import api


__all__ = [
    # Clients
    "HTTPSClient",
    "RetryClient",

    # Building blocks (for extending)
    "BaseClient",
    "RequestExecutor",
    "DownloadEngine",

    # Configuration
    "ClientSettings",
    "RetryPolicy",
    "Timeouts",

    # Errors
    "HTTPChainError",
    "wrap_error",

    # Interceptors
    "Interceptor",
    "InterceptorChain",
    "HeaderInterceptor",
    "LoggingInterceptor",

    # File registries
    "FileRecord",
    "FileRegistry",
    "TemporaryFileRegistry",

    # Retry
    "is_retryable",
    "run_with_retry",

    # Logging
    "HttpchainLoggerAdapter",
    "configure_logging",
    "get_httpchain_logger",

    # Module-level convenience layer
    "api",
]
