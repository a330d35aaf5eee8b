from .base import BaseClient
from .executor import RequestExecutor
from .download import DownloadEngine
from .client import HTTPSClient
from .retry import RetryClient

__all__ = [
    "BaseClient",
    "RequestExecutor",
    "DownloadEngine",
    "HTTPSClient",
    "RetryClient",
]
