from .config import (
    ClientSettings,
    RetryPolicy,
    Timeouts
)
from .records import FileRecord

__all__ = [
    # Config Models
    "ClientSettings",
    "RetryPolicy",
    "Timeouts",

    # Registry Models
    "FileRecord",
]
