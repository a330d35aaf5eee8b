from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..observability.logging import HttpchainLoggerAdapter

DEFAULT_UA = "httpchain/0.1"

@dataclass
class RetryPolicy:
    max_retries: int = 3
    initial_delay_ms: int = 500      # delay before the first retry
    delay_multiplier: float = 1.5    # applied to the delay after each retry

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay_ms < 0:
            raise ValueError(f"initial_delay_ms must be >= 0, got {self.initial_delay_ms}")
        if self.delay_multiplier < 1:
            raise ValueError(f"delay_multiplier must be >= 1, got {self.delay_multiplier}")

@dataclass
class Timeouts:
    connect: float = 5.0
    read: float = 60.0
    write: float = 10.0
    pool: float = 5.0

@dataclass
class ClientSettings:
    # HTTP basics
    user_agent: str = DEFAULT_UA
    accept: str = "*/*"
    accept_encoding: str = "gzip, deflate, br"

    # HTTP behavior (handed to the transport as-is)
    http2: bool = True
    follow_redirects: bool = True
    max_redirects: int = 20
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    timeouts: Timeouts = field(default_factory=Timeouts)

    # Connection pooling
    max_connections: int = 100
    max_keepalive_connections: int = 20

    # Downloads
    chunk_size: int = 65536
    download_dir: Optional[Path] = None  # None -> tempfile.gettempdir()

    # Logging
    logger: Optional["HttpchainLoggerAdapter"] = None  # Optional custom logger instance
