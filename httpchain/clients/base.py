from __future__ import annotations
import contextlib
import json
from typing import Any, Mapping, NoReturn, Optional, Union

import httpx

from ..models.config import ClientSettings
from ..exceptions import HTTPChainError, wrap_error
from ..interceptors import Interceptor, InterceptorChain
from ..registry import FileRegistry, TemporaryFileRegistry
from ..observability.logging import get_httpchain_logger, log_exception

URLTypes = Union[str, httpx.URL]

class BaseClient:
    """
    Shared plumbing for the request executor and the download engine.

    Provides:
      - Lazy httpx.AsyncClient management (built from ClientSettings)
      - The interceptor chain and its add/remove surface
      - Downloaded/temporary file registries owned by this instance
      - URL coercion and request construction
      - Uniform failure path: wrap, notify interceptors, raise

    A custom httpx transport can be injected (e.g. ``httpx.MockTransport``);
    otherwise httpx's network transport is used.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        downloaded_files: Optional[FileRegistry] = None,
        temp_files: Optional[TemporaryFileRegistry] = None,
    ):
        self.settings = settings or ClientSettings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._logger = self.settings.logger or get_httpchain_logger(__name__)
        self._interceptors = InterceptorChain()

        # Registries may be shared by passing the same instance to several clients.
        if downloaded_files is None:
            downloaded_files = FileRegistry("downloaded", logger=self.settings.logger)
        if temp_files is None:
            temp_files = TemporaryFileRegistry(logger=self.settings.logger)
        self.downloaded_files = downloaded_files
        self.temp_files = temp_files

    @property
    def interceptors(self) -> InterceptorChain:
        return self._interceptors

    def add_interceptor(self, interceptor: Interceptor) -> None:
        """Append an interceptor; it runs after all previously added ones."""
        self._interceptors.add(interceptor)

    def remove_interceptor(self, interceptor: Interceptor) -> None:
        """Remove an interceptor; no-op if it was never added."""
        self._interceptors.remove(interceptor)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "User-Agent": self.settings.user_agent,
                    "Accept": self.settings.accept,
                    "Accept-Encoding": self.settings.accept_encoding,
                },
                timeout=httpx.Timeout(
                    connect=self.settings.timeouts.connect,
                    read=self.settings.timeouts.read,
                    write=self.settings.timeouts.write,
                    pool=self.settings.timeouts.pool,
                ),
                http2=self.settings.http2,
                limits=httpx.Limits(
                    max_keepalive_connections=self.settings.max_keepalive_connections,
                    max_connections=self.settings.max_connections,
                ),
                follow_redirects=self.settings.follow_redirects,
                max_redirects=self.settings.max_redirects,
                transport=self._transport,
            )
            self._logger.debug(
                "client.initialized",
                http2=self.settings.http2,
                follow_redirects=self.settings.follow_redirects,
                max_connections=self.settings.max_connections,
                custom_transport=self._transport is not None,
            )
        return self._client

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client. Registries are left untouched."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._logger.debug("client.closed")

    @staticmethod
    def to_url(url: Any) -> httpx.URL:
        """
        Coerce a ``str`` or ``httpx.URL`` into an absolute ``httpx.URL``.

        Raises:
            HTTPChainError: For any other type, an unparsable string or a
                relative URL. No interceptor is notified.
        """
        if isinstance(url, httpx.URL):
            parsed = url
        elif isinstance(url, str):
            try:
                parsed = httpx.URL(url)
            except httpx.InvalidURL as exc:
                raise HTTPChainError(
                    message=f"Invalid URL {url!r}: {exc}",
                    cause=exc,
                    url=url,
                ) from exc
        else:
            raise HTTPChainError(
                message=f"URL must be a str or httpx.URL, got {type(url).__name__}",
            )

        if not parsed.is_absolute_url:
            raise HTTPChainError(
                message=f"URL must be absolute: {str(parsed)!r}",
                url=str(parsed),
            )
        return parsed

    def _build_request(
        self,
        method: str,
        url: httpx.URL,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        encoding: Optional[str] = None,
    ) -> httpx.Request:
        """
        Build the outbound request.

        ``str`` bodies are encoded with ``encoding`` (default utf-8), ``bytes``
        are sent unchanged, anything else is serialized to JSON first.
        """
        request_headers = httpx.Headers(headers or {})
        content: Optional[bytes] = None

        if body is not None:
            charset = encoding or "utf-8"
            try:
                if isinstance(body, (bytes, bytearray)):
                    content = bytes(body)
                elif isinstance(body, str):
                    content = body.encode(charset)
                    request_headers.setdefault("Content-Type", f"text/plain; charset={charset}")
                else:
                    content = json.dumps(body).encode(charset)
                    request_headers.setdefault("Content-Type", f"application/json; charset={charset}")
            except (LookupError, TypeError, ValueError) as exc:
                raise HTTPChainError(
                    message=f"Failed to encode request body: {exc}",
                    cause=exc,
                    url=str(url),
                ) from exc

        return self._get_client().build_request(
            method,
            url,
            headers=request_headers,
            content=content,
        )

    async def _fail(
        self,
        exc: BaseException,
        message: str,
        url: str,
        event: str,
        status_code: Optional[int] = None,
    ) -> NoReturn:
        """
        Surface a failure: wrap non-core errors, log, run ``on_error`` hooks, raise.

        An ``HTTPChainError`` from a deeper layer is raised as-is.
        """
        error = wrap_error(exc, message, url=url, status_code=status_code)
        log_exception(self._logger, error, event, url=url)
        await self._interceptors.run_on_error(error)
        if error is exc:
            raise error
        raise error from exc

    @staticmethod
    async def _close_quietly(response: httpx.Response) -> None:
        with contextlib.suppress(Exception):
            await response.aclose()
