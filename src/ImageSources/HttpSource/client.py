# === NAVMAP v1 ===
# {
#   "module": "ImageSources.HttpSource.client",
#   "purpose": "Shared HTTPX client with protocol negotiation and Basic auth store",
#   "sections": [
#     {"id": "basicauthstore", "name": "BasicAuthStore", "anchor": "class-basicauthstore", "kind": "class"},
#     {"id": "httpclientmanager", "name": "HttpClientManager", "anchor": "class-httpclientmanager", "kind": "class"},
#     {"id": "get-http-client-manager", "name": "get_http_client_manager", "anchor": "function-get-http-client-manager", "kind": "function"},
#     {"id": "reset-http-client-manager", "name": "reset_http_client_manager", "anchor": "function-reset-http-client-manager", "kind": "function"},
#     {"id": "create-ssl-context", "name": "_create_ssl_context", "anchor": "function-create-ssl-context", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Shared HTTPX client for the HTTP source resolver.

**Purpose**
-----------
Every resolution request in the process goes through one ``httpx.Client``
so TCP/TLS connections and HTTP/2 streams are pooled across requests.

**Design**
----------
- **Lazy initialization**: the client is built on the first
  :meth:`HttpClientManager.get_client` call, under a double-checked lock, so
  concurrent first callers all observe the same instance.
- **Transport**: HTTP/2 over TLS when ``h2`` is installed and the ``ssl``
  module supports ALPN; HTTP/1.1 otherwise. Plaintext requests always use
  HTTP/1.1 (no h2c).
- **TLS**: certifi CA bundle by default; ``trust_all_certs`` disables
  verification for self-signed or otherwise invalid certificates.
- **Redirects**: always followed.
- **Auth**: a :class:`BasicAuthStore` attached as the client's auth sends
  Basic credentials preemptively to any URI they were registered for.
  Registration is additive and safe to repeat from many threads.

Example:
    >>> manager = HttpClientManager()
    >>> client = manager.get_client(ResourceInfo("https://example.org/a.jpg", "u", "p"))
    >>> manager.close()
"""

from __future__ import annotations

import base64
import importlib.util
import logging
import ssl
import threading
from typing import Callable, Dict, Generator, Optional, Tuple
from urllib.parse import urlsplit

import certifi
import httpx

from .models import ResourceInfo
from .settings import DEFAULT_REQUEST_TIMEOUT, HttpSourceSettings
from .urls import uri_matches

__all__ = (
    "BasicAuthStore",
    "HttpClientManager",
    "ClientFactory",
    "http2_available",
    "get_http_client_manager",
    "reset_http_client_manager",
)

LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[], httpx.Client]


def http2_available() -> bool:
    """Return ``True`` when HTTP/2 can be negotiated over TLS in this runtime."""

    return bool(getattr(ssl, "HAS_ALPN", False)) and importlib.util.find_spec("h2") is not None


def _basic_header(username: str, secret: str) -> str:
    token = base64.b64encode(f"{username}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class BasicAuthStore(httpx.Auth):
    """Thread-safe store of Basic credentials keyed by the URI they cover.

    Credentials are matched once per top-level request. Hops of a redirect
    are not re-matched, so a redirect to another origin carries no
    credentials even when some are registered for the target.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, str]] = {}

    def add(self, uri: str, username: str, secret: str) -> None:
        """Register credentials for ``uri`` and every URI beneath its path.

        Args:
            uri: Absolute URI whose scheme, host, port and path prefix scope
                the credentials.
            username: Basic auth user name.
            secret: Basic auth password.

        Re-registering the same URI replaces its credentials.
        """

        with self._lock:
            self._entries[uri] = (username, secret)

    def find(self, url: str) -> Optional[Tuple[str, str]]:
        """Return credentials of the most specific registration covering ``url``."""

        with self._lock:
            entries = list(self._entries.items())
        best: Optional[Tuple[str, str]] = None
        best_length = -1
        for registered, credentials in entries:
            if not uri_matches(registered, url):
                continue
            length = len(urlsplit(registered).path)
            if length > best_length:
                best, best_length = credentials, length
        return best

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if "Authorization" not in request.headers:
            credentials = self.find(str(request.url))
            if credentials is not None:
                request.headers["Authorization"] = _basic_header(*credentials)
        yield request


def _create_ssl_context(trust_all_certs: bool) -> ssl.SSLContext:
    """Create the SSL context used for HTTPS sources."""

    if trust_all_certs:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        LOGGER.warning("TLS certificate validation DISABLED (trust_all_certs=true)")
        return ctx

    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


class HttpClientManager:
    """Owns the shared client and its authentication store.

    Args:
        settings: Source settings; only ``trust_all_certs``, ``http2`` and
            ``request_timeout`` are read.
        client_factory: Optional zero-argument callable returning an
            ``httpx.Client``. Tests use it to inject a ``MockTransport``.
    """

    def __init__(
        self,
        settings: Optional[HttpSourceSettings] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._trust_all_certs = settings.trust_all_certs if settings else False
        self._http2 = settings.http2 if settings else True
        self._timeout = settings.request_timeout if settings else DEFAULT_REQUEST_TIMEOUT
        self._factory = client_factory
        self._client: Optional[httpx.Client] = None
        self._lock = threading.Lock()
        self.auth_store = BasicAuthStore()

    def get_client(self, info: Optional[ResourceInfo] = None) -> httpx.Client:
        """Return the shared client, registering ``info``'s credentials if present."""

        client = self._client
        if client is None:
            with self._lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = self._build_client()
                client = self._client

        if info is not None and info.has_credentials:
            self.auth_store.add(info.uri, info.username, info.secret)  # type: ignore[arg-type]
        return client

    def _build_client(self) -> httpx.Client:
        if self._factory is not None:
            client = self._factory()
            client.auth = self.auth_store
            client.follow_redirects = True
            LOGGER.debug("HTTP client created from factory")
            return client

        use_http2 = self._http2 and http2_available()
        ssl_ctx = _create_ssl_context(self._trust_all_certs)
        client = httpx.Client(
            http2=use_http2,
            verify=ssl_ctx,
            follow_redirects=True,
            timeout=httpx.Timeout(self._timeout),
            auth=self.auth_store,
        )
        LOGGER.debug(
            "HTTP client created",
            extra={
                "extra_fields": {
                    "http2": use_http2,
                    "trust_all_certs": self._trust_all_certs,
                    "timeout_s": self._timeout,
                }
            },
        )
        return client

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def close(self) -> None:
        """Close the client. Safe to call repeatedly; the next use rebuilds it."""

        with self._lock:
            if self._client is not None:
                try:
                    self._client.close()
                    LOGGER.debug("HTTP client closed")
                finally:
                    self._client = None


_default_manager: Optional[HttpClientManager] = None
_default_lock = threading.Lock()


def get_http_client_manager(settings: Optional[HttpSourceSettings] = None) -> HttpClientManager:
    """Return the process-wide manager, creating it from ``settings`` on first use.

    Settings passed after the manager exists are ignored; call
    :func:`reset_http_client_manager` (tests only) to rebuild.
    """

    global _default_manager

    if _default_manager is not None:
        return _default_manager
    with _default_lock:
        if _default_manager is None:
            _default_manager = HttpClientManager(settings)
        return _default_manager


def reset_http_client_manager() -> None:
    """Close and forget the process-wide manager (tests only)."""

    global _default_manager

    with _default_lock:
        if _default_manager is not None:
            _default_manager.close()
            _default_manager = None
