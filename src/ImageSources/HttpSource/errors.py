# === NAVMAP v1 ===
# {
#   "module": "ImageSources.HttpSource.errors",
#   "purpose": "Resolver-facing error taxonomy and HTTP outcome mapping",
#   "sections": [
#     {"id": "base", "name": "HttpSourceError", "anchor": "class-httpsourceerror", "kind": "class"},
#     {"id": "kinds", "name": "Error kinds", "anchor": "KND", "kind": "api"},
#     {"id": "error-for-status", "name": "error_for_status", "anchor": "function-error-for-status", "kind": "function"},
#     {"id": "error-for-exception", "name": "error_for_exception", "anchor": "function-error-for-exception", "kind": "function"},
#     {"id": "raise-for-status", "name": "raise_for_status", "anchor": "function-raise-for-status", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Error taxonomy shared by the HTTP source resolver.

Responsibilities
----------------
- Define the small set of terminal error kinds a caller needs to tell
  "does not exist", "access denied", "misconfigured" and "timed out" apart.
- Translate HTTP status codes and transport exceptions into those kinds via
  :func:`error_for_status` and :func:`error_for_exception`.

Design Notes
------------
- None of these errors are retried internally; each one ends the current
  resolution attempt.
- The mapping helpers are pure so they can be exercised with table-driven
  tests and reused from both the HEAD probe and the strict GET path.
"""

from __future__ import annotations

from typing import Optional

import httpx

__all__ = (
    "HttpSourceError",
    "ConfigurationError",
    "NotFoundError",
    "AccessDeniedError",
    "SourceTimeoutError",
    "ResolutionFailure",
    "DelegateError",
    "InvalidURIError",
    "error_for_status",
    "error_for_exception",
    "raise_for_status",
)


class HttpSourceError(RuntimeError):
    """Base exception for HTTP source resolution failures."""

    def __init__(self, message: str, *, uri: Optional[str] = None) -> None:
        super().__init__(message)
        self.uri = uri


class ConfigurationError(HttpSourceError):
    """Raised when the lookup strategy or its settings are invalid."""


class NotFoundError(HttpSourceError):
    """Raised when the remote resource does not exist."""


class AccessDeniedError(HttpSourceError):
    """Raised when the remote resource refuses access or auth negotiation fails."""


class SourceTimeoutError(HttpSourceError, TimeoutError):
    """Raised when no response arrives before the request deadline."""


class ResolutionFailure(HttpSourceError):
    """Raised for any other unsuccessful outcome; keeps status and reason."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: str = "",
        uri: Optional[str] = None,
    ) -> None:
        super().__init__(message, uri=uri)
        self.status_code = status_code
        self.reason = reason


class DelegateError(HttpSourceError):
    """Raised when the delegate invocation itself fails."""


class InvalidURIError(HttpSourceError, ValueError):
    """Raised when a string is not a syntactically valid URI."""


def _status_line(status_code: int, reason: str) -> str:
    return f"HTTP {status_code}: {reason}" if reason else f"HTTP {status_code}"


def error_for_status(
    status_code: int,
    reason: str = "",
    uri: Optional[str] = None,
) -> Optional[HttpSourceError]:
    """Return the error kind for ``status_code``, or ``None`` when it is not an error.

    Examples:
        >>> type(error_for_status(410)).__name__
        'NotFoundError'
        >>> error_for_status(204) is None
        True
    """

    if status_code < 400:
        return None
    message = _status_line(status_code, reason)
    if status_code in (404, 410):
        return NotFoundError(message, uri=uri)
    if status_code == 401:
        return AccessDeniedError(message, uri=uri)
    return ResolutionFailure(message, status_code=status_code, reason=reason, uri=uri)


def error_for_exception(exc: BaseException, uri: Optional[str] = None) -> HttpSourceError:
    """Map a transport-level exception onto the error taxonomy."""

    if isinstance(exc, HttpSourceError):
        return exc
    if isinstance(exc, (httpx.TimeoutException, TimeoutError, InterruptedError)):
        return SourceTimeoutError(str(exc) or "request timed out", uri=uri)
    if isinstance(exc, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return ResolutionFailure(f"Unusable source URI: {exc}", uri=uri)
    if isinstance(exc, httpx.TransportError):
        # TLS handshakes, refused connections and protocol errors all land here.
        return AccessDeniedError(uri or str(exc), uri=uri)
    return ResolutionFailure(str(exc) or type(exc).__name__, uri=uri)


def raise_for_status(response: httpx.Response) -> httpx.Response:
    """Raise the mapped error when ``response`` carries an error status."""

    try:
        uri: Optional[str] = str(response.request.url)
    except RuntimeError:  # response built without a request
        uri = None
    error = error_for_status(response.status_code, response.reason_phrase, uri)
    if error is not None:
        raise error
    return response
