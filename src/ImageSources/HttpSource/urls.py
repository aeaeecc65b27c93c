"""URI syntax checks and authentication-scope matching.

Identifiers are opaque, so a URI assembled from ``prefix + identifier +
suffix`` may contain anything. :func:`parse_uri` applies RFC 3986 syntax
rules strictly enough to reject whitespace, stray reserved characters and
broken percent escapes, while accepting relative references and non-ASCII
letters the way an IRI would.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional, Tuple
from urllib.parse import SplitResult, urlsplit

from .errors import InvalidURIError

__all__ = ("parse_uri", "uri_matches", "default_port")

_ALLOWED_ASCII = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "-._~:/?#[]@!$&'()*+,;=%"
)
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_SCHEME_PREFIX = re.compile(r"^([^:/?#]*):")
_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_DEFAULT_PORTS = {"http": 80, "https": 443}


def _check_characters(text: str) -> None:
    for index, char in enumerate(text):
        if char.isascii():
            if char not in _ALLOWED_ASCII:
                raise InvalidURIError(f"Illegal character {char!r} at index {index}: {text}")
        elif unicodedata.category(char)[0] in ("C", "Z"):
            raise InvalidURIError(f"Illegal character {char!r} at index {index}: {text}")


def parse_uri(text: str) -> str:
    """Validate ``text`` as a URI reference and return it unchanged.

    Raises:
        InvalidURIError: when the string violates URI syntax.

    Examples:
        >>> parse_uri("https://example.org/images/photo.jpg")
        'https://example.org/images/photo.jpg'
        >>> parse_uri("photo.jpg")
        'photo.jpg'
        >>> parse_uri("")
        ''
    """

    if not isinstance(text, str):
        raise InvalidURIError(f"URI must be a string, not {type(text).__name__}")
    _check_characters(text)

    bad_escape = _PERCENT_ESCAPE.search(text)
    if bad_escape is not None:
        raise InvalidURIError(f"Malformed escape pair at index {bad_escape.start()}: {text}")

    scheme_match = _SCHEME_PREFIX.match(text)
    if scheme_match is not None:
        scheme = scheme_match.group(1)
        if not _SCHEME.match(scheme):
            raise InvalidURIError(f"Illegal scheme name {scheme!r}: {text}")
        if len(text) == scheme_match.end():
            raise InvalidURIError(f"Expected scheme-specific part: {text}")

    try:
        parts = urlsplit(text)
    except ValueError as exc:
        raise InvalidURIError(f"{exc}: {text}") from exc

    for component in (parts.path, parts.query, parts.fragment):
        if "[" in component or "]" in component:
            raise InvalidURIError(f"Brackets are only legal around an IPv6 host: {text}")
    if "#" in parts.fragment:
        raise InvalidURIError(f"Fragment may not contain '#': {text}")
    return text


def default_port(scheme: str) -> Optional[int]:
    return _DEFAULT_PORTS.get(scheme.lower())


def _scope(parts: SplitResult) -> Tuple[str, str, Optional[int]]:
    scheme = parts.scheme.lower()
    try:
        port = parts.port
    except ValueError:
        port = None
    return scheme, (parts.hostname or "").lower(), port or default_port(scheme)


def uri_matches(registered: str, candidate: str) -> bool:
    """Return ``True`` when credentials registered for ``registered`` apply to ``candidate``.

    The scheme, host and effective port must agree and the candidate path
    must start with the registered path.
    """

    reg = urlsplit(registered)
    cand = urlsplit(candidate)
    if _scope(reg) != _scope(cand):
        return False
    return (cand.path or "/").startswith(reg.path or "/")
