"""Value types passed between the lookup, client and stream layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = ("Identifier", "ResourceInfo")


class Identifier(str):
    """Opaque logical name of an image; never rewritten by the resolver."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Identifier({str.__repr__(self)})"


@dataclass(frozen=True)
class ResourceInfo:
    """Concrete location of a source plus optional Basic auth credentials."""

    uri: str
    username: Optional[str] = None
    secret: Optional[str] = None

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.secret is not None

    def __str__(self) -> str:
        return self.uri

    def __repr__(self) -> str:
        secret = "***masked***" if self.secret is not None else None
        return f"ResourceInfo(uri={self.uri!r}, username={self.username!r}, secret={secret!r})"
