"""Identifier → :class:`ResourceInfo` lookup strategies."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .delegate import (
    RESOLVE_URL_METHOD,
    Absent,
    DelegateContext,
    DelegateProxy,
    FullInfo,
    UriOnly,
    coerce_delegate_result,
)
from .errors import ConfigurationError, DelegateError, HttpSourceError, InvalidURIError, NotFoundError
from .models import ResourceInfo
from .settings import HttpSourceSettings, LookupStrategy
from .urls import parse_uri

__all__ = (
    "BasicLookupStrategy",
    "DelegatedLookupStrategy",
    "ResourceLocator",
)

LOGGER = logging.getLogger(__name__)


class BasicLookupStrategy:
    """Builds ``url_prefix + identifier + url_suffix`` with global credentials."""

    def __init__(self, settings: HttpSourceSettings) -> None:
        self._prefix = settings.url_prefix
        self._suffix = settings.url_suffix
        self._username = settings.basic_auth_username
        self._secret = settings.secret

    def resolve(self, identifier: str, context: Optional[DelegateContext] = None) -> ResourceInfo:
        """Return the concatenated URI with the globally configured credentials.

        Args:
            identifier: Image identifier, used verbatim.
            context: Ignored by this strategy.

        Returns:
            The resource location, with credentials only when both are set.

        Raises:
            ConfigurationError: when the concatenation is not a valid URI.
        """

        candidate = f"{self._prefix}{identifier}{self._suffix}"
        try:
            uri = parse_uri(candidate)
        except InvalidURIError as exc:
            raise ConfigurationError(str(exc), uri=candidate) from exc
        return ResourceInfo(uri, self._username, self._secret)


class DelegatedLookupStrategy:
    """Asks the delegate's ``resolve_url`` method for a location and credentials."""

    def __init__(self, delegate: DelegateProxy) -> None:
        self._delegate = delegate

    def resolve(self, identifier: str, context: Optional[DelegateContext] = None) -> ResourceInfo:
        """Ask the delegate where ``identifier`` lives.

        Args:
            identifier: Image identifier passed to ``resolve_url`` as a string.
            context: Ambient request data passed to ``resolve_url`` as a dict.

        Returns:
            The location and any credentials the delegate supplied.

        Raises:
            NotFoundError: when the delegate returns nothing.
            DelegateError: when the delegate fails or returns an unsupported value.
            InvalidURIError: when the returned URI is not syntactically valid.
        """

        try:
            raw = self._delegate.invoke(RESOLVE_URL_METHOD, str(identifier), dict(context or {}))
        except HttpSourceError:
            raise
        except Exception as exc:
            raise DelegateError(f"{RESOLVE_URL_METHOD}() failed: {exc}") from exc

        result = coerce_delegate_result(raw)
        if isinstance(result, Absent):
            raise NotFoundError(f"{RESOLVE_URL_METHOD} returned nil for {identifier}")
        if isinstance(result, UriOnly):
            return ResourceInfo(parse_uri(result.uri))
        if isinstance(result, FullInfo):
            return ResourceInfo(parse_uri(result.uri), result.username, result.secret)
        raise DelegateError(
            f"{RESOLVE_URL_METHOD} produced an unsupported result: {type(result).__name__}"
        )


class ResourceLocator:
    """Resolves identifiers with the strategy chosen at construction time."""

    def __init__(
        self,
        settings: HttpSourceSettings,
        delegate: Optional[DelegateProxy] = None,
    ) -> None:
        self.strategy = settings.lookup_strategy
        if self.strategy is LookupStrategy.BASIC:
            self._impl: Any = BasicLookupStrategy(settings)
        elif self.strategy is LookupStrategy.DELEGATED:
            if delegate is None:
                raise ConfigurationError(
                    "lookup_strategy is Delegated but no delegate was configured"
                )
            self._impl = DelegatedLookupStrategy(delegate)
        else:  # pragma: no cover - LookupStrategy is closed
            raise ConfigurationError(f"lookup_strategy is invalid or not set: {self.strategy!r}")

    def resolve(
        self,
        identifier: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ResourceInfo:
        info = self._impl.resolve(identifier, context)
        LOGGER.info("Resolved %s to %s", identifier, info.uri)
        return info
