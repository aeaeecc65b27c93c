# === NAVMAP v1 ===
# {
#   "module": "ImageSources.HttpSource.resolver",
#   "purpose": "Per-request facade tying lookup, client, HEAD check and format inference together",
#   "sections": [
#     {"id": "httpresolver", "name": "HttpResolver", "anchor": "class-httpresolver", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Resolve an identifier to an HTTP(S) source.

**Lookup strategies**

- ``Basic``: the URI is ``url_prefix + identifier + url_suffix`` and the
  optional ``basic_auth_username``/``basic_auth_secret`` apply globally.
- ``Delegated``: the delegate's ``resolve_url(identifier, context)`` returns
  nothing, a URI string, or a mapping with ``uri``, ``username`` and
  ``secret``.

**Format determination**

Identifiers with a recognised extension are classified without any network
access. Anything else costs an extra ``HEAD`` request to read
``Content-Type``, so it is cheaper to serve sources with extensions.

**Protocols**

HTTP/1.1, HTTPS/1.1 and HTTP/2 over TLS. Insecure HTTP/2 (h2c) is not used.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .client import HttpClientManager, get_http_client_manager
from .delegate import DelegateProxy
from .errors import HttpSourceError, ResolutionFailure
from .format_inference import FormatInferencer
from .formats import Format
from .lookup import ResourceLocator
from .models import Identifier, ResourceInfo
from .settings import HttpSourceSettings
from .streams import HttpStreamSource, StreamSourceFactory

__all__ = ("HttpResolver",)

LOGGER = logging.getLogger(__name__)


class HttpResolver:
    """Resolver for a single identifier; create one per request.

    Args:
        identifier: Logical image identifier.
        settings: Resolver configuration.
        delegate: Delegate proxy, required for the ``Delegated`` strategy.
        context: Ambient request data passed to the delegate.
        client_manager: Client manager to use; defaults to the process-wide one.
    """

    def __init__(
        self,
        identifier: str,
        settings: HttpSourceSettings,
        *,
        delegate: Optional[DelegateProxy] = None,
        context: Optional[Mapping[str, Any]] = None,
        client_manager: Optional[HttpClientManager] = None,
    ) -> None:
        self.identifier = Identifier(identifier)
        self.settings = settings
        self.context: Mapping[str, Any] = dict(context or {})
        self._locator = ResourceLocator(settings, delegate)
        self._manager = client_manager or get_http_client_manager(settings)
        self._streams = StreamSourceFactory(self._manager, settings.request_timeout)
        self._inferencer = FormatInferencer(self._manager, settings.request_timeout)
        self._source_format: Optional[Format] = None

    def resource_info(self) -> ResourceInfo:
        """Run the configured lookup strategy for this identifier.

        Returns:
            The resolved location and credentials. No network access happens.

        Raises:
            ConfigurationError: when Basic lookup builds an invalid URI.
            NotFoundError: when the delegate returns nothing.
            DelegateError: when the delegate fails.
        """

        return self._locator.resolve(self.identifier, self.context)

    def new_stream_source(self) -> HttpStreamSource:
        """Resolve, verify with ``HEAD`` and return a re-openable stream source."""

        try:
            info = self.resource_info()
        except HttpSourceError:
            raise
        except Exception as exc:
            LOGGER.error("new_stream_source(): %s", exc)
            raise ResolutionFailure(str(exc)) from exc
        return self._streams.open(info)

    def source_format(self) -> Format:
        """Return the source format, computing it once per resolver.

        The first call also verifies the source is accessible and raises the
        usual resolution errors if it is not.
        """

        if self._source_format is None:
            self._source_format = self._inferencer.infer(self.identifier, self.resource_info)
            self.new_stream_source()
        return self._source_format

    def __repr__(self) -> str:
        return f"HttpResolver(identifier={str(self.identifier)!r}, strategy={self.settings.lookup_strategy.value})"
