"""Best-effort source format inference.

The identifier's extension is trusted first and costs nothing. Only when it
says nothing useful is a ``HEAD`` request issued and its ``Content-Type``
consulted. Inference is advisory: every failure, including lookup and
transport errors, yields :attr:`Format.UNKNOWN` and is logged here rather
than raised, since the subsequent resolution step reports the real problem.
"""

from __future__ import annotations

import logging
from typing import Callable, Union

from .client import HttpClientManager
from .formats import Format, MediaType
from .models import ResourceInfo
from .settings import DEFAULT_REQUEST_TIMEOUT

__all__ = ("FormatInferencer",)

LOGGER = logging.getLogger(__name__)

InfoSource = Union[ResourceInfo, Callable[[], ResourceInfo]]


class FormatInferencer:
    """Determines the source format of an identifier without ever raising.

    Args:
        client_manager: Supplies the shared client used for the ``HEAD`` probe.
        timeout: Per-request timeout in seconds for that probe.
    """

    def __init__(
        self,
        client_manager: HttpClientManager,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._manager = client_manager
        self._timeout = timeout

    def infer(self, identifier: str, info: InfoSource) -> Format:
        """Return the format of ``identifier``; never raises.

        ``info`` may be a :class:`ResourceInfo` or a zero-argument callable
        producing one, in which case the lookup only happens if a network
        probe is needed.
        """

        fmt = Format.infer_from_identifier(identifier)
        if fmt is not Format.UNKNOWN:
            return fmt
        return self.infer_from_content_type(info)

    def infer_from_content_type(self, info: InfoSource) -> Format:
        """Issue a ``HEAD`` request and map its ``Content-Type`` to a format."""

        try:
            resolved = info() if callable(info) else info
            client = self._manager.get_client(resolved)
            response = client.head(resolved.uri, timeout=self._timeout)
        except Exception as exc:
            LOGGER.error("Content-Type probe failed: %s", exc, exc_info=True)
            return Format.UNKNOWN

        if not 200 <= response.status_code < 300:
            LOGGER.warning("HEAD returned status %s for %s", response.status_code, resolved.uri)
            return Format.UNKNOWN

        value = response.headers.get("Content-Type")
        if not value:
            LOGGER.warning("No Content-Type header for HEAD %s", resolved.uri)
            return Format.UNKNOWN

        try:
            fmt = MediaType.parse(value).to_format()
        except ValueError:
            fmt = Format.UNKNOWN
        if fmt is Format.UNKNOWN:
            LOGGER.warning("Unrecognized Content-Type header value %r for HEAD %s", value, resolved.uri)
        return fmt
