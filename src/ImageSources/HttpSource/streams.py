# === NAVMAP v1 ===
# {
#   "module": "ImageSources.HttpSource.streams",
#   "purpose": "HEAD-verified stream sources over the shared HTTP client",
#   "sections": [
#     {"id": "httpstreamsource", "name": "HttpStreamSource", "anchor": "class-httpstreamsource", "kind": "class"},
#     {"id": "streamsourcefactory", "name": "StreamSourceFactory", "anchor": "class-streamsourcefactory", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""HEAD-verified stream sources over the shared HTTP client.

:class:`StreamSourceFactory` confirms a resource is reachable with a ``HEAD``
request before handing out a :class:`HttpStreamSource`; failures surface as
typed errors from :mod:`ImageSources.HttpSource.errors`. Each call to
:meth:`HttpStreamSource.new_input_stream` then issues its own ``GET``.

``new_input_stream`` is best-effort: it logs and returns ``None`` on any
failure. Callers wanting the error taxonomy on the ``GET`` path use
:meth:`HttpStreamSource.open_stream` instead.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

import httpx

from .client import HttpClientManager
from .errors import (
    HttpSourceError,
    ResolutionFailure,
    error_for_exception,
    error_for_status,
)
from .models import ResourceInfo
from .settings import DEFAULT_REQUEST_TIMEOUT

__all__ = ("HttpStreamSource", "StreamSourceFactory")

LOGGER = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError)


class _ResponseBody(io.RawIOBase):
    """Raw stream over a streamed response; closing it closes the response.

    Transport failures while reading the body surface as taxonomy errors.
    """

    def __init__(self, response: httpx.Response, uri: str) -> None:
        self._response = response
        self._uri = uri
        self._chunks: Iterator[bytes] = response.iter_bytes()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[override]
        while not self._pending:
            try:
                chunk = next(self._chunks, None)
            except _TRANSPORT_ERRORS as exc:
                raise error_for_exception(exc, self._uri) from exc
            if chunk is None:
                return 0
            self._pending = chunk
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


class HttpStreamSource:
    """Re-openable accessor for the bytes behind one resolved URI."""

    def __init__(
        self,
        client: httpx.Client,
        uri: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.client = client
        self.uri = uri
        self.timeout = timeout

    def open_stream(self) -> BinaryIO:
        """Issue a fresh ``GET`` and return the body stream, raising on failure."""

        request = self.client.build_request("GET", self.uri, timeout=self.timeout)
        try:
            response = self.client.send(request, stream=True)
        except _TRANSPORT_ERRORS as exc:
            raise error_for_exception(exc, self.uri) from exc

        if response.status_code != 200:
            response.close()
            error = error_for_status(response.status_code, response.reason_phrase, self.uri)
            if error is None:
                error = ResolutionFailure(
                    f"Unexpected HTTP {response.status_code} for GET {self.uri}",
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                    uri=self.uri,
                )
            raise error
        return io.BufferedReader(_ResponseBody(response, self.uri))  # type: ignore[return-value]

    def new_input_stream(self) -> Optional[BinaryIO]:
        """Best-effort variant of :meth:`open_stream`; returns ``None`` on any failure."""

        try:
            return self.open_stream()
        except HttpSourceError as exc:
            LOGGER.error("GET %s failed: %s", self.uri, exc)
        except Exception:
            LOGGER.exception("GET %s failed", self.uri)
        return None

    def read_bytes(self) -> bytes:
        """Return the whole body of a fresh ``GET``.

        Raises:
            HttpSourceError: the same errors as :meth:`open_stream`, including
                failures while the body is being read.
        """

        with self.open_stream() as stream:
            return stream.read()

    def save(self, destination: Union[str, Path]) -> int:
        """Download the body to ``destination`` atomically.

        The bytes go to a temporary file beside ``destination`` which is
        renamed into place only once the body has been read completely, so a
        failed download never leaves a partial file behind.

        Args:
            destination: Target file path; its parent directory must exist.

        Returns:
            Number of bytes written.

        Raises:
            HttpSourceError: when the request or the body read fails.
            OSError: when the local file cannot be written.
        """

        dest = Path(destination)
        fd, tmp_path = tempfile.mkstemp(dir=dest.parent, prefix=".part-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle, self.open_stream() as stream:
                shutil.copyfileobj(stream, handle)
                written = handle.tell()
            os.replace(tmp_path, dest)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        LOGGER.debug("Saved %s bytes from %s to %s", written, self.uri, dest)
        return written

    def __repr__(self) -> str:
        return f"HttpStreamSource(uri={self.uri!r})"


class StreamSourceFactory:
    """Verifies reachability with ``HEAD`` and hands out stream sources."""

    def __init__(
        self,
        client_manager: HttpClientManager,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._manager = client_manager
        self._timeout = timeout

    def open(self, info: ResourceInfo) -> HttpStreamSource:
        """Return a stream source for ``info`` once a ``HEAD`` probe succeeds.

        Raises:
            NotFoundError: on 404 or 410.
            AccessDeniedError: on 401 or a transport failure such as a TLS error.
            SourceTimeoutError: when no response arrives within the timeout.
            ResolutionFailure: on any other status >= 400.
        """

        client = self._manager.get_client(info)
        try:
            response = client.head(info.uri, timeout=self._timeout)
        except _TRANSPORT_ERRORS as exc:
            error = error_for_exception(exc, info.uri)
            LOGGER.error("HEAD %s failed: %s", info.uri, exc)
            raise error from exc

        error = error_for_status(response.status_code, response.reason_phrase, info.uri)
        if error is not None:
            LOGGER.debug(
                "HEAD %s returned %s",
                info.uri,
                response.status_code,
                extra={"extra_fields": {"uri": info.uri, "http_status": response.status_code}},
            )
            raise error
        return HttpStreamSource(client, info.uri, self._timeout)
