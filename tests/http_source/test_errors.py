"""Tests for the status/exception → error kind mapping."""

from __future__ import annotations

import httpx
import pytest

from ImageSources.HttpSource.errors import (
    AccessDeniedError,
    ConfigurationError,
    HttpSourceError,
    NotFoundError,
    ResolutionFailure,
    SourceTimeoutError,
    error_for_exception,
    error_for_status,
    raise_for_status,
)

REQUEST = httpx.Request("HEAD", "https://images.example.org/photo")


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (404, NotFoundError),
        (410, NotFoundError),
        (401, AccessDeniedError),
        (400, ResolutionFailure),
        (403, ResolutionFailure),
        (405, ResolutionFailure),
        (429, ResolutionFailure),
        (500, ResolutionFailure),
        (502, ResolutionFailure),
        (503, ResolutionFailure),
    ],
)
def test_error_statuses_map_to_kinds(status, expected):
    error = error_for_status(status, "Reason", "https://images.example.org/photo")
    assert type(error) is expected
    assert error.uri == "https://images.example.org/photo"
    assert str(error) == f"HTTP {status}: Reason"


@pytest.mark.parametrize("status", [200, 204, 206, 301, 304, 399])
def test_non_error_statuses_map_to_none(status):
    assert error_for_status(status) is None


def test_generic_failure_carries_status_and_reason():
    error = error_for_status(500, "Internal Server Error")
    assert isinstance(error, ResolutionFailure)
    assert error.status_code == 500
    assert error.reason == "Internal Server Error"


def test_mapping_is_deterministic():
    first = error_for_status(503, "Service Unavailable")
    second = error_for_status(503, "Service Unavailable")
    assert type(first) is type(second)
    assert str(first) == str(second)


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (httpx.ReadTimeout("slow", request=REQUEST), SourceTimeoutError),
        (httpx.ConnectTimeout("slow", request=REQUEST), SourceTimeoutError),
        (httpx.PoolTimeout("slow", request=REQUEST), SourceTimeoutError),
        (TimeoutError("deadline"), SourceTimeoutError),
        (InterruptedError("interrupted"), SourceTimeoutError),
        (httpx.ConnectError("tls handshake", request=REQUEST), AccessDeniedError),
        (httpx.RemoteProtocolError("bad frame", request=REQUEST), AccessDeniedError),
        (httpx.UnsupportedProtocol("no scheme", request=REQUEST), ResolutionFailure),
        (ValueError("odd"), ResolutionFailure),
    ],
)
def test_exceptions_map_to_kinds(exc, expected):
    error = error_for_exception(exc, "https://images.example.org/photo")
    assert type(error) is expected


def test_taxonomy_errors_pass_through_unchanged():
    original = ConfigurationError("bad prefix")
    assert error_for_exception(original) is original


def test_timeout_error_is_builtin_timeout():
    error = error_for_exception(httpx.ReadTimeout("slow", request=REQUEST))
    assert isinstance(error, TimeoutError)
    assert isinstance(error, HttpSourceError)


def test_raise_for_status_raises_mapped_error():
    response = httpx.Response(404, request=REQUEST)
    with pytest.raises(NotFoundError) as excinfo:
        raise_for_status(response)
    assert excinfo.value.uri == "https://images.example.org/photo"


def test_raise_for_status_returns_successful_response():
    response = httpx.Response(200, request=REQUEST)
    assert raise_for_status(response) is response
