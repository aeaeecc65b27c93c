"""Tests for extension-first, Content-Type-second format inference."""

from __future__ import annotations

import httpx
import pytest

from ImageSources.HttpSource.errors import NotFoundError
from ImageSources.HttpSource.format_inference import FormatInferencer
from ImageSources.HttpSource.formats import Format
from ImageSources.HttpSource.models import ResourceInfo

BASE = "https://images.example.org/"


@pytest.fixture
def inferencer(client_manager):
    return FormatInferencer(client_manager, timeout=5.0)


def test_known_extension_needs_no_request(source_server, inferencer):
    assert inferencer.infer("photo.jpg", ResourceInfo(BASE + "photo.jpg")) is Format.JPEG
    assert source_server.calls() == []


def test_known_extension_skips_lookup(source_server, inferencer):
    def lookup():
        raise AssertionError("lookup should not run")

    assert inferencer.infer("scan.tif", lookup) is Format.TIFF
    assert source_server.calls() == []


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("image/tiff", Format.TIFF),
        ("image/jpeg", Format.JPEG),
        ("image/png; charset=binary", Format.PNG),
        ("image/jp2", Format.JP2),
    ],
)
def test_content_type_used_without_extension(source_server, inferencer, content_type, expected):
    source_server.register_resource(BASE + "photo", b"data", content_type)
    assert inferencer.infer("photo", ResourceInfo(BASE + "photo")) is expected
    assert len(source_server.calls("HEAD")) == 1
    assert source_server.calls("GET") == []


def test_lookup_callable_invoked_when_needed(source_server, inferencer):
    source_server.register_resource(BASE + "photo", b"data", "image/gif")
    calls = []

    def lookup():
        calls.append(1)
        return ResourceInfo(BASE + "photo")

    assert inferencer.infer("photo", lookup) is Format.GIF
    assert calls == [1]


def test_missing_content_type_is_unknown(source_server, inferencer, caplog):
    source_server.register_resource(BASE + "photo", b"data")
    with caplog.at_level("WARNING"):
        assert inferencer.infer("photo", ResourceInfo(BASE + "photo")) is Format.UNKNOWN
    assert "No Content-Type header" in caplog.text


@pytest.mark.parametrize("content_type", ["text/html", "application/octet-stream", "garbage"])
def test_unrecognized_content_type_is_unknown(source_server, inferencer, content_type, caplog):
    source_server.register_resource(BASE + "photo", b"data", content_type)
    with caplog.at_level("WARNING"):
        assert inferencer.infer("photo", ResourceInfo(BASE + "photo")) is Format.UNKNOWN
    assert "Unrecognized Content-Type" in caplog.text


@pytest.mark.parametrize("status", [404, 401, 500])
def test_error_status_is_unknown(source_server, inferencer, status, caplog):
    source_server.register("HEAD", BASE + "photo", status, headers={"Content-Type": "image/png"})
    with caplog.at_level("WARNING"):
        assert inferencer.infer("photo", ResourceInfo(BASE + "photo")) is Format.UNKNOWN
    assert "HEAD returned status" in caplog.text


@pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout])
def test_transport_failure_is_unknown(source_server, inferencer, error):
    source_server.register_error("HEAD", BASE + "photo", error)
    assert inferencer.infer("photo", ResourceInfo(BASE + "photo")) is Format.UNKNOWN


def test_lookup_failure_is_unknown(source_server, inferencer, caplog):
    def lookup():
        raise NotFoundError("resolve_url returned nil for photo")

    with caplog.at_level("ERROR"):
        assert inferencer.infer("photo", lookup) is Format.UNKNOWN
    assert "Content-Type probe failed" in caplog.text
    assert source_server.calls() == []


def test_credentials_sent_with_probe(source_server, inferencer):
    source_server.register_resource(BASE + "photo", b"data", "image/bmp")
    info = ResourceInfo(BASE + "photo", "reader", "s3cret")
    assert inferencer.infer("photo", info) is Format.BMP
    (head,) = source_server.calls("HEAD")
    assert head.headers["Authorization"].startswith("Basic ")
