"""Tests for the delegate boundary."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from ImageSources.HttpSource.delegate import (
    Absent,
    DelegateProxy,
    FullInfo,
    ModuleDelegate,
    UriOnly,
    coerce_delegate_result,
)
from ImageSources.HttpSource.errors import ConfigurationError, DelegateError


def test_coerce_none_is_absent():
    assert coerce_delegate_result(None) == Absent()


def test_coerce_string_is_uri_only():
    assert coerce_delegate_result("https://example.org/a.jpg") == UriOnly("https://example.org/a.jpg")


def test_coerce_mapping_is_full_info():
    result = coerce_delegate_result(
        {"uri": "https://example.org/a.jpg", "username": "reader", "secret": "s3cret"}
    )
    assert result == FullInfo("https://example.org/a.jpg", "reader", "s3cret")


def test_coerce_mapping_with_uri_only_leaves_credentials_unset():
    assert coerce_delegate_result({"uri": "https://example.org/a.jpg"}) == FullInfo(
        "https://example.org/a.jpg"
    )


def test_coerce_mapping_without_uri_raises():
    with pytest.raises(DelegateError, match="uri"):
        coerce_delegate_result({"username": "reader"})


def test_coerce_unsupported_type_raises():
    with pytest.raises(DelegateError, match="int"):
        coerce_delegate_result(42)


def test_module_delegate_is_a_delegate_proxy():
    assert isinstance(ModuleDelegate(SimpleNamespace()), DelegateProxy)


def test_module_delegate_invokes_named_function():
    calls = []

    def resolve_url(identifier, context):
        calls.append((identifier, context))
        return f"https://example.org/{identifier}"

    delegate = ModuleDelegate(SimpleNamespace(resolve_url=resolve_url))
    assert delegate.invoke("resolve_url", "abc", {"client_ip": "10.0.0.1"}) == "https://example.org/abc"
    assert calls == [("abc", {"client_ip": "10.0.0.1"})]


def test_module_delegate_missing_method_raises():
    with pytest.raises(DelegateError, match="resolve_url"):
        ModuleDelegate(SimpleNamespace()).invoke("resolve_url", "abc", {})


def test_module_delegate_wraps_exceptions():
    def resolve_url(identifier, context):
        raise KeyError(identifier)

    with pytest.raises(DelegateError) as excinfo:
        ModuleDelegate(SimpleNamespace(resolve_url=resolve_url)).invoke("resolve_url", "abc", {})
    assert isinstance(excinfo.value.__cause__, KeyError)


def test_module_delegate_from_path(tmp_path):
    script = tmp_path / "delegates.py"
    script.write_text(
        "def resolve_url(identifier, context):\n"
        "    if identifier == 'missing':\n"
        "        return None\n"
        "    return {'uri': 'https://example.org/' + identifier, 'username': 'u', 'secret': 'p'}\n",
        encoding="utf-8",
    )
    delegate = ModuleDelegate.from_path(script)
    assert delegate.invoke("resolve_url", "missing", {}) is None
    assert delegate.invoke("resolve_url", "a.jpg", {})["uri"] == "https://example.org/a.jpg"


def test_module_delegate_from_missing_path(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        ModuleDelegate.from_path(tmp_path / "nope.py")


def test_module_delegate_from_broken_script(tmp_path):
    script = tmp_path / "broken.py"
    script.write_text("raise RuntimeError('boom')\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="boom"):
        ModuleDelegate.from_path(script)
