# === NAVMAP v1 ===
# {
#   "module": "ImageSources.HttpSource.delegate",
#   "purpose": "Delegate boundary used by the Delegated lookup strategy",
#   "sections": [
#     {"id": "delegateproxy", "name": "DelegateProxy", "anchor": "class-delegateproxy", "kind": "class"},
#     {"id": "delegate-result", "name": "Absent / UriOnly / FullInfo", "anchor": "RES", "kind": "api"},
#     {"id": "coerce-delegate-result", "name": "coerce_delegate_result", "anchor": "function-coerce-delegate-result", "kind": "function"},
#     {"id": "moduledelegate", "name": "ModuleDelegate", "anchor": "class-moduledelegate", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Delegate boundary used by the Delegated lookup strategy.

The resolver never depends on a particular scripting mechanism. It talks to
anything satisfying :class:`DelegateProxy` (a single synchronous
``invoke(method_name, *args)`` call) and normalises whatever comes back into
one of three tagged results:

- :class:`Absent` - the delegate knows of no such resource.
- :class:`UriOnly` - a bare URI string, no credentials.
- :class:`FullInfo` - a mapping with ``uri`` and optional ``username`` /
  ``secret``.

:class:`ModuleDelegate` is the stock implementation: it calls plain
functions on a Python module, optionally loaded from a file path.
"""

from __future__ import annotations

import importlib.util
import logging
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

from .errors import ConfigurationError, DelegateError

__all__ = (
    "RESOLVE_URL_METHOD",
    "DelegateContext",
    "DelegateProxy",
    "Absent",
    "UriOnly",
    "FullInfo",
    "DelegateResult",
    "coerce_delegate_result",
    "ModuleDelegate",
)

LOGGER = logging.getLogger(__name__)

RESOLVE_URL_METHOD = "resolve_url"

DelegateContext = Mapping[str, Any]
"""Ambient request data (client IP, request URI, headers, ...) handed to the delegate."""


@runtime_checkable
class DelegateProxy(Protocol):
    """Anything able to run a named delegate method synchronously."""

    def invoke(self, method_name: str, *args: Any) -> Any:
        ...


@dataclass(frozen=True)
class Absent:
    """The delegate returned nothing."""


@dataclass(frozen=True)
class UriOnly:
    uri: str


@dataclass(frozen=True)
class FullInfo:
    uri: str
    username: Optional[str] = None
    secret: Optional[str] = None


DelegateResult = Union[Absent, UriOnly, FullInfo]


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def coerce_delegate_result(raw: Any) -> DelegateResult:
    """Normalise a raw delegate return value into a tagged result.

    Raises:
        DelegateError: if the value has none of the three accepted shapes.
    """

    if raw is None:
        return Absent()
    if isinstance(raw, (Absent, UriOnly, FullInfo)):
        return raw
    if isinstance(raw, str):
        return UriOnly(raw)
    if isinstance(raw, Mapping):
        uri = raw.get("uri")
        if uri is None:
            raise DelegateError(f"{RESOLVE_URL_METHOD} returned a mapping without a 'uri' key")
        return FullInfo(
            uri=str(uri),
            username=_optional_str(raw.get("username")),
            secret=_optional_str(raw.get("secret")),
        )
    raise DelegateError(
        f"{RESOLVE_URL_METHOD} returned an unsupported value of type {type(raw).__name__}"
    )


class ModuleDelegate:
    """Delegate proxy that calls functions defined on a module or object.

    Examples:
        >>> import types
        >>> ns = types.SimpleNamespace(resolve_url=lambda identifier, context: None)
        >>> ModuleDelegate(ns).invoke("resolve_url", "abc", {}) is None
        True
    """

    def __init__(self, target: Union[ModuleType, Any]) -> None:
        self._target = target

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ModuleDelegate":
        """Load a delegate script from a Python source file."""

        script = Path(path)
        if not script.is_file():
            raise ConfigurationError(f"Delegate script not found: {script}")
        spec = importlib.util.spec_from_file_location(f"_httpsource_delegate_{script.stem}", script)
        if spec is None or spec.loader is None:
            raise ConfigurationError(f"Unable to load delegate script: {script}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            raise ConfigurationError(f"Delegate script {script} failed to load: {exc}") from exc
        LOGGER.info("Loaded delegate script %s", script)
        return cls(module)

    def invoke(self, method_name: str, *args: Any) -> Any:
        method = getattr(self._target, method_name, None)
        if method is None or not callable(method):
            raise DelegateError(f"Delegate does not define {method_name}()")
        try:
            return method(*args)
        except Exception as exc:
            raise DelegateError(f"{method_name}() failed: {exc}") from exc
