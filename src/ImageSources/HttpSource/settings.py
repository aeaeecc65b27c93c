# === NAVMAP v1 ===
# {
#   "module": "ImageSources.HttpSource.settings",
#   "purpose": "Typed configuration for the HTTP source resolver",
#   "sections": [
#     {"id": "lookupstrategy", "name": "LookupStrategy", "anchor": "class-lookupstrategy", "kind": "class"},
#     {"id": "httpsourcesettings", "name": "HttpSourceSettings", "anchor": "class-httpsourcesettings", "kind": "class"},
#     {"id": "read-config-file", "name": "read_config_file", "anchor": "function-read-config-file", "kind": "function"},
#     {"id": "load-settings", "name": "load_settings", "anchor": "function-load-settings", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Typed configuration for the HTTP source resolver.

Settings come from three places, in increasing precedence: environment
variables prefixed with ``HTTPSOURCE_``, an optional YAML/JSON file, and
keyword overrides passed to :func:`load_settings`. The lookup strategy is
resolved once here; an unknown selector fails fast with
:class:`~ImageSources.HttpSource.errors.ConfigurationError` instead of
surfacing per request.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

__all__ = (
    "LookupStrategy",
    "HttpSourceSettings",
    "DEFAULT_REQUEST_TIMEOUT",
    "read_config_file",
    "load_settings",
)

LOGGER = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 10.0

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class LookupStrategy(str, Enum):
    """How an identifier becomes a concrete resource location."""

    BASIC = "Basic"
    DELEGATED = "Delegated"

    @classmethod
    def parse(cls, value: Union[str, "LookupStrategy", None]) -> "LookupStrategy":
        """Return the strategy named by ``value``.

        Accepts the canonical names plus the ``BasicLookupStrategy`` and
        ``ScriptLookupStrategy`` spellings used by older configuration files.
        """

        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if text == member.value.lower():
                return member
        legacy = {
            "basiclookupstrategy": cls.BASIC,
            "scriptlookupstrategy": cls.DELEGATED,
            "delegatedlookupstrategy": cls.DELEGATED,
        }
        if text in legacy:
            return legacy[text]
        raise ValueError(f"lookup_strategy is invalid or not set: {value!r}")


class HttpSourceSettings(BaseSettings):
    """Configuration surface of the HTTP source resolver."""

    lookup_strategy: LookupStrategy = Field(
        description="Basic (prefix + identifier + suffix) or Delegated (delegate resolve_url)",
    )
    url_prefix: str = Field(default="", description="Prepended to the identifier (Basic only)")
    url_suffix: str = Field(default="", description="Appended to the identifier (Basic only)")
    basic_auth_username: Optional[str] = Field(default=None, description="Basic auth user (Basic only)")
    basic_auth_secret: Optional[SecretStr] = Field(
        default=None, description="Basic auth secret (Basic only)"
    )
    trust_all_certs: bool = Field(
        default=False, description="Disable TLS certificate validation"
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT, gt=0, description="Per-request timeout in seconds"
    )
    http2: bool = Field(default=True, description="Use HTTP/2 over TLS when the runtime supports it")
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="HTTPSOURCE_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("lookup_strategy", mode="before")
    @classmethod
    def _parse_strategy(cls, value: Any) -> LookupStrategy:
        return LookupStrategy.parse(value)

    @field_validator("url_prefix", "url_suffix", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return upper

    @property
    def secret(self) -> Optional[str]:
        if self.basic_auth_secret is None:
            return None
        return self.basic_auth_secret.get_secret_value()

    def redacted(self) -> Dict[str, Any]:
        """Return the settings as plain data with the secret masked."""

        data = self.model_dump(mode="json")
        if data.get("basic_auth_secret") is not None:
            data["basic_auth_secret"] = "***REDACTED***"
        return data


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read settings from a JSON or YAML file."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read configuration file {path}: {exc}") from exc

    ext = path.suffix.lower()
    try:
        if ext in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        elif ext == ".json":
            data = json.loads(text)
        else:
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                data = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to parse configuration file {path}: {exc}") from exc

    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    # Allow the settings to live under an "http_source" section of a larger file.
    section = data.get("http_source", data)
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"'http_source' section of {path} must be a mapping")
    return dict(section)


def load_settings(path: Optional[Union[str, Path]] = None, **overrides: Any) -> HttpSourceSettings:
    """Build validated settings from environment, ``path`` and ``overrides``.

    Raises:
        ConfigurationError: when any value fails validation, including an
            unrecognised ``lookup_strategy``.
    """

    data: Dict[str, Any] = {}
    if path is not None:
        data.update(read_config_file(Path(path)))
    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        settings = HttpSourceSettings(**data)
    except PydanticValidationError as exc:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "settings"
            messages.append(f"{location}: {error.get('msg')}")
        raise ConfigurationError("; ".join(messages)) from exc

    LOGGER.debug(
        "HTTP source settings loaded",
        extra={"extra_fields": {"lookup_strategy": settings.lookup_strategy.value}},
    )
    return settings
