"""HTTP(S) source resolver for the image-serving pipeline.

Resolves an opaque image identifier to a remote resource, verifies it with a
``HEAD`` request over a shared HTTPX client, infers its format and exposes
its bytes through re-openable stream sources.

Example:
    >>> from ImageSources.HttpSource import HttpResolver, load_settings
    >>> settings = load_settings(lookup_strategy="Basic", url_prefix="https://images.example.org/")
    >>> resolver = HttpResolver("photo.jpg", settings)
    >>> resolver.resource_info().uri
    'https://images.example.org/photo.jpg'
"""

from .client import (
    BasicAuthStore,
    HttpClientManager,
    get_http_client_manager,
    http2_available,
    reset_http_client_manager,
)
from .delegate import (
    RESOLVE_URL_METHOD,
    Absent,
    DelegateProxy,
    FullInfo,
    ModuleDelegate,
    UriOnly,
    coerce_delegate_result,
)
from .errors import (
    AccessDeniedError,
    ConfigurationError,
    DelegateError,
    HttpSourceError,
    InvalidURIError,
    NotFoundError,
    ResolutionFailure,
    SourceTimeoutError,
    error_for_exception,
    error_for_status,
    raise_for_status,
)
from .format_inference import FormatInferencer
from .formats import Format, MediaType
from .lookup import BasicLookupStrategy, DelegatedLookupStrategy, ResourceLocator
from .models import Identifier, ResourceInfo
from .resolver import HttpResolver
from .settings import HttpSourceSettings, LookupStrategy, load_settings
from .streams import HttpStreamSource, StreamSourceFactory

__all__ = [
    "AccessDeniedError",
    "Absent",
    "BasicAuthStore",
    "BasicLookupStrategy",
    "ConfigurationError",
    "DelegateError",
    "DelegateProxy",
    "DelegatedLookupStrategy",
    "Format",
    "FormatInferencer",
    "FullInfo",
    "HttpClientManager",
    "HttpResolver",
    "HttpSourceError",
    "HttpSourceSettings",
    "HttpStreamSource",
    "Identifier",
    "InvalidURIError",
    "LookupStrategy",
    "MediaType",
    "ModuleDelegate",
    "NotFoundError",
    "RESOLVE_URL_METHOD",
    "ResolutionFailure",
    "ResourceInfo",
    "ResourceLocator",
    "SourceTimeoutError",
    "StreamSourceFactory",
    "UriOnly",
    "coerce_delegate_result",
    "error_for_exception",
    "error_for_status",
    "get_http_client_manager",
    "http2_available",
    "load_settings",
    "raise_for_status",
    "reset_http_client_manager",
]
