"""Registry proxy package for Docker Registry v2 API.

This package provides the registry wire types and the reverse proxy used for
requests that are passed through to an upstream registry.
"""

from .proxy import UpstreamProxy, filter_headers
from .types import (
    REGISTRY_API_VERSION,
    CatalogResponse,
    ErrorCode,
    ErrorEnvelope,
    RegistryError,
    TagsListResponse,
    TranslationResult,
    make_error,
)

__all__ = [
    # Proxy
    "UpstreamProxy",
    "filter_headers",
    # Types
    "CatalogResponse",
    "ErrorCode",
    "ErrorEnvelope",
    "RegistryError",
    "TagsListResponse",
    "TranslationResult",
    "REGISTRY_API_VERSION",
    # Utilities
    "make_error",
]
