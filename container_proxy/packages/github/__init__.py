"""GitHub Packages API package.

This package provides the origin API contract used by the registry
translation layer and its GitHub REST implementation.
"""

from .client import GitHubPackagesClient, OriginAPIError, OriginClient
from .types import (
    PACKAGE_TYPE_CONTAINER,
    ContainerMetadata,
    Package,
    PackageListOptions,
    PackageOwner,
    PackageVersion,
    PackageVersionMetadata,
)

__all__ = [
    # Protocol
    "OriginClient",
    # Clients
    "GitHubPackagesClient",
    # Errors
    "OriginAPIError",
    # Types
    "ContainerMetadata",
    "Package",
    "PackageListOptions",
    "PackageOwner",
    "PackageVersion",
    "PackageVersionMetadata",
    "PACKAGE_TYPE_CONTAINER",
]
