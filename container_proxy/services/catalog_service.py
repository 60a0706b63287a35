"""Catalog Service.

Builds a Docker Registry `_catalog` response by listing container packages
for every configured GitHub identity.
"""

import structlog
from fastapi import status

from container_proxy.packages.github import (
    OriginAPIError,
    OriginClient,
    Package,
    PackageListOptions,
)
from container_proxy.packages.registry_proxy import (
    CatalogResponse,
    ErrorCode,
    ErrorEnvelope,
    RegistryError,
    TranslationResult,
)

logger = structlog.stdlib.get_logger(__name__)


def _package_key(package: Package) -> tuple[str, str] | None:
    """(owner login, name) of a package.

    None when either half is missing, or when the name holds a `/` and could
    not be addressed as `owner/name`.
    """
    if not package.name or package.owner is None or not package.owner.login:
        return None
    if "/" in package.name or "/" in package.owner.login:
        return None
    return package.owner.login, package.name


async def build_catalog(
    origin_client: OriginClient,
    identities: list[str],
) -> TranslationResult:
    """List the repositories visible through the configured identities.

    Identities are queried one at a time, in order. Packages are deduplicated
    on (owner, name) and keep the order in which they were first seen.

    Args:
        origin_client: GitHub Packages client
        identities: Namespaces to query, "" being the authenticated user

    Returns:
        200 with the repository list when at least one identity could be
        listed, otherwise 400 with one error per failed identity
    """
    options = PackageListOptions()

    successes = 0
    packages: dict[tuple[str, str], None] = {}
    errors: list[RegistryError] = []

    for identity in identities:
        try:
            listed = await origin_client.list_packages(identity, options)
        except OriginAPIError as e:
            logger.warning("ListPackages failed", identity=identity, error=str(e))
            errors.append(
                RegistryError(code=ErrorCode.UNKNOWN, message=f"ListPackages: {e}")
            )
            continue

        successes += 1
        new_packages = 0
        for package in listed:
            key = _package_key(package)
            if key is None or key in packages:
                continue
            packages[key] = None
            new_packages += 1

        logger.info(
            "ListPackages found new packages",
            identity=identity,
            new_packages=new_packages,
        )

    if successes == 0:
        logger.warning("Catalog unavailable, every identity failed", errors=len(errors))
        return TranslationResult(
            status.HTTP_400_BAD_REQUEST,
            ErrorEnvelope(errors=errors),
        )

    if errors:
        logger.warning(
            "Catalog is partial",
            failed_identities=len(errors),
            errors=[error.message for error in errors],
        )

    repositories = [f"{login}/{name}" for login, name in packages]
    return TranslationResult(
        status.HTTP_200_OK,
        CatalogResponse(repositories=repositories),
    )
