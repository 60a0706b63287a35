import structlog
from fastapi import status

from container_proxy.packages.github import (
    PACKAGE_TYPE_CONTAINER,
    OriginAPIError,
    OriginClient,
)
from container_proxy.packages.registry_proxy import (
    ErrorCode,
    TagsListResponse,
    TranslationResult,
    make_error,
)

logger = structlog.stdlib.get_logger(__name__)


async def build_tags(
    origin_client: OriginClient,
    owner: str,
    name: str,
) -> TranslationResult:
    """Build a `tags/list` response from the versions of a container package.

    Tags are concatenated in version order; a tag carried by several versions
    appears once per version. Versions without container metadata are
    skipped.
    """
    try:
        versions = await origin_client.list_package_versions(
            owner, PACKAGE_TYPE_CONTAINER, name
        )
    except OriginAPIError as e:
        logger.warning(
            "PackageGetAllVersions failed", owner=owner, name=name, error=str(e)
        )
        return TranslationResult(
            status.HTTP_400_BAD_REQUEST,
            make_error(ErrorCode.UNKNOWN, f"PackageGetAllVersions: {e}"),
        )

    tags_list = TagsListResponse(name=f"{owner}/{name}")
    for version in versions:
        if version.metadata is None or version.metadata.container is None:
            continue
        tags_list.tags.extend(version.metadata.container.tags)

    return TranslationResult(status.HTTP_200_OK, tags_list)
