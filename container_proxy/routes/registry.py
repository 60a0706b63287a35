"""Docker Registry v2 API routes.

The catalog and tag listing are answered from the GitHub Packages API;
every other request is forwarded to the upstream registry.

See: https://distribution.github.io/distribution/spec/api/
"""

import structlog
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from container_proxy.deps.proxy import IdentitiesDep, OriginClientDep, UpstreamProxyDep
from container_proxy.packages.registry_proxy import REGISTRY_API_VERSION, TranslationResult
from container_proxy.services.catalog_service import build_catalog
from container_proxy.services.tags_service import build_tags

logger = structlog.stdlib.get_logger(__name__)

router = APIRouter(tags=["Registry"])

# Extension methods outside this list are answered with 405
PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


def _registry_response(result: TranslationResult) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code,
        content=result.to_dict(),
        headers={"Docker-Distribution-API-Version": REGISTRY_API_VERSION},
    )


@router.get("/v2/_catalog")
async def list_repositories(
    request: Request,
    origin_client: OriginClientDep,
    identities: IdentitiesDep,
):
    """List the container repositories visible to the configured identities."""
    request.state.proxy_action = "translated"
    logger.info("Catalog request", method=request.method, url=str(request.url))

    result = await build_catalog(origin_client, identities)
    return _registry_response(result)


@router.get("/v2/{owner}/{name}/tags/list")
async def list_tags(
    request: Request,
    owner: str,
    name: str,
    origin_client: OriginClientDep,
):
    """List all tags of a repository.

    Args:
        owner: Package owner login (e.g., "octo-org")
        name: Package name (e.g., "api")

    Returns:
        JSON tag list built from the package versions
    """
    request.state.proxy_action = "translated"
    logger.info(
        "Tags list request",
        method=request.method,
        url=str(request.url),
        owner=owner,
        name=name,
    )

    result = await build_tags(origin_client, owner, name)
    return _registry_response(result)


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def forward_upstream(
    request: Request,
    path: str,
    upstream_proxy: UpstreamProxyDep,
) -> Response:
    """Pass anything the translation layer does not handle to the upstream."""
    request.state.proxy_action = "forwarded"
    return await upstream_proxy.forward(request)
