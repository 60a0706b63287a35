from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI

from container_proxy.packages.github import GitHubPackagesClient, OriginClient
from container_proxy.packages.registry_proxy import UpstreamProxy
from container_proxy.routes import registry
from container_proxy.services.identity_service import parse_identities
from container_proxy.settings import Settings, get_settings
from container_proxy.utils.logging import configure_logging, setup_logger
from container_proxy.utils.timeout import RequestTimeoutMiddleware

logger = structlog.stdlib.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Registry proxy ready",
        identities=app.state.identities,
        upstream_url=str(app.state.upstream_proxy.upstream_url),
    )

    yield

    await app.state.upstream_proxy.aclose()
    aclose = getattr(app.state.origin_client, "aclose", None)
    if aclose is not None:
        await aclose()


def create_app(
    settings: Optional[Settings] = None,
    origin_client: Optional[OriginClient] = None,
    upstream_proxy: Optional[UpstreamProxy] = None,
) -> FastAPI:
    """Build the registry proxy application.

    Args:
        settings: Application settings, read from the environment when omitted
        origin_client: GitHub Packages client, built from settings when omitted
        upstream_proxy: Reverse proxy for pass-through requests, built from
                        settings when omitted

    Returns:
        FastAPI app serving the Docker Registry v2 API
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_FORMAT, settings.LOG_LEVEL)

    # No docs routes: every unknown path belongs to the upstream registry
    app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

    app.state.settings = settings
    app.state.identities = parse_identities(settings.GITHUB_USERS)
    app.state.origin_client = origin_client or GitHubPackagesClient(
        token=settings.GITHUB_TOKEN,
        api_url=settings.GITHUB_API_URL,
    )
    app.state.upstream_proxy = upstream_proxy or UpstreamProxy(settings.UPSTREAM_URL)

    app.add_middleware(RequestTimeoutMiddleware, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    setup_logger(app)

    app.include_router(registry.router)
    return app
