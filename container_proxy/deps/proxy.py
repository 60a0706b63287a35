from typing import Annotated

from fastapi import Depends, Request

from container_proxy.packages.github import OriginClient
from container_proxy.packages.registry_proxy import UpstreamProxy


def get_origin_client(request: Request) -> OriginClient:
    return request.app.state.origin_client


def get_upstream_proxy(request: Request) -> UpstreamProxy:
    return request.app.state.upstream_proxy


def get_identities(request: Request) -> list[str]:
    return request.app.state.identities


OriginClientDep = Annotated[OriginClient, Depends(get_origin_client)]
UpstreamProxyDep = Annotated[UpstreamProxy, Depends(get_upstream_proxy)]
IdentitiesDep = Annotated[list[str], Depends(get_identities)]
