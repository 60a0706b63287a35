"""GitHub Packages API client.

This module provides the OriginClient protocol consumed by the translation
services and an httpx implementation talking to the GitHub REST API.
"""

from typing import Any, Optional, Protocol, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from .types import GitHubModel, Package, PackageListOptions, PackageVersion

logger = structlog.stdlib.get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

ModelT = TypeVar("ModelT", bound=GitHubModel)


class OriginAPIError(Exception):
    """A package listing could not be fetched from the origin API.

    The message is the transport or HTTP error text and is surfaced to
    registry clients inside error envelopes.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class OriginClient(Protocol):
    """Protocol for origin API clients.

    Implementations raise OriginAPIError on failure and return every item,
    following pagination themselves. Request deadlines reach them as asyncio
    cancellation.
    """

    async def list_packages(
        self,
        namespace: str,
        options: PackageListOptions,
    ) -> list[Package]:
        """List packages owned by a namespace.

        Args:
            namespace: User or organization login, "" for the authenticated user
            options: Listing filters (package type, visibility)

        Returns:
            Packages in API order
        """
        ...

    async def list_package_versions(
        self,
        namespace: str,
        package_type: str,
        name: str,
        options: Optional[PackageListOptions] = None,
    ) -> list[PackageVersion]:
        """List all versions of a package.

        Args:
            namespace: Package owner login, "" for the authenticated user
            package_type: Package ecosystem (e.g., "container")
            name: Package name
            options: Optional listing filters

        Returns:
            Package versions in API order
        """
        ...


def _namespace_path(namespace: str) -> str:
    if namespace == "":
        return "/user"
    return f"/users/{quote(namespace, safe='')}"


def _error_message(response: httpx.Response) -> str:
    message = response.reason_phrase
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        message = payload["message"]
    request = response.request
    return f"{request.method} {request.url}: {response.status_code} {message}"


class GitHubPackagesClient:
    """GitHub REST API client for the Packages endpoints.

    One instance is shared by all requests; it holds the bearer token and a
    pooled httpx client.
    """

    def __init__(
        self,
        token: str = "",
        api_url: str = GITHUB_API_URL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: Personal access or installation token, may be empty for
                   anonymous access to public packages
            api_url: REST API root (differs on GitHub Enterprise Server)
            client: Optional preconfigured httpx client (used by tests)
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": "container-proxy",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, connect=10.0),
        )
        self._headers = headers

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_packages(
        self,
        namespace: str,
        options: PackageListOptions,
    ) -> list[Package]:
        params: dict[str, Any] = {
            "package_type": options.package_type,
            "per_page": options.per_page,
        }
        if options.visibility:
            params["visibility"] = options.visibility

        url = f"{self.api_url}{_namespace_path(namespace)}/packages"
        return await self._get_all(url, params, Package)

    async def list_package_versions(
        self,
        namespace: str,
        package_type: str,
        name: str,
        options: Optional[PackageListOptions] = None,
    ) -> list[PackageVersion]:
        options = options or PackageListOptions(package_type=package_type)
        params: dict[str, Any] = {"per_page": options.per_page}

        url = (
            f"{self.api_url}{_namespace_path(namespace)}/packages/"
            f"{quote(package_type, safe='')}/{quote(name, safe='')}/versions"
        )
        return await self._get_all(url, params, PackageVersion)

    async def _get_all(
        self,
        url: str,
        params: dict[str, Any],
        model: type[ModelT],
    ) -> list[ModelT]:
        """GET a list endpoint and follow `Link: rel="next"` pages."""
        items: list[ModelT] = []
        next_url: Optional[str] = url
        next_params: Optional[dict[str, Any]] = params

        while next_url:
            payload, response = await self._get_json(next_url, next_params)
            if not isinstance(payload, list):
                raise OriginAPIError(
                    f"GET {response.request.url}: unexpected response body",
                    status_code=response.status_code,
                )

            for raw in payload:
                try:
                    items.append(model.model_validate(raw))
                except ValidationError:
                    logger.debug(
                        "Skipping malformed record",
                        model=model.__name__,
                        url=str(response.request.url),
                    )

            # The next link already carries the query string
            next_url = response.links.get("next", {}).get("url")
            next_params = None

        return items

    async def _get_json(
        self,
        url: str,
        params: Optional[dict[str, Any]],
    ) -> tuple[Any, httpx.Response]:
        try:
            response = await self._client.get(
                url,
                params=params,
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            logger.warning("GitHub API request failed", url=url, error=str(e))
            raise OriginAPIError(f"GET {url}: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "GitHub API returned an error",
                status_code=response.status_code,
                url=str(response.request.url),
            )
            raise OriginAPIError(message, status_code=response.status_code)

        try:
            return response.json(), response
        except ValueError as e:
            raise OriginAPIError(
                f"GET {response.request.url}: invalid JSON body",
                status_code=response.status_code,
            ) from e
