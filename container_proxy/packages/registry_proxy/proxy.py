"""Generic HTTP reverse proxy for Docker Registry API requests.

Requests the translation layer does not handle are forwarded to an upstream
registry with only the scheme, host and port rewritten. Bodies stream in both
directions and upstream responses are relayed without interpretation.
"""

from typing import AsyncIterator, Optional

import httpx
import structlog
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse

logger = structlog.stdlib.get_logger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    [
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    ]
)

# httpx adds these to every request; only send them when the client did
CLIENT_DEFAULT_HEADERS = ("accept", "accept-encoding", "user-agent")


def filter_headers(
    raw_headers: list[tuple[bytes, bytes]],
    exclude: frozenset[str] = frozenset(),
) -> list[tuple[bytes, bytes]]:
    """Drop hop-by-hop headers, including those named by `Connection`.

    Repeated headers are kept in order. Names are lowercased as ASGI
    requires.
    """
    connection_tokens = set()
    for key, value in raw_headers:
        if key.lower() == b"connection":
            connection_tokens.update(
                token.strip().lower() for token in value.decode("latin-1").split(",")
            )

    filtered = []
    for key, value in raw_headers:
        name = key.decode("latin-1").lower()
        if name in HOP_BY_HOP_HEADERS or name in connection_tokens or name in exclude:
            continue
        filtered.append((key.lower(), value))
    return filtered


def _join_path(base: bytes, path: bytes) -> bytes:
    if not base or base == b"/":
        return path
    base_slash = base.endswith(b"/")
    path_slash = path.startswith(b"/")
    if base_slash and path_slash:
        return base + path[1:]
    if not base_slash and not path_slash:
        return base + b"/" + path
    return base + path


def _join_query(base: bytes, query: bytes) -> bytes:
    if base and query:
        return base + b"&" + query
    return base or query


def _has_body(request: Request) -> bool:
    if "transfer-encoding" in request.headers:
        return True
    return request.headers.get("content-length", "0") not in ("", "0")


async def _relay_body(upstream_response: httpx.Response) -> AsyncIterator[bytes]:
    """Yield the upstream body undecoded.

    The upstream response is closed however the relay ends, cancellation
    and client disconnects included.
    """
    try:
        async for chunk in upstream_response.aiter_raw():
            yield chunk
    finally:
        await upstream_response.aclose()


class UpstreamProxy:
    """Reverse proxy to a single upstream registry.

    One instance is shared by all requests and owns a pooled httpx client.
    """

    def __init__(
        self,
        upstream_url: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the upstream proxy.

        Args:
            upstream_url: Absolute URL of the upstream registry
                          (e.g., "https://ghcr.io")
            client: Optional preconfigured httpx client (used by tests)
        """
        self.upstream_url = httpx.URL(upstream_url)
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=30.0,
                read=1800.0,  # large layer downloads
                write=1800.0,  # large layer uploads
                pool=10.0,
            ),
            follow_redirects=False,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def target_url(self, request: Request) -> httpx.URL:
        """Rewrite the inbound URL onto the upstream.

        The raw path and query are kept as received, appended to the
        upstream's own path and query when it has any.
        """
        raw_path = request.scope.get("raw_path") or request.url.path.encode("ascii")
        query = request.scope.get("query_string", b"")

        base_path = self.upstream_url.raw_path.partition(b"?")[0]
        path = _join_path(base_path, raw_path)
        query = _join_query(self.upstream_url.query, query)

        return self.upstream_url.copy_with(
            raw_path=path + (b"?" + query if query else b""),
        )

    async def forward(self, request: Request) -> Response:
        """Forward a request upstream and stream the response back.

        Args:
            request: Original FastAPI request from the registry client

        Returns:
            StreamingResponse relaying the upstream status, headers and body,
            or a 502 response when the upstream cannot be reached
        """
        target_url = self.target_url(request)

        logger.info(
            "Forwarding request",
            method=request.method,
            target_url=str(target_url),
        )

        upstream_request = self._client.build_request(
            method=request.method,
            url=target_url,
            headers=filter_headers(request.headers.raw, exclude=frozenset(["host"])),
            content=request.stream() if _has_body(request) else None,
        )
        for header_name in CLIENT_DEFAULT_HEADERS:
            if header_name not in request.headers:
                upstream_request.headers.pop(header_name, None)

        try:
            upstream_response = await self._client.send(upstream_request, stream=True)
        except httpx.TransportError as e:
            logger.error(
                "Upstream request failed",
                error=str(e),
                target_url=str(target_url),
            )
            return PlainTextResponse("Bad Gateway", status_code=502)

        logger.info(
            "Upstream response received",
            status_code=upstream_response.status_code,
            target_url=str(target_url),
        )

        response = StreamingResponse(
            content=_relay_body(upstream_response),
            status_code=upstream_response.status_code,
        )
        response.raw_headers = filter_headers(upstream_response.headers.raw)
        return response
