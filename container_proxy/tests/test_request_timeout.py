import asyncio

import httpx
import pytest
from httpx import AsyncClient

from container_proxy.deps.proxy import get_identities
from container_proxy.main import create_app
from container_proxy.packages.registry_proxy import UpstreamProxy
from container_proxy.tests.fakes import FakeOriginClient
from container_proxy.tests.fixtures_clients import UPSTREAM_URL
from container_proxy.utils.timeout import RequestTimeoutMiddleware


class StalledBody(httpx.AsyncByteStream):
    """Chunked upstream body that stops after its first chunk."""

    def __init__(self):
        self.closed = False

    async def __aiter__(self):
        yield b"part1"
        await asyncio.sleep(10)
        yield b"part2"

    async def aclose(self):
        self.closed = True


def make_scope(path: str) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.4"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("ascii"),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"localhost")],
        "server": ("localhost", 80),
        "client": ("127.0.0.1", 50000),
    }


async def receive_nothing():
    await asyncio.Event().wait()


@pytest.fixture
def settings(settings):
    return settings.model_copy(update={"REQUEST_TIMEOUT_SECONDS": 0.05})


@pytest.fixture
def origin_client() -> FakeOriginClient:
    return FakeOriginClient(delay=5.0)


async def test_catalog_deadline_abandons_remaining_identities(
    app, client: AsyncClient, origin_client
):
    app.dependency_overrides[get_identities] = lambda: ["", "a", "b"]

    response = await client.get("/v2/_catalog")

    assert response.status_code == 504
    assert "errors" not in response.text
    assert origin_client.calls == [("list_packages", "", "container")]


async def test_tags_list_deadline(client: AsyncClient, origin_client):
    response = await client.get("/v2/u/p/tags/list")

    assert response.status_code == 504


async def test_deadline_after_response_started_is_not_a_clean_end():
    messages = []

    async def stalled_app(scope, receive, send):
        await send({"type": "http.response.start", "status": 200, "headers": []})
        await send({"type": "http.response.body", "body": b"part1", "more_body": True})
        await asyncio.sleep(10)
        await send({"type": "http.response.body", "body": b"", "more_body": False})

    async def send(message):
        messages.append(message)

    middleware = RequestTimeoutMiddleware(stalled_app, timeout=0.05)

    with pytest.raises(asyncio.TimeoutError):
        await middleware(make_scope("/v2/"), receive_nothing, send)

    assert [message["type"] for message in messages] == [
        "http.response.start",
        "http.response.body",
    ]


async def test_stalled_upstream_body_is_aborted(settings, origin_client):
    body = StalledBody()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Type": "text/plain"}, stream=body)

    app = create_app(
        settings=settings,
        origin_client=origin_client,
        upstream_proxy=UpstreamProxy(
            UPSTREAM_URL,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        ),
    )
    messages = []

    async def send(message):
        messages.append(message)

    with pytest.raises(asyncio.TimeoutError):
        await app(make_scope("/v2/u/p/blobs/sha256:abc"), receive_nothing, send)

    assert messages[0]["type"] == "http.response.start"
    assert messages[0]["status"] == 200
    bodies = messages[1:]
    assert b"".join(message.get("body", b"") for message in bodies) == b"part1"
    assert all(message.get("more_body", False) for message in bodies)
    assert body.closed
