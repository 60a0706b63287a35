import asyncio

import structlog
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.stdlib.get_logger(__name__)


class RequestTimeoutMiddleware:
    """Cancel requests that outlive the deadline.

    The deadline covers the whole exchange, streamed response bodies
    included. Cancellation reaches every awaited origin API call and upstream
    transfer. When nothing has been sent yet the client gets a 504. Otherwise
    the timeout propagates to the server, which aborts the response instead
    of terminating it cleanly. Middleware wrapping this one must let the
    exception through without completing the response.
    """

    def __init__(self, app: ASGIApp, timeout: float = 30.0) -> None:
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Request deadline exceeded",
                method=scope["method"],
                path=scope["path"],
                timeout=self.timeout,
                response_started=response_started,
            )
            if response_started:
                # Too late for a 504, the server has to drop the connection
                raise
            response = PlainTextResponse("Gateway Timeout", status_code=504)
            await response(scope, receive, send)
