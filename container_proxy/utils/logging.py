import logging
import time
from enum import Enum

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI, Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send
from structlog.typing import Processor
from uvicorn.protocols.utils import get_path_with_query_string


class LogFormats(str, Enum):
    JSON = "json"
    CONSOLE = "console"


def configure_logging(log_format: str = "json", log_level: str = "INFO") -> None:
    log_renderer: Processor
    if LogFormats(log_format) == LogFormats.CONSOLE:
        log_renderer = structlog.dev.ConsoleRenderer()
    else:
        log_renderer = structlog.processors.JSONRenderer()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.stdlib.ExtraAdder(),
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.PATHNAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if LogFormats(log_format) == LogFormats.JSON:
        processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=processors  # type: ignore
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,  # type: ignore
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            log_renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    for _log in ["uvicorn", "uvicorn.error"]:
        logging.getLogger(_log).handlers.clear()
        logging.getLogger(_log).propagate = True

    logging.getLogger("httpx").setLevel(logging.WARNING)

    # Replaced by RequestContextMiddleware
    logging.getLogger("uvicorn.access").handlers.clear()
    logging.getLogger("uvicorn.access").propagate = False


def setup_logger(app: FastAPI):
    """Install the access log and request id middleware.

    Middleware added to the app before this call runs inside the access log.
    """
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(CorrelationIdMiddleware)


access_logger = structlog.stdlib.get_logger("api.access")


class RequestContextMiddleware:
    """Bind the request id to the log context and write the access log.

    Pure ASGI so that a failure after the response started reaches the
    server untouched.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        structlog.contextvars.clear_contextvars()
        request_id = correlation_id.get()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        request = Request(scope)
        # Created up front so route handlers share it
        state = request.state

        start_time = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            structlog.stdlib.get_logger("api.error").exception("Uncaught exception")
            raise
        finally:
            process_time = time.perf_counter() - start_time
            url = get_path_with_query_string(scope)  # type: ignore
            http_method = request.method
            http_version = scope["http_version"]
            access_logger.info(
                f""""{http_method} {url} HTTP/{http_version}" {status_code}""",
                http={
                    "url": str(request.url),
                    "status_code": status_code,
                    "method": http_method,
                    "request_id": request_id,
                    "version": http_version,
                },
                proxy_action=getattr(state, "proxy_action", None),
                duration=process_time,
                endpoint=request.url.path,
            )
