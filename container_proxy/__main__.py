import sys

import structlog
import uvicorn
from pydantic import ValidationError

from container_proxy.main import create_app
from container_proxy.settings import get_settings
from container_proxy.utils.logging import configure_logging

logger = structlog.stdlib.get_logger("container_proxy")


def main() -> None:
    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging()
        logger.error("Invalid configuration", errors=e.errors(include_url=False))
        sys.exit(1)

    app = create_app(settings)

    logger.info(
        "Starting container registry proxy",
        host=settings.HOST,
        port=settings.PORT,
    )
    # uvicorn exits with status 1 when it cannot bind
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
