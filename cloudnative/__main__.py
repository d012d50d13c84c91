"""Run the backend API: ``python -m cloudnative``."""

import uvicorn

from cloudnative.bootstrap import build_app
from cloudnative.config import get_settings


def main() -> None:
    settings = get_settings()
    app = build_app(settings)

    # uvicorn turns SIGTERM/SIGINT into a lifespan shutdown, which flushes telemetry.
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=int(settings.observability.shutdown_timeout_seconds) + 5,
    )


if __name__ == "__main__":
    main()
