"""Entry point for the mhb-monitor command."""

import uvicorn

from .api.app import create_app
from .core.config import get_settings


def main() -> None:
    """Run the monitoring service with uvicorn."""
    settings = get_settings()
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        access_log=True,
        server_header=False,
    )


if __name__ == "__main__":
    main()
