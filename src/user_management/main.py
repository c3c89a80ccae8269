"""User management service entry point."""

import uvicorn

from .app import create_app
from .common.config import get_settings

app = create_app()


def main() -> None:
    """Run the application."""
    settings = get_settings()

    uvicorn.run(
        "user_management.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
