"""Deal Tracker entrypoint."""

import uvicorn

from dealtracker.config.settings import get_settings


def cli() -> None:
    """CLI entrypoint."""
    settings = get_settings()
    uvicorn.run("dealtracker.web.app:create_app", factory=True, reload=settings.debug)


if __name__ == "__main__":
    cli()
