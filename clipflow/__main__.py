"""Run the API server: ``python -m clipflow``."""

import uvicorn

from clipflow.commons.settings import get_settings


def main() -> None:
    """Start uvicorn with the configured server settings."""
    server = get_settings().server
    uvicorn.run(
        "clipflow.api.main:app",
        host=server.host,
        port=server.port,
        workers=server.workers,
        reload=server.reload,
    )


if __name__ == "__main__":
    main()
