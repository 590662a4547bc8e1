"""Entrypoint: run the Org Check server."""

import uvicorn

from org_check.api.app import create_app
from org_check.config.settings import Settings


def main() -> None:
    settings = Settings()
    app = create_app()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
