"""Run the service with uvicorn: `python -m simplecrud`."""

import uvicorn

from simplecrud.config import settings


def main() -> None:
    uvicorn.run(
        "simplecrud.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
