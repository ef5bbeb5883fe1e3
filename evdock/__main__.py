"""Run the API server: ``python -m evdock``."""

import uvicorn

from evdock.core.config import settings


def main() -> None:
    uvicorn.run(
        "evdock.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
