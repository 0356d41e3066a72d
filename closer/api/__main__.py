"""Run the API server: python -m closer.api"""

import uvicorn

from closer.api.dependencies import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "closer.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        workers=settings.api.workers,
    )


if __name__ == "__main__":
    main()
