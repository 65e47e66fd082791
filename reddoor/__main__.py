"""Run the HTTP surface: python -m reddoor"""

import uvicorn

from reddoor.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "reddoor.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENV == "development",
        log_config=None,
    )


if __name__ == "__main__":
    main()
