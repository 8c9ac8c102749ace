# main.py
"""Serve the blog API with uvicorn, reloading on change in development."""

from uvicorn import run

from blogapi.configs import settings


def main() -> None:
    run(
        "blogapi.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        loop="uvloop",
        http="httptools",
        reload=settings.is_development,
    )


if __name__ == "__main__":
    main()
