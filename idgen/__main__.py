import uvicorn

from idgen.core.config import settings


def run():
    """Serve the ID service with uvicorn on the configured host and port."""
    uvicorn.run(
        "idgen.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
