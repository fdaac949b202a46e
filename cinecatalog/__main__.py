import uvicorn

from .config import settings


def main():
    uvicorn.run(
        "cinecatalog.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=not settings.is_production,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
