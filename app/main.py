from __future__ import annotations

import logging

from fastapi import FastAPI

from app.config import get_logging_settings


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = get_logging_settings().level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()

    application = FastAPI(
        title="Game Analytics API",
        version="1.0.0",
    )

    from app.api.routers import dataset_router

    application.include_router(dataset_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    logging.getLogger(__name__).info("API application created")
    return application


app = create_app()
