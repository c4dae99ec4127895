# main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
import logging

from loanease.api import (
    routes_chat,
    routes_mocks,
    routes_health,
)
from loanease.core.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app():
    app = FastAPI(title=settings.APP_NAME)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(routes_health.router, prefix="/api")
    app.include_router(routes_chat.router, prefix="/api")
    app.include_router(routes_mocks.router, prefix="/api")

    @app.on_event("startup")
    def on_startup():
        Path(settings.UPLOAD_DIR).mkdir(exist_ok=True, parents=True)
        logger.info("%s startup complete (env=%s)", settings.APP_NAME, settings.ENV)

    return app


app = create_app()
