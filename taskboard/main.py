"""Taskboard API application."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard.api.v1 import columns, sprints, tasks, transitions
from taskboard.config import settings
from taskboard.database import init_db
from taskboard.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)
    init_db()

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, debug=settings.DEBUG)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(transitions.router, prefix=f"{settings.API_PREFIX}/transitions", tags=["transitions"])
    app.include_router(columns.router, prefix=settings.API_PREFIX, tags=["columns"])
    app.include_router(tasks.router, prefix=settings.API_PREFIX, tags=["tasks"])
    app.include_router(sprints.router, prefix=settings.API_PREFIX, tags=["sprints"])

    logger.info("%s %s ready", settings.APP_NAME, settings.APP_VERSION)
    return app


app = create_app()


def run():
    import uvicorn

    uvicorn.run("taskboard.main:app", host=settings.HOST, port=settings.PORT)
