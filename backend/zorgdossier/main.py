"""Zorgdossier API — FastAPI application assembly.

Invariants:
    - Every router is listed in ROUTERS; nothing is discovered implicitly
    - Logging and the database manager are set up before the first request
      and the engine is disposed on shutdown
    - Allowed CORS origins come from Settings

Design Decisions:
    - create_app() builds the application and the module-level `app` is what
      uvicorn serves; tests drive that same object through ASGITransport
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from zorgdossier.api.error_handlers import register_error_handlers
from zorgdossier.api.routes import (
    clients, evidence, health, herindicatie, meerzorg, meerzorg_workflow,
    reviews, search, uc2,
)
from zorgdossier.config import get_settings
from zorgdossier.infrastructure import database
from zorgdossier.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)

ROUTERS = (
    health, clients, search, meerzorg, meerzorg_workflow,
    evidence, reviews, herindicatie, uc2,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    ai_state = "on" if settings.ai_configured else "off (heuristics)"
    logger.info(f"Zorgdossier API ready, AI evaluation {ai_state}")
    try:
        yield
    finally:
        logger.info("Zorgdossier API stopping")
        await manager.dispose()


def create_app() -> FastAPI:
    application = FastAPI(title="Zorgdossier API", version="1.0.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    for module in ROUTERS:
        application.include_router(module.router)
    register_error_handlers(application)
    return application


app = create_app()
