"""groupchat API: FastAPI application shell around the domain operations.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Every error response produced by api/error_handlers.py
    - Connection pool created on startup and disposed on shutdown (lifespan)
    - Operation services are built once per process on the shared pool and
      exposed on app.state (users, groups, messages)

Design Decisions:
    - Lifespan over @app.on_event: cleaner startup/shutdown pairing
    - Domain routes are mounted by the deploying service; this module only
      wires the pool, the operation services, logging, error handlers and
      health probes
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from groupchat.api.error_handlers import register_error_handlers
from groupchat.api.routes import health
from groupchat.config import get_settings
from groupchat.infrastructure.database import close_db, init_db
from groupchat.infrastructure.observability import setup_logging
from groupchat.services.group_operations import GroupOperations
from groupchat.services.message_operations import MessageOperations
from groupchat.services.user_operations import UserOperations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
    )
    app.state.users = UserOperations(manager)
    app.state.groups = GroupOperations(
        manager, default_message_limit=settings.default_message_limit,
    )
    app.state.messages = MessageOperations(
        manager, default_limit=settings.default_message_limit,
    )
    logger.info("groupchat API started")
    yield
    await close_db()
    logger.info("groupchat API shut down")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="groupchat API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health.router)
    register_error_handlers(app)
    return app


app = create_app()
