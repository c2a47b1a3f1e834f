"""Call Setup API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CallSetupError -> structured JSON responses
    - CallSetupContext built once on startup and stored on app.state

Design Decisions:
    - Lifespan context manager for startup/shutdown
    - Engine bindings resolved at startup: a bad entrypoint fails the boot,
      not the first call
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callsetup.api.error_handlers import register_error_handlers
from callsetup.api.routes import debug, health, protocol
from callsetup.config import get_settings
from callsetup.infrastructure.observability import setup_logging
from callsetup.services.call_setup import build_call_setup_context

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if getattr(app.state, "call_setup", None) is None:
        app.state.call_setup = build_call_setup_context(settings)
    logger.info(
        f"Call setup API started (debug surface "
        f"{'enabled' if settings.debug_surface_enabled else 'disabled'})",
    )
    yield
    logger.info("Call setup API shutting down")


app = FastAPI(title="Call Setup API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(protocol.router)
app.include_router(debug.router)

register_error_handlers(app)
