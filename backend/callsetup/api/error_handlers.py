"""Error Handlers: global exception handlers for the call-setup API.

Invariants:
    - Every response body is a CallSetupError.to_response() envelope
    - RequestValidationError -> InvalidRequestError with field-level details (400)
    - Any other exception -> UnexpectedCallSetupError (500); only the exception
      type reaches the logs' debug info, never the response

Design Decisions:
    - CONFIGURATION errors log at CRITICAL so an emptied server list stands out
      from ordinary negotiation failures
    - Foreign exceptions are wrapped into the hierarchy, then rendered by the
      same function as domain errors
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from callsetup.core.errors import (
    CallSetupError,
    ErrorCategory,
    InvalidRequestError,
    UnexpectedCallSetupError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_call_setup_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _render(request: Request, exc: CallSetupError) -> JSONResponse:
    level = (
        logging.CRITICAL if exc.category == ErrorCategory.CONFIGURATION
        else logging.WARNING
    )
    logger.log(
        level,
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra=exc.log_extra(),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def _register_call_setup_error_handler(app: FastAPI) -> None:

    @app.exception_handler(CallSetupError)
    async def call_setup_error_handler(request: Request, exc: CallSetupError):
        """Handle all call-setup domain errors."""
        return _render(request, exc)


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        return _render(request, InvalidRequestError.from_validation_errors(exc.errors()))


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Wrap unexpected failures (policy, registry or engine bugs)."""
        error = UnexpectedCallSetupError(exc)
        logger.error(
            f"Unhandled {type(exc).__name__} in call setup API on "
            f"{request.method} {request.url.path}",
            exc_info=exc,
            extra=error.log_extra(),
        )
        return JSONResponse(status_code=error.http_status, content=error.to_response())
