"""Error Handlers: global exception handlers serializing the error mapper's output.

Invariants:
    - ApiError → status and message chosen by map_api_error
    - RequestValidationError → 400 MISSING_FIELD with field-level details
    - Exception (catch-all) → 503 "Service unavailable", never leaks internal details

Design Decisions:
    - Three-layer handler: domain (ApiError), validation (Pydantic), catch-all (Exception)
    - Handlers only serialize; the status/message policy lives in core/error_mapper.py
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from groupchat.core.error_mapper import map_api_error
from groupchat.core.errors import ApiError, MissingFieldError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_api_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_api_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        """Handle all operation errors."""
        logger.info(
            f"ApiError: {exc.code}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        response = map_api_error(exc)
        return JSONResponse(
            status_code=response.status_code, content=response.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors as missing/invalid fields."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=400,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all - never leaks internal details."""
        response = map_api_error(exc)
        return JSONResponse(
            status_code=response.status_code, content=response.to_response(),
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    fields = [".".join(str(loc) for loc in e["loc"]) for e in exc.errors()]
    content = map_api_error(MissingFieldError(", ".join(fields))).to_response()
    content["error"]["details"] = [
        {"field": field, "message": e["msg"], "type": e["type"]}
        for field, e in zip(fields, exc.errors())
    ]
    return content
