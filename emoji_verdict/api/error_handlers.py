"""Error Handlers - global exception handlers for the verdict API.

Invariants:
    - VerdictCourtError -> {"error": <public message>, "code": ...} with its status/headers
    - RequestValidationError -> 400 {"error": <first violation>, "details": [...]}
    - Exception (catch-all) -> 500, never leaks internal details

Design Decisions:
    - Three-layer handler: domain, validation (Pydantic), catch-all
    - Validation failures are 400, not FastAPI's default 422: the client contract
      treats every malformed body as a 400
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from emoji_verdict.core.errors import VerdictCourtError

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON body."


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(VerdictCourtError)
    async def verdict_error_handler(request: Request, exc: VerdictCourtError):
        logger.warning(
            f"VerdictCourtError: {exc.message}",
            extra={"error_code": exc.code, "client_id": exc.context.client_id},
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(),
            headers=exc.headers,
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}",
            extra={"error_code": "VALIDATION_ERROR"},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=build_validation_error_response(exc.errors()),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all - never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )


def build_validation_error_response(errors: list[dict]) -> dict:
    """{"error": <message of the first violation>, ...} plus field details."""
    return {
        "error": _first_error_message(errors),
        "code": "VALIDATION_ERROR",
        "details": [
            {
                "field": ".".join(str(loc) for loc in e.get("loc", ())),
                "message": e.get("msg", ""),
                "type": e.get("type", ""),
            }
            for e in errors
        ],
    }


def _first_error_message(errors: list[dict]) -> str:
    if not errors:
        return INVALID_JSON_MESSAGE
    e = errors[0]
    loc = tuple(e.get("loc", ()))
    field = loc[-1] if len(loc) > 1 else None
    error_type = e.get("type", "")
    if error_type == "json_invalid" or field is None or isinstance(field, int):
        return INVALID_JSON_MESSAGE
    if error_type == "missing":
        return f"Field '{field}' is required."
    if error_type == "value_error":
        cause = (e.get("ctx") or {}).get("error")
        if cause is not None:
            return str(cause)
    if error_type == "string_type":
        return f"Field '{field}' must be a string."
    return e.get("msg", INVALID_JSON_MESSAGE)
