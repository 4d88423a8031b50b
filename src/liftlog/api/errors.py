"""Exception handlers — liftlog errors to JSON responses.

Learn: Services raise liftlog.errors types; nothing below the API layer
knows about HTTP. These handlers are the single boundary where errors are
logged (with method, path, and the request_id bound by RequestIdMiddleware)
and turned into {"error": <public message>}. Exception text can contain
SQL or internal ids, so it goes to the log, never to the response body.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from liftlog.errors import LiftlogError

logger = structlog.get_logger()


def _envelope(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": message}, headers=headers
    )


def _field_name(loc: tuple) -> str:
    # ("body", "entries", 0, "sets") → "entries.0.sets"; ("body",) → "body"
    return ".".join(str(part) for part in loc[1:]) or str(loc[0])


async def handle_liftlog_error(request: Request, exc: LiftlogError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "liftlog.request_failed",
        method=request.method,
        path=request.url.path,
        status=exc.status_code,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _envelope(exc.status_code, exc.public_message, headers)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed body or path parameter → 400 with the offending field names."""
    fields = sorted({_field_name(err["loc"]) for err in exc.errors()})
    logger.info(
        "liftlog.request_invalid",
        method=request.method,
        path=request.url.path,
        fields=fields,
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "fields": fields},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LiftlogError, handle_liftlog_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
