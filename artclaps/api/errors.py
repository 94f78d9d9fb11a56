"""
artclaps.api.errors — Exception → JSON envelope mapping
========================================================

Every failure leaves the API as ``{"success": false, "error": "..."}``.
Expected failures carry their own status; anything else is a 500 with a
generic message and the traceback goes to the server log only.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from artclaps.errors import ArtClapsError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    if first.get("type") == "missing":
        return f"Missing required field: {field}" if field else "Missing required fields"
    msg = first.get("msg", "Invalid value")
    return f"Invalid {field}: {msg}" if field else msg


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ArtClapsError)
    async def _artclaps_error(request: Request, exc: ArtClapsError):
        if exc.status_code >= 500:
            logger.error("%s %s → %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return error_response(400, _describe_validation(exc))

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return error_response(500, GENERIC_ERROR)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, GENERIC_ERROR)
