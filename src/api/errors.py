"""
Exception handlers - map domain errors that any route may raise.

Workflow-specific failures (verification, conflicts) are translated in
the routes themselves; only errors with one app-wide meaning live here.
Internal detail is logged, never returned.

Every 422 has the same shape, {"detail": str, "field": str | None},
whether the request failed schema validation or a domain policy check.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain.exceptions import UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Service temporarily unavailable, please try again later"
MALFORMED_REQUEST_MESSAGE = "Malformed request"


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field},
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first schema error as {detail, field}."""
    errors = exc.errors()
    if not errors:
        return JSONResponse(
            status_code=422, content={"detail": MALFORMED_REQUEST_MESSAGE, "field": None}
        )

    first = errors[0]
    # loc is ("body", <field>, ...); invalid JSON reports ("body", <char offset>)
    loc = [part for part in first.get("loc", ()) if part != "body"]
    field = loc[0] if loc and isinstance(loc[0], str) else None
    logger.info("Request validation failed on %s: %s", request.url.path, first.get("type"))
    return JSONResponse(
        status_code=422,
        content={"detail": first.get("msg", MALFORMED_REQUEST_MESSAGE), "field": field},
    )


async def upstream_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Upstream unavailable during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": UNAVAILABLE_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(UpstreamUnavailable, upstream_unavailable_handler)
