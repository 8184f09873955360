"""Centralised error handlers for the FastAPI application.

Every error response is the small envelope ``{"error": ..., "details"?: ...}``.
``error`` is always a fixed, localized message; ``details`` carries
diagnostic text and is only sent for client errors or when
``EXPOSE_ERROR_DETAILS`` is enabled.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from econtract_app.core.errors import AppError
from econtract_app.core.messages import ERROR_MESSAGES

from .headers import apply_std_headers

log = logging.getLogger(__name__)


def _started(request: Request) -> float:
    return getattr(request.state, "started_at", time.perf_counter())


def _expose(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    return bool(getattr(config, "expose_error_details", False))


def validation_details(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def error_response(request: Request, status: int, body: dict) -> JSONResponse:
    resp = JSONResponse(body, status_code=status)
    apply_std_headers(resp, request, _started(request))
    return resp


def register_error_handlers(app: FastAPI) -> None:
    """Register standardised error handlers on the application."""

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.details or exc.message)
        include = exc.status_code < 500 or _expose(request)
        return error_response(request, exc.status_code, exc.to_body(include_details=include))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        log.warning("validation error on %s: %s", request.url.path, exc)
        body = {"error": ERROR_MESSAGES["validation"], "details": validation_details(exc)}
        return error_response(request, 400, body)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = ERROR_MESSAGES["not_found"]
        elif exc.status_code < 500:
            message = exc.detail if isinstance(exc.detail, str) else ERROR_MESSAGES["validation"]
        else:
            message = ERROR_MESSAGES["generic"]
        return error_response(request, exc.status_code, {"error": message})

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception):
        log.exception("unhandled exception", exc_info=exc)
        body = {"error": ERROR_MESSAGES["generic"]}
        if _expose(request):
            body["details"] = f"{type(exc).__name__}: {exc}"
        return error_response(request, 500, body)


__all__ = ["error_response", "register_error_handlers", "validation_details"]
