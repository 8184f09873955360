from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from econtract_app import __version__
from econtract_app.config import AppConfig, load_config
from econtract_app.core.messages import ERROR_MESSAGES

from . import ai, contracts, demo, documents, signatures, templates, uploads
from .error_handlers import error_response, register_error_handlers
from .headers import apply_std_headers, request_id
from .limits import REQUEST_TIMEOUT_S
from .state import build_state

log = logging.getLogger("econtract")

_ALLOWED_ORIGINS = [
    o.strip()
    for o in (os.getenv("ALLOWED_ORIGINS") or "http://localhost:3000").split(",")
    if o.strip()
]


def create_app(config: Optional[AppConfig] = None, **overrides) -> FastAPI:
    """Build the application; ``overrides`` are passed to :func:`build_state`."""
    config = config or load_config()
    app = FastAPI(title="eContract API", version=__version__)
    app.state.config = config
    app.state.services = build_state(config, **overrides)

    register_error_handlers(app)

    # log request details at INFO level
    @app.middleware("http")
    async def _request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        log.info(
            "%s %s -> %s (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response

    @app.middleware("http")
    async def timeout_mw(request: Request, call_next):
        started_at = time.perf_counter()
        request.state.started_at = started_at
        request_id(request)
        try:
            response = await asyncio.wait_for(call_next(request), timeout=REQUEST_TIMEOUT_S)
        except asyncio.TimeoutError:
            log.error("request %s %s timed out after %ss", request.method, request.url.path, REQUEST_TIMEOUT_S)
            return error_response(request, 500, {"error": ERROR_MESSAGES["generic"]})
        if "x-request-id" not in response.headers:
            apply_std_headers(response, request, started_at)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["x-request-id", "x-latency-ms", "x-ratelimit-remaining"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok", "mode": config.mode, "aiProvider": app.state.services.provider.name}

    app.include_router(contracts.router)
    app.include_router(signatures.router)
    app.include_router(documents.router)
    app.include_router(ai.router)
    app.include_router(uploads.router)
    app.include_router(templates.router)
    app.include_router(demo.router)
    return app


app = create_app()


__all__ = ["app", "create_app"]
