from __future__ import annotations

from typing import Callable

from fastapi import Request, Response

from econtract_app.core.errors import RateLimitedError

from .state import AppState


def get_state(request: Request) -> AppState:
    return request.app.state.services


def client_ip(request: Request) -> str:
    """First ``X-Forwarded-For`` hop, else the socket peer, else ``unknown``."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or "unknown"


def rate_limit(scope: str, limit: int, window_seconds: int) -> Callable:
    """Dependency rejecting the request with 429 once ``scope`` is exhausted.

    FastAPI resolves dependencies before reading the body, so rejected
    requests never reach validation or the handler.
    """

    def _dep(request: Request, response: Response) -> None:
        state = get_state(request)
        result = state.limiter.check_limit(f"{scope}:{client_ip(request)}", limit, window_seconds)
        response.headers["x-ratelimit-limit"] = str(limit)
        response.headers["x-ratelimit-remaining"] = str(result.remaining)
        if not result.allowed:
            raise RateLimitedError(details=f"{scope} limit {limit}/{window_seconds}s")

    _dep.__name__ = f"rate_limit_{scope}"
    return _dep


__all__ = ["client_ip", "get_state", "rate_limit", "user_agent"]
