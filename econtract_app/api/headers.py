import time
import uuid

from fastapi import Request, Response


def request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    if not rid:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = rid
    return rid


def apply_std_headers(response: Response, request: Request, started_at: float) -> None:
    """Apply standard headers to the response."""
    latency_ms = int((time.perf_counter() - started_at) * 1000)
    response.headers["x-request-id"] = request_id(request)
    response.headers["x-latency-ms"] = str(latency_ms)
