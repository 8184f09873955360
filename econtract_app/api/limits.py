from __future__ import annotations

import os


def env_int(name: str, default: int) -> int:
    """Read ``name`` from the environment as an integer."""

    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):  # tolerate floats or junk values
        try:
            return int(float(str(raw)))
        except (TypeError, ValueError):
            return default


# Request budget
REQUEST_TIMEOUT_S = env_int("ECONTRACT_REQUEST_TIMEOUT_S", 75)
DEFAULT_PAGE_SIZE = env_int("ECONTRACT_PAGE_SIZE", 20)
MAX_PAGE_SIZE = env_int("ECONTRACT_MAX_PAGE_SIZE", 100)

# Rate limits: (requests, window seconds)
API_RATE_LIMIT = env_int("ECONTRACT_RATE_API", 100)
API_RATE_WINDOW_S = env_int("ECONTRACT_RATE_API_WINDOW_S", 60)
AI_RATE_LIMIT = env_int("ECONTRACT_RATE_AI", 20)
AI_RATE_WINDOW_S = env_int("ECONTRACT_RATE_AI_WINDOW_S", 60)
CHAT_RATE_LIMIT = env_int("ECONTRACT_RATE_CHAT", 30)
CHAT_RATE_WINDOW_S = env_int("ECONTRACT_RATE_CHAT_WINDOW_S", 60)
UPLOAD_RATE_LIMIT = env_int("ECONTRACT_RATE_UPLOAD", 10)
UPLOAD_RATE_WINDOW_S = env_int("ECONTRACT_RATE_UPLOAD_WINDOW_S", 300)
SIGN_RATE_LIMIT = env_int("ECONTRACT_RATE_SIGN", 20)
SIGN_SUBMIT_RATE_LIMIT = env_int("ECONTRACT_RATE_SIGN_SUBMIT", 10)
SIGN_RATE_WINDOW_S = env_int("ECONTRACT_RATE_SIGN_WINDOW_S", 60)

# Uploads
MAX_UPLOAD_BYTES = env_int("ECONTRACT_MAX_UPLOAD_BYTES", 10 * 1024 * 1024)

# External calls
AI_TIMEOUT_S = env_int("AI_TIMEOUT_S", 40)
OCR_TIMEOUT_S = env_int("OCR_TIMEOUT_S", 20)
OCR_MAX_POLLS = env_int("OCR_MAX_POLLS", 10)
EMAIL_TIMEOUT_S = env_int("EMAIL_TIMEOUT_S", 10)
DB_TIMEOUT_S = env_int("DB_TIMEOUT_S", 10)

# Cache lifetimes
AI_CACHE_TTL_S = env_int("AI_CACHE_TTL_S", 60 * 60)
SIGNATURE_TOKEN_TTL_S = env_int("SIGNATURE_TOKEN_TTL_S", 48 * 60 * 60)


__all__ = [
    "REQUEST_TIMEOUT_S",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "API_RATE_LIMIT",
    "API_RATE_WINDOW_S",
    "AI_RATE_LIMIT",
    "AI_RATE_WINDOW_S",
    "CHAT_RATE_LIMIT",
    "CHAT_RATE_WINDOW_S",
    "UPLOAD_RATE_LIMIT",
    "UPLOAD_RATE_WINDOW_S",
    "SIGN_RATE_LIMIT",
    "SIGN_SUBMIT_RATE_LIMIT",
    "SIGN_RATE_WINDOW_S",
    "MAX_UPLOAD_BYTES",
    "AI_TIMEOUT_S",
    "OCR_TIMEOUT_S",
    "OCR_MAX_POLLS",
    "EMAIL_TIMEOUT_S",
    "DB_TIMEOUT_S",
    "AI_CACHE_TTL_S",
    "SIGNATURE_TOKEN_TTL_S",
    "env_int",
]
