"""At-rest encryption for append-only trail files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet

log = logging.getLogger(__name__)

KEY_ENV = "ECONTRACT_ATREST_KEY"


class _NoopCipher:
    """Identity cipher used when no key is configured outside production."""

    def encrypt(self, data: bytes) -> bytes:  # pragma: no cover - trivial
        return data

    def decrypt(self, token: bytes) -> bytes:  # pragma: no cover - trivial
        return token


_cipher: Fernet | _NoopCipher | None = None


def reset_cipher() -> None:
    global _cipher
    _cipher = None


def get_cipher() -> Fernet | _NoopCipher:
    global _cipher
    if _cipher is not None:
        return _cipher
    key = os.getenv(KEY_ENV)
    if not key:
        if os.getenv("ECONTRACT_ENV", "dev").lower() != "prod":
            log.warning("%s not set; audit trail will be stored in plaintext", KEY_ENV)
            _cipher = _NoopCipher()
            return _cipher
        raise RuntimeError(f"{KEY_ENV} not set")
    _cipher = Fernet(key)
    return _cipher


def secure_write(
    path: str | Path,
    data: bytes | str,
    *,
    append: bool = False,
    cipher: Optional[Fernet] = None,
) -> None:
    """Encrypt ``data`` and write it to ``path`` as one line."""
    cipher = cipher or get_cipher()
    if isinstance(data, str):
        data = data.encode("utf-8")
    token = cipher.encrypt(data)
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "ab" if append else "wb") as f:
        f.write(token + b"\n")


def secure_read_lines(path: str | Path, cipher: Optional[Fernet] = None) -> list[bytes]:
    """Decrypt every line previously written with :func:`secure_write`."""
    cipher = cipher or get_cipher()
    with open(path, "rb") as f:
        return [cipher.decrypt(line) for line in f.read().splitlines() if line]


__all__ = ["KEY_ENV", "get_cipher", "reset_cipher", "secure_write", "secure_read_lines"]
