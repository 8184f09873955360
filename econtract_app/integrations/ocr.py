"""Azure Computer Vision Read API client."""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Callable, List, Optional

import httpx
from pydantic import Field

from econtract_app.api.limits import OCR_MAX_POLLS, OCR_TIMEOUT_S
from econtract_app.core.cache import TTLCache
from econtract_app.core.models import CamelModel

log = logging.getLogger(__name__)

READ_PATH = "/vision/v3.2/read/analyze"
DEFAULT_WORD_CONFIDENCE = 0.9


class OCRError(Exception):
    pass


class OCRTimeout(OCRError):
    pass


class OCRWord(CamelModel):
    text: str
    bounding_box: List[float] = Field(default_factory=list)
    confidence: float = DEFAULT_WORD_CONFIDENCE


class OCRLine(CamelModel):
    text: str
    bounding_box: List[float] = Field(default_factory=list)
    words: List[OCRWord] = Field(default_factory=list)


class OCRResult(CamelModel):
    text: str = ""
    lines: List[OCRLine] = Field(default_factory=list)
    language: str = "ja"
    confidence: float = 0.0


def parse_read_result(payload: dict) -> OCRResult:
    analyze = payload.get("analyzeResult") or {}
    lines: List[OCRLine] = []
    total = 0.0
    words_seen = 0
    for page in analyze.get("readResults") or []:
        for line in page.get("lines") or []:
            words = []
            for w in line.get("words") or []:
                conf = w.get("confidence") or DEFAULT_WORD_CONFIDENCE
                words.append(OCRWord(text=w.get("text", ""), bounding_box=w.get("boundingBox") or [], confidence=conf))
                total += conf
                words_seen += 1
            lines.append(
                OCRLine(text=line.get("text", ""), bounding_box=line.get("boundingBox") or [], words=words)
            )
    return OCRResult(
        text="\n".join(l.text for l in lines).strip(),
        lines=lines,
        language=analyze.get("language") or "ja",
        confidence=total / words_seen if words_seen else 0.0,
    )


class AzureReadClient:
    """Submit an image to the Read API and poll for the result.

    Polling stops after ``max_polls`` attempts; results are cached by
    image digest.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout: float = OCR_TIMEOUT_S,
        max_polls: int = OCR_MAX_POLLS,
        poll_interval_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_polls = max_polls
        self.poll_interval_s = poll_interval_s
        self.sleep = sleep
        self.cache = cache if cache is not None else TTLCache(max_items=64, ttl_s=24 * 3600)

    def _headers(self, content_type: Optional[str] = None) -> dict:
        headers = {"Ocp-Apim-Subscription-Key": self.api_key}
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def read_image(self, data: bytes) -> OCRResult:
        digest = hashlib.sha256(data).hexdigest()
        cached = self.cache.get(digest)
        if cached is not None:
            return cached
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(
                    f"{self.endpoint}{READ_PATH}",
                    headers=self._headers("application/octet-stream"),
                    content=data,
                )
                resp.raise_for_status()
                location = resp.headers.get("Operation-Location")
                if not location:
                    raise OCRError("missing Operation-Location header")
                payload = self._poll(client, location)
        except httpx.TimeoutException as exc:
            raise OCRTimeout("ocr timeout") from exc
        except httpx.HTTPError as exc:
            raise OCRError(f"ocr request failed: {exc}") from exc
        except ValueError as exc:
            raise OCRError(f"ocr returned malformed JSON: {exc}") from exc
        result = parse_read_result(payload)
        self.cache.set(digest, result)
        return result

    def _poll(self, client: httpx.Client, location: str) -> dict:
        for attempt in range(self.max_polls):
            resp = client.get(location, headers=self._headers())
            resp.raise_for_status()
            payload = resp.json()
            if not isinstance(payload, dict):
                raise OCRError("ocr poll returned a non-object body")
            status = payload.get("status")
            if status == "succeeded":
                return payload
            if status == "failed":
                raise OCRError("ocr operation failed")
            if attempt + 1 < self.max_polls:
                self.sleep(self.poll_interval_s)
        raise OCRTimeout(f"ocr operation not finished after {self.max_polls} polls")


class UnconfiguredOCRClient:
    """Stand-in used when no Azure endpoint is configured."""

    def read_image(self, data: bytes) -> OCRResult:
        raise OCRError("OCR endpoint is not configured")


__all__ = [
    "OCRError",
    "OCRTimeout",
    "OCRWord",
    "OCRLine",
    "OCRResult",
    "AzureReadClient",
    "UnconfiguredOCRClient",
    "parse_read_result",
]
