from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import httpx

from econtract_app.api.limits import AI_TIMEOUT_S
from econtract_app.core.models import AIAnalysis, Contract

from .base import (
    ANALYSIS_SYSTEM_PROMPT,
    CHAT_SYSTEM_PROMPT,
    AnalysisProvider,
    ProviderError,
    ProviderTimeout,
    analysis_prompt,
    parse_analysis,
)

log = logging.getLogger(__name__)


class ChatCompletionsProvider(AnalysisProvider):
    """OpenAI-compatible ``/chat/completions`` endpoint (DeepSeek by default)."""

    name = "deepseek"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.deepseek.com/v1",
        model: str = "deepseek-chat",
        timeout: float = AI_TIMEOUT_S,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    def _ask(self, messages: List[Dict[str, str]], max_tokens: int, temperature: float) -> str:
        body = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.timeout) as cli:
                r = cli.post(f"{self.base_url}/chat/completions", headers=headers, json=body)
                r.raise_for_status()
                j = r.json()
        except httpx.TimeoutException as exc:
            raise ProviderTimeout("ai provider timeout") from exc
        except httpx.HTTPError as exc:
            log.warning("chat completions call failed: %s", exc)
            raise ProviderError(f"ai provider request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("ai provider returned invalid JSON") from exc
        try:
            return j["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError("ai provider response has no choices") from exc

    def analyze(self, contract: Contract, context: Optional[str] = None) -> AIAnalysis:
        text = self._ask(
            [
                {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": analysis_prompt(contract, context)},
            ],
            max_tokens=2000,
            temperature=0.3,
        )
        return parse_analysis(text, contract_type=contract.type)

    def chat(
        self,
        message: str,
        context: str = "",
        history: Sequence[Dict[str, str]] = (),
        contract: Optional[Contract] = None,
    ) -> str:
        system = CHAT_SYSTEM_PROMPT
        if context:
            system = f"{system}\n\nコンテキスト:\n{context}"
        messages = [{"role": "system", "content": system}]
        for turn in list(history)[-10:]:
            role = turn.get("role")
            if role in ("user", "assistant") and turn.get("content"):
                messages.append({"role": role, "content": str(turn["content"])})
        messages.append({"role": "user", "content": message})
        text = self._ask(messages, max_tokens=1500, temperature=0.3)
        if not text.strip():
            raise ProviderError("empty chat response")
        return text
