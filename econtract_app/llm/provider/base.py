from __future__ import annotations

import json
import re
from typing import Dict, List, Optional, Sequence

from econtract_app.core.models import AIAnalysis, Contract, Risk

ANALYSIS_SYSTEM_PROMPT = (
    "あなたは法律に詳しいAIアシスタントです。契約書を分析し、重要な条項、リスク、推奨事項を日本語で提供してください。"
    "回答は summary, keyTerms, risks(level, description, mitigation), recommendations, estimatedValue "
    "をキーとするJSONで返してください。"
)

CHAT_SYSTEM_PROMPT = (
    "あなたは日本の法律に精通した契約書専門のAIアシスタントです。"
    "以下のコンテキストに基づいて、正確で実用的な法的アドバイスを提供してください。"
)

_JSON_BLOCK = re.compile(r"\{.*\}", re.S)
_LIST_MARKER = re.compile(r"^[-・*\d.]\s*")
_PAREN = re.compile(r"[(（].*?[)）]")


class ProviderError(Exception):
    """The analysis provider failed or returned something unusable."""


class ProviderTimeout(ProviderError):
    pass


class AnalysisProvider:
    name = "base"

    def analyze(self, contract: Contract, context: Optional[str] = None) -> AIAnalysis:  # pragma: no cover - interface
        raise NotImplementedError

    def chat(
        self,
        message: str,
        context: str = "",
        history: Sequence[Dict[str, str]] = (),
        contract: Optional[Contract] = None,
    ) -> str:  # pragma: no cover - interface
        raise NotImplementedError


def analysis_prompt(contract: Contract, context: Optional[str] = None) -> str:
    parties = "\n".join(f"- {p.role or p.type}: {p.name} ({p.company or 'N/A'})" for p in contract.parties)
    prompt = (
        "以下の契約書を分析してください:\n\n"
        f"タイトル: {contract.title}\n"
        f"種類: {contract.type}\n"
        f"作成日: {contract.created_at.date().isoformat()}\n\n"
        f"契約当事者:\n{parties}\n\n"
        f"契約内容:\n{contract.content}\n\n"
        "以下の点について分析してください:\n"
        "1. 契約の要約（3-5文）\n"
        "2. 重要な条項（キーターム）\n"
        "3. 潜在的なリスク（低・中・高のレベルで評価）\n"
        "4. 改善のための推奨事項\n"
        "5. 契約の推定価値（もしあれば）\n"
    )
    if context:
        prompt = f"{context}\n\n{prompt}"
    return prompt


def _is_heading(line: str) -> bool:
    return line.endswith((":", "："))


def _list_items(text: str) -> List[str]:
    items = []
    for line in text.split("\n"):
        line = line.strip()
        if not line or _is_heading(line):
            continue
        item = _LIST_MARKER.sub("", line).strip()
        if item:
            items.append(item)
    return items


def _risks_from_lines(text: str) -> List[Risk]:
    risks = []
    for line in text.split("\n"):
        if not line.strip() or _is_heading(line.strip()):
            continue
        level = "low"
        if "高" in line or "High" in line:
            level = "high"
        elif "中" in line or "Medium" in line:
            level = "medium"
        description = _PAREN.sub("", _LIST_MARKER.sub("", line.strip())).strip()
        if description:
            risks.append(Risk(level=level, description=description))
    return risks


def parse_analysis_sections(text: str, contract_type: Optional[str] = None) -> AIAnalysis:
    """Best-effort parse of a free-text answer split into blank-line sections."""
    sections = text.split("\n\n")

    def find(*needles: str) -> str:
        for s in sections:
            if any(n in s for n in needles):
                return s
        return ""

    summary = re.sub(r".*要約[:：]\s*", "", find("要約"), count=1).strip()
    return AIAnalysis(
        summary=summary,
        key_terms=_list_items(find("条項", "キーターム")),
        risks=_risks_from_lines(find("リスク")),
        recommendations=_list_items(find("推奨", "提案")),
        contract_type=contract_type,
    )


def parse_analysis(text: str, contract_type: Optional[str] = None) -> AIAnalysis:
    """Parse a provider answer, preferring an embedded JSON object."""
    if not text or not text.strip():
        raise ProviderError("empty analysis response")
    match = _JSON_BLOCK.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
        except ValueError:
            data = None
        if isinstance(data, dict):
            data.setdefault("contractType", contract_type)
            data.pop("analyzedAt", None)
            try:
                return AIAnalysis.model_validate(data)
            except ValueError as exc:
                raise ProviderError(f"unparsable analysis payload: {exc}") from exc
    analysis = parse_analysis_sections(text, contract_type)
    if not (analysis.summary or analysis.key_terms or analysis.risks or analysis.recommendations):
        raise ProviderError("unparsable analysis response")
    return analysis


__all__ = [
    "ANALYSIS_SYSTEM_PROMPT",
    "CHAT_SYSTEM_PROMPT",
    "AnalysisProvider",
    "ProviderError",
    "ProviderTimeout",
    "analysis_prompt",
    "parse_analysis",
    "parse_analysis_sections",
]
