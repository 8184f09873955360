"""Built-in Japanese legal knowledge used by the enhanced analysis and chat.

Provisions, clause checklists and law updates are static data; lookups are
plain substring matching against titles and bodies.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Dict, Iterable, List, Literal, Optional

from pydantic import Field

from .models import CamelModel, Contract

# ============================================================================
# Value objects
# ============================================================================
class LegalReference(CamelModel):
    id: str
    title: str
    content: str
    source: Literal["egov", "moj", "meti", "nta", "template"] = "egov"
    url: Optional[str] = None
    last_updated: date
    relevance_score: float = Field(ge=0.0, le=1.0)


class LegalUpdate(CamelModel):
    id: str
    title: str
    summary: str
    effective_date: date
    impact_level: Literal["high", "medium", "low"]
    related_contract_types: List[str] = Field(default_factory=list)
    source: str


class ComplianceCheck(CamelModel):
    id: str
    title: str
    status: Literal["compliant", "warning", "violation"]
    description: str
    recommendation: Optional[str] = None
    legal_basis: str


class StampTax(CamelModel):
    tax_amount: int
    explanation: str
    legal_basis: str


class _ChecklistClause(CamelModel):
    title: str
    category: Literal["essential", "recommended"]
    explanation: str


# ============================================================================
# Data
# ============================================================================
LEGAL_TOPICS: Dict[str, List[str]] = {
    "service_agreement": ["業務委託", "善管注意義務", "損害賠償", "契約解除"],
    "employment": ["雇用契約", "労働基準法", "就業規則", "解雇"],
    "nda": ["秘密保持", "機密情報", "競業禁止", "損害賠償"],
    "default": ["契約", "民法", "債務不履行"],
}

LEGAL_KEYWORDS = (
    "契約期間", "更新", "解除", "損害賠償", "責任", "義務", "権利",
    "支払い", "報酬", "対価", "成果物", "著作権", "知的財産",
    "秘密保持", "競業禁止", "準拠法", "管轄裁判所",
)

QUERY_PATTERNS: Dict[str, Dict[str, tuple]] = {
    "cancellation": {"keywords": ("解除", "キャンセル"), "topics": ("契約解除", "民法第545条")},
    "damages": {"keywords": ("損害", "賠償"), "topics": ("損害賠償", "民法第415条")},
    "stampTax": {"keywords": ("印紙", "税"), "topics": ("印紙税", "印紙税法")},
}

RISK_MITIGATION_SUGGESTIONS = (
    "契約解除条項の明確化により、予期しない状況に対応できます。",
    "損害賠償条項の上限設定により、過度なリスクを回避できます。",
    "不可抗力条項の追加により、天災等による履行不能リスクを軽減できます。",
    "準拠法と管轄裁判所の明記により、紛争時の対応を明確にできます。",
)

_CIVIL_CODE_URL = "https://elaws.e-gov.go.jp/document?lawid=129AC0000000089"

PROVISIONS = (
    LegalReference(
        id="civil_code_545",
        title="民法第545条（解除の効果）",
        content=(
            "当事者の一方がその解除権を行使したときは、各当事者は、その相手方を原状に復させる義務を負う。"
            "ただし、第三者の権利を害することはできない。"
        ),
        url=_CIVIL_CODE_URL,
        last_updated=date(2023, 4, 1),
        relevance_score=0.95,
    ),
    LegalReference(
        id="civil_code_415",
        title="民法第415条（債務不履行による損害賠償）",
        content=(
            "債務者がその債務の本旨に従った履行をしないとき又は債務の履行が不能であるときは、"
            "債権者は、これによって生じた損害の賠償を請求することができる。"
        ),
        url=_CIVIL_CODE_URL,
        last_updated=date(2023, 4, 1),
        relevance_score=0.90,
    ),
    LegalReference(
        id="electronic_signature_law_3",
        title="電子署名法第3条（電子署名の効力）",
        content=(
            "電磁的記録であって情報を表すために作成されたものは、当該電磁的記録に記録された情報について"
            "本人による電子署名が行われているときは、真正に成立したものと推定する。"
        ),
        url="https://elaws.e-gov.go.jp/document?lawid=412AC0000000102",
        last_updated=date(2023, 5, 1),
        relevance_score=0.88,
    ),
)

LEGAL_UPDATES = (
    LegalUpdate(
        id="electronic_contract_update_2024",
        title="電子契約に関するガイドライン改正（2024年4月施行）",
        summary="電子署名の有効性に関する新しい要件が追加され、より厳格な本人確認プロセスが求められるようになりました。",
        effective_date=date(2024, 4, 1),
        impact_level="high",
        related_contract_types=["service_agreement", "nda", "employment"],
        source="経済産業省",
    ),
    LegalUpdate(
        id="labor_law_update_2024",
        title="労働契約法の一部改正",
        summary="リモートワークに関する就業規則の明記義務化など、働き方の多様化に対応した改正が行われました。",
        effective_date=date(2024, 6, 1),
        impact_level="medium",
        related_contract_types=["employment"],
        source="厚生労働省",
    ),
)

CLAUSE_CHECKLISTS: Dict[str, List[_ChecklistClause]] = {
    "service_agreement": [
        _ChecklistClause(title="第1条（目的）", category="essential", explanation="契約の基本的な目的を明確にする必須条項です。"),
        _ChecklistClause(title="第2条（業務内容）", category="essential", explanation="委託する業務の範囲を具体的に定義します。"),
        _ChecklistClause(title="第3条（報酬）", category="essential", explanation="報酬の支払い条件を明確に定めます。"),
        _ChecklistClause(title="第4条（秘密保持）", category="recommended", explanation="機密情報の保護に関する重要な条項です。"),
    ],
    "nda": [
        _ChecklistClause(title="第1条（秘密情報の定義）", category="essential", explanation="秘密情報の範囲を明確に定義する基本条項です。"),
        _ChecklistClause(title="第2条（秘密保持義務）", category="essential", explanation="秘密保持の具体的な義務を定めます。"),
    ],
}

_ARTICLE_PREFIX = re.compile(r"第\d+条")


# ============================================================================
# Lookups
# ============================================================================
def _unique(items: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(items))


def keywords_in(text: str) -> List[str]:
    return [k for k in LEGAL_KEYWORDS if k in text]


def topics_from_contract(contract: Contract) -> List[str]:
    topics = list(LEGAL_TOPICS.get(contract.type, LEGAL_TOPICS["default"]))
    topics.extend(keywords_in(contract.content))
    return _unique(topics)


def topics_from_query(query: str) -> List[str]:
    topics = keywords_in(query)
    for pattern in QUERY_PATTERNS.values():
        if any(k in query for k in pattern["keywords"]):
            topics.extend(pattern["topics"])
    return _unique(topics)


def search_provisions(keywords: Iterable[str]) -> List[LegalReference]:
    keywords = [k for k in keywords if k]
    return [
        p for p in PROVISIONS if any(k in p.title or k in p.content for k in keywords)
    ]


def legal_updates(contract_types: Optional[Iterable[str]] = None) -> List[LegalUpdate]:
    if contract_types is None:
        return list(LEGAL_UPDATES)
    wanted = set(contract_types)
    return [u for u in LEGAL_UPDATES if wanted & set(u.related_contract_types)]


def stamp_tax(contract_type: str, amount: Optional[float] = None) -> StampTax:
    """Stamp duty per the first schedule of the Stamp Tax Act."""
    basis = "印紙税法別表第一"
    if contract_type == "service_agreement":
        if not amount:
            return StampTax(tax_amount=200, explanation="契約金額の記載がない場合は200円の印紙税が必要です。", legal_basis=basis)
        if amount <= 1_000_000:
            return StampTax(tax_amount=1000, explanation="契約金額が100万円以下の場合は1,000円の印紙税が必要です。", legal_basis=basis)
        if amount <= 5_000_000:
            return StampTax(tax_amount=2000, explanation="契約金額が500万円以下の場合は2,000円の印紙税が必要です。", legal_basis=basis)
        tax = min(200_000, math.floor(amount * 0.0001))
        return StampTax(tax_amount=tax, explanation=f"契約金額に応じて{tax}円の印紙税が必要です。", legal_basis=basis)
    if contract_type == "employment":
        return StampTax(tax_amount=0, explanation="雇用契約書は印紙税の対象外です。", legal_basis=f"{basis}（対象外）")
    if contract_type == "nda":
        return StampTax(tax_amount=0, explanation="秘密保持契約書は通常印紙税の対象外です。", legal_basis=f"{basis}（対象外）")
    return StampTax(
        tax_amount=200,
        explanation="詳細不明のため、最低額の200円を適用します。詳細は税務署にご確認ください。",
        legal_basis=basis,
    )


def compliance_checks(contract: Contract, references: Iterable[LegalReference] = ()) -> List[ComplianceCheck]:
    enough_parties = len(contract.parties) >= 2
    checks = [
        ComplianceCheck(
            id="contract_parties",
            title="契約当事者の明記",
            status="compliant" if enough_parties else "warning",
            description=(
                "契約当事者が適切に明記されています。"
                if enough_parties
                else "契約当事者の情報が不完全な可能性があります。"
            ),
            legal_basis="民法第522条（契約の成立）",
        )
    ]
    if contract.signatures:
        checks.append(
            ComplianceCheck(
                id="electronic_signature",
                title="電子署名の有効性",
                status="compliant",
                description="電子署名が適切に実施されています。",
                legal_basis="電子署名法第3条",
            )
        )
    if contract.type == "employment":
        checks.append(
            ComplianceCheck(
                id="labor_standards",
                title="労働基準法への準拠",
                status="warning",
                description="労働条件の明示が労働基準法に準拠しているか確認が必要です。",
                recommendation="労働基準法第15条に基づく労働条件の明示を確認してください。",
                legal_basis="労働基準法第15条",
            )
        )
    if any("民法" in r.title for r in references):
        checks.append(
            ComplianceCheck(
                id="civil_code_compliance",
                title="民法準拠確認",
                status="compliant",
                description="関連する民法条文に基づいたチェックが完了しました。",
                legal_basis="民法各条",
            )
        )
    return checks


def recommended_clauses(contract: Contract) -> List[str]:
    out: List[str] = []
    for clause in CLAUSE_CHECKLISTS.get(contract.type, []):
        if clause.category == "essential":
            if _ARTICLE_PREFIX.sub("", clause.title) not in contract.content:
                out.append(f"{clause.title}の追加を推奨します: {clause.explanation}")
        else:
            out.append(f"{clause.title}の検討を推奨します: {clause.explanation}")
    return out


def response_confidence(response: str, reference_count: int) -> float:
    confidence = 0.5 + min(0.3, reference_count * 0.1)
    if "不明" in response or "確実ではない" in response:
        confidence -= 0.2
    if "専門家" in response or "弁護士" in response:
        confidence -= 0.1
    return round(max(0.0, min(1.0, confidence)), 4)


def chat_context(
    contract: Contract,
    references: Iterable[LegalReference],
    query: str,
    contract_specific: bool = False,
) -> str:
    lines = [
        "以下の契約書について質問に回答してください：",
        "",
        f"契約書タイトル: {contract.title}",
        f"契約内容:\n{contract.content}",
        "",
    ]
    refs = list(references)
    if refs:
        lines.append("関連する法的根拠：")
        lines.extend(f"- {r.title}: {r.content}" for r in refs)
        lines.append("")
    lines.append(f"質問: {query}")
    lines.append("")
    if contract_specific:
        lines.append(
            f"この契約書「{contract.title}」の具体的な条項のみを参照し、"
            "必ず契約書の内容を引用して回答してください。一般論や他の契約書に関する回答は避けてください。"
        )
    else:
        lines.append(
            "上記の法的根拠に基づいて、正確で実用的な回答を提供してください。"
            "不確実な場合は、その旨を明記し、専門家への相談を推奨してください。"
        )
    return "\n".join(lines)


def analysis_context(
    contract: Contract,
    references: Iterable[LegalReference],
    updates: Iterable[LegalUpdate],
) -> str:
    lines = [
        "契約書分析コンテキスト：",
        "",
        f"契約タイトル: {contract.title}",
        f"契約種別: {contract.type}",
        f"作成日: {contract.created_at.date().isoformat()}",
        "",
    ]
    refs = list(references)
    if refs:
        lines.append("関連法令：")
        lines.extend(f"- {r.title}: {r.content}" for r in refs)
        lines.append("")
    checklist = CLAUSE_CHECKLISTS.get(contract.type, [])
    if checklist:
        lines.append("推奨条項：")
        lines.extend(f"- {c.title}: {c.explanation}" for c in checklist)
        lines.append("")
    ups = list(updates)
    if ups:
        lines.append("関連する法改正情報：")
        lines.extend(f"- {u.title}: {u.summary}" for u in ups)
    return "\n".join(lines)


__all__ = [
    "LegalReference",
    "LegalUpdate",
    "ComplianceCheck",
    "StampTax",
    "LEGAL_TOPICS",
    "LEGAL_KEYWORDS",
    "QUERY_PATTERNS",
    "RISK_MITIGATION_SUGGESTIONS",
    "PROVISIONS",
    "topics_from_contract",
    "topics_from_query",
    "search_provisions",
    "legal_updates",
    "stamp_tax",
    "compliance_checks",
    "recommended_clauses",
    "response_confidence",
    "chat_context",
    "analysis_context",
]
