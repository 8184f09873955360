"""Sample contracts and templates loaded in demo mode."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from .models import AIAnalysis, Contract, Risk, Signature, Template


def _d(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


_SERVICE_CONTENT = """業務委託契約書

甲（委託者）：株式会社サンプル
乙（受託者）：デモユーザー

第1条（業務内容）
甲は乙に対し、以下の業務を委託し、乙はこれを受託する。
・ウェブサイトの開発業務
・システムの保守管理業務

第2条（契約期間）
本契約の有効期間は、2024年1月1日から2024年12月31日までとする。

第3条（報酬）
甲は乙に対し、本業務の対価として月額500,000円を支払う。

以上、本契約の成立を証するため、本書2通を作成し、甲乙記名押印の上、各1通を保有する。"""

_NDA_CONTENT = """秘密保持契約書

甲：株式会社サンプル
乙：デモパートナー

第1条（秘密情報の定義）
本契約において「秘密情報」とは、甲乙間で開示される一切の情報をいう。

第2条（守秘義務）
甲及び乙は、相手方から開示された秘密情報を厳重に管理し、第三者に開示又は漏洩してはならない。

第3条（守秘義務期間）
本契約に基づく守秘義務は、本契約終了後も3年間継続する。"""

_DESIGN_CONTENT = """デザイン業務委託契約書

甲（委託者）：株式会社サンプル
乙（受託者）：デザインスタジオ

第1条（業務内容）
甲は乙に対し、コーポレートサイトのデザイン制作を委託する。

第2条（著作権）
成果物の著作権は、委託料の支払完了をもって甲に移転する。

第3条（報酬）
甲は乙に対し、本業務の対価として1,200,000円を支払う。"""


def demo_contracts() -> List[Contract]:
    """Fresh copies of the demo dataset."""
    return [
        Contract(
            contract_id="CNT-202401-DEMO1",
            title="サンプル業務委託契約書",
            description="デモ用の業務委託契約書です",
            content=_SERVICE_CONTENT,
            parties=[
                {
                    "id": "1",
                    "type": "contractor",
                    "name": "株式会社サンプル",
                    "email": "contract@sample.com",
                    "company": "株式会社サンプル",
                    "role": "甲（委託者）",
                    "signature_required": True,
                },
                {
                    "id": "2",
                    "type": "client",
                    "name": "デモユーザー",
                    "email": "demo@example.com",
                    "company": "デモ会社",
                    "role": "乙（受託者）",
                    "signature_required": True,
                },
            ],
            status="pending_signature",
            type="service_agreement",
            priority="high",
            category="IT",
            tags=["開発", "保守"],
            transaction_amount=6_000_000,
            created_by="demo-user",
            created_at=_d(2024, 1, 1),
            updated_at=_d(2024, 1, 1),
        ),
        Contract(
            contract_id="CNT-202401-DEMO2",
            title="サンプル秘密保持契約書",
            description="デモ用のNDA契約書です",
            content=_NDA_CONTENT,
            parties=[
                {
                    "id": "1",
                    "type": "contractor",
                    "name": "株式会社サンプル",
                    "email": "contract@sample.com",
                    "company": "株式会社サンプル",
                    "role": "甲",
                    "signed_at": _d(2024, 1, 5),
                },
                {
                    "id": "2",
                    "type": "client",
                    "name": "デモパートナー",
                    "email": "partner@example.com",
                    "company": "パートナー会社",
                    "role": "乙",
                    "signed_at": _d(2024, 1, 6),
                },
            ],
            status="completed",
            type="nda",
            signatures=[
                Signature(
                    party_id="1",
                    signature_data="",
                    signed_at=_d(2024, 1, 5),
                    ip_address="192.168.1.1",
                    user_agent="Mozilla/5.0",
                    verification_hash="demo-hash-1",
                    certificate_id="CERT-DEMO1",
                ),
                Signature(
                    party_id="2",
                    signature_data="",
                    signed_at=_d(2024, 1, 6),
                    ip_address="192.168.1.2",
                    user_agent="Mozilla/5.0",
                    verification_hash="demo-hash-2",
                    certificate_id="CERT-DEMO2",
                ),
            ],
            priority="medium",
            category="法務",
            tags=["NDA"],
            created_by="demo-user",
            created_at=_d(2024, 1, 5),
            updated_at=_d(2024, 1, 6),
            completed_at=_d(2024, 1, 6),
            ai_analysis=AIAnalysis(
                summary=(
                    "この秘密保持契約書は、両当事者間で交換される機密情報の保護を目的としています。"
                    "守秘義務は契約終了後3年間継続します。"
                ),
                key_terms=["秘密情報の定義", "守秘義務", "守秘義務期間3年"],
                risks=[
                    Risk(
                        level="low",
                        description="標準的なNDA条項で、特に問題となる点は見当たりません",
                    )
                ],
                recommendations=[
                    "例外事項（公知情報等）の条項を追加することを検討してください",
                    "違反時の損害賠償条項の追加を推奨します",
                ],
                contract_type="nda",
                analyzed_at=_d(2024, 1, 5),
            ),
            ai_tags=["秘密情報の定義", "守秘義務", "守秘義務期間3年"],
        ),
        Contract(
            contract_id="CNT-202402-DEMO3",
            title="Webデザイン業務委託契約書",
            description="デザイン制作のドラフト",
            content=_DESIGN_CONTENT,
            parties=[
                {
                    "id": "1",
                    "type": "contractor",
                    "name": "デザインスタジオ",
                    "email": "studio@example.com",
                    "company": "デザインスタジオ合同会社",
                },
            ],
            status="draft",
            type="design_agreement",
            priority="low",
            category="デザイン",
            tags=["デザイン"],
            transaction_amount=1_200_000,
            created_by="demo-user",
            created_at=_d(2024, 2, 10),
            updated_at=_d(2024, 2, 12),
        ),
    ]


def demo_templates() -> List[Template]:
    return [
        Template(
            template_id="nda-template",
            name="秘密保持契約書（NDA）",
            description="標準的な秘密保持契約書のテンプレート",
            category="NDA",
            title="秘密保持契約書",
            contract_type="nda",
            clauses=[
                {
                    "id": "clause-1",
                    "title": "目的",
                    "content": (
                        "本契約は、{{disclosingParty}}（以下「開示者」という）が"
                        "{{receivingParty}}（以下「受領者」という）に対して開示する"
                        "秘密情報の取り扱いについて定めることを目的とする。"
                    ),
                    "order": 1,
                    "variables": ["disclosingParty", "receivingParty"],
                },
                {
                    "id": "clause-2",
                    "title": "秘密情報の定義",
                    "content": (
                        "本契約において「秘密情報」とは、開示者が受領者に対して、"
                        "秘密である旨を明示して開示する情報をいう。"
                    ),
                    "order": 2,
                },
                {
                    "id": "clause-3",
                    "title": "秘密保持期間",
                    "content": "受領者は、本契約締結日から{{confidentialityPeriod}}年間、秘密情報を秘密として保持する。",
                    "order": 3,
                    "variables": ["confidentialityPeriod"],
                },
                {
                    "id": "clause-4",
                    "title": "損害賠償",
                    "content": "受領者が本契約に違反した場合、開示者に生じた損害を賠償する。",
                    "is_required": False,
                    "order": 4,
                },
            ],
            variables=[
                {"name": "disclosingParty", "display_name": "開示者", "required": True},
                {"name": "receivingParty", "display_name": "受領者", "required": True},
                {
                    "name": "confidentialityPeriod",
                    "display_name": "秘密保持期間（年）",
                    "type": "number",
                    "required": True,
                    "default_value": 3,
                    "validation": {"min": 1, "max": 10},
                },
            ],
            tags=["秘密保持", "NDA", "標準"],
        ),
        Template(
            template_id="service-agreement-template",
            name="業務委託契約書",
            description="標準的な業務委託契約書のテンプレート",
            category="業務委託",
            title="業務委託契約書",
            contract_type="service_agreement",
            clauses=[
                {
                    "id": "clause-1",
                    "title": "委託業務",
                    "content": (
                        "{{client}}（以下「委託者」という）は、{{contractor}}（以下「受託者」という）に対し、"
                        "次の業務を委託し、受託者はこれを受託する。\n業務内容：{{serviceDescription}}"
                    ),
                    "order": 1,
                    "variables": ["client", "contractor", "serviceDescription"],
                },
                {
                    "id": "clause-2",
                    "title": "委託料",
                    "content": "委託者は受託者に対し、委託料として{{amount}}円（消費税別）を支払う。",
                    "order": 2,
                    "variables": ["amount"],
                },
                {
                    "id": "clause-3",
                    "title": "契約期間",
                    "content": "本契約の有効期間は、{{startDate}}から{{endDate}}までとする。",
                    "order": 3,
                    "variables": ["startDate", "endDate"],
                },
            ],
            variables=[
                {"name": "client", "display_name": "委託者", "required": True},
                {"name": "contractor", "display_name": "受託者", "required": True},
                {"name": "serviceDescription", "display_name": "業務内容", "required": True},
                {
                    "name": "amount",
                    "display_name": "委託料（円）",
                    "type": "number",
                    "required": True,
                    "validation": {"min": 0},
                },
                {"name": "startDate", "display_name": "開始日", "type": "date", "required": True},
                {"name": "endDate", "display_name": "終了日", "type": "date", "required": True},
            ],
            tags=["業務委託", "標準"],
        ),
    ]


__all__ = ["demo_contracts", "demo_templates"]
