from typing import Dict, Optional, Sequence

from econtract_app.core.models import AIAnalysis, Contract, Risk

from .base import AnalysisProvider


class MockAnalysisProvider(AnalysisProvider):
    """Deterministic answers for demo mode and tests."""

    name = "mock"

    def analyze(self, contract: Contract, context: Optional[str] = None) -> AIAnalysis:
        return AIAnalysis(
            summary=(
                f"この{contract.title}は、{len(contract.parties)}者間の契約であり、"
                f"{contract.type}に関する内容が含まれています。デモモードで表示されています。"
                "実際の環境では、AIによる詳細な分析が実行されます。"
            ),
            key_terms=[
                "契約期間：明確に定義されています",
                "当事者の権利と義務：詳細に記載",
                "報酬・対価：具体的な金額設定",
                "契約解除条件：適切に設定",
                "守秘義務：含まれています",
            ],
            risks=[
                Risk(
                    level="low",
                    description=(
                        "デモモードでは詳細なリスク分析は行われません。"
                        "実際の環境では、契約内容に基づいた具体的なリスク評価が提供されます。"
                    ),
                ),
                Risk(
                    level="medium",
                    description="一般的な契約リスクとして、曖昧な表現や不完全な条項がある可能性があります。",
                    mitigation="条項の文言を具体化してください。",
                ),
            ],
            recommendations=[
                "実際の環境でのAI分析をご利用ください",
                "法的専門家による最終確認を推奨します",
                "契約条項の明確化を検討してください",
                "定期的な契約見直しを実施してください",
            ],
            contract_type=contract.type,
            estimated_value=contract.transaction_amount,
        )

    def chat(
        self,
        message: str,
        context: str = "",
        history: Sequence[Dict[str, str]] = (),
        contract: Optional[Contract] = None,
    ) -> str:
        prefix = f"「{contract.title}」について、" if contract is not None else ""
        if "税" in message:
            body = (
                "税務に関するご質問ですね。\n\n"
                "• 契約金額が税込みか税抜きかを明確にしてください\n"
                "• 印紙税の要否は契約の種類と金額によって決まります\n\n"
                "**デモモード**：重要な税務事項については税理士にご確認ください。"
            )
        elif "期間" in message or "期限" in message:
            body = (
                "契約期間に関するご質問ですね。\n\n"
                "• 開始日と終了日が明確に定められているか確認してください\n"
                "• 自動更新の有無と更新拒絶の通知期限を確認してください\n\n"
                "**デモモード**：実際の環境では期間条項を詳細に分析します。"
            )
        elif "リスク" in message or "問題" in message:
            body = (
                "契約上のリスクについてご質問いただきました。\n\n"
                "• 納期・履行遅延時の責任\n"
                "• 損害賠償の範囲と上限\n"
                "• 契約解除の条件\n\n"
                "**デモモード**：実際の環境では契約全体を精査してリスク評価を行います。"
            )
        else:
            body = (
                "ご質問いただきありがとうございます。\n\n"
                "現在デモモードで動作しているため、実際のAI分析機能は制限されています。"
                "より具体的なご質問がございましたら、お気軽にお聞かせください。"
            )
        return prefix + body
