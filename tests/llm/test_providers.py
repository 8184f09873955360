import json

import httpx
import pytest
import respx

from econtract_app.config import AppConfig
from econtract_app.core.models import Contract, Party
from econtract_app.llm.provider import (
    ChatCompletionsProvider,
    MockAnalysisProvider,
    ProviderError,
    ProviderTimeout,
    parse_analysis,
    provider_from_config,
)

BASE = "https://llm.example.com/v1"
URL = f"{BASE}/chat/completions"


@pytest.fixture
def contract():
    return Contract(
        contract_id="CNT-LLM",
        title="業務委託契約書",
        content="第1条（目的）",
        type="service_agreement",
        transaction_amount=500000,
        parties=[Party(id="1", type="client", name="山田", email="y@example.com", company="山田商事")],
    )


def _reply(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_provider_from_config():
    assert isinstance(provider_from_config(AppConfig()), MockAnalysisProvider)
    assert isinstance(provider_from_config(AppConfig(ai_provider="deepseek")), MockAnalysisProvider)
    real = provider_from_config(AppConfig(ai_provider="deepseek", ai_api_key="sk", ai_base_url=BASE))
    assert isinstance(real, ChatCompletionsProvider)
    assert real.base_url == BASE


def test_mock_analysis(contract):
    analysis = MockAnalysisProvider().analyze(contract)
    assert len(analysis.key_terms) == 5
    assert [r.level for r in analysis.risks] == ["low", "medium"]
    assert analysis.estimated_value == 500000
    assert analysis.contract_type == "service_agreement"


def test_mock_chat_keywords(contract):
    mock = MockAnalysisProvider()
    assert "印紙税" in mock.chat("税金について")
    assert mock.chat("契約期間は？", contract=contract).startswith("「業務委託契約書」について、")
    assert "損害賠償" in mock.chat("リスクは？")


@respx.mock
def test_analyze_parses_json_answer(contract):
    payload = {
        "summary": "要約です",
        "keyTerms": ["報酬"],
        "risks": [{"level": "high", "description": "上限なし", "mitigation": "上限を設ける"}],
        "recommendations": ["上限条項の追加"],
        "estimatedValue": 500000,
    }
    route = respx.post(URL).respond(json=_reply("```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```"))
    analysis = ChatCompletionsProvider("sk", BASE, model="m1").analyze(contract, context="関連法令")

    body = json.loads(route.calls[0].request.content)
    assert route.calls[0].request.headers["Authorization"] == "Bearer sk"
    assert body["model"] == "m1"
    assert body["max_tokens"] == 2000
    assert body["messages"][0]["role"] == "system"
    assert body["messages"][1]["content"].startswith("関連法令")
    assert "山田商事" in body["messages"][1]["content"]

    assert analysis.summary == "要約です"
    assert analysis.risks[0].level == "high"
    assert analysis.contract_type == "service_agreement"


@respx.mock
def test_chat_sends_trimmed_history(contract):
    route = respx.post(URL).respond(json=_reply("回答"))
    history = [{"role": "user", "content": f"q{i}"} for i in range(12)] + [{"role": "system", "content": "x"}]
    reply = ChatCompletionsProvider("sk", BASE).chat("質問", context="ctx", history=history, contract=contract)
    assert reply == "回答"
    messages = json.loads(route.calls[0].request.content)["messages"]
    assert messages[0]["content"].endswith("コンテキスト:\nctx")
    assert [m["content"] for m in messages[1:-1]] == [f"q{i}" for i in range(3, 12)]
    assert messages[-1] == {"role": "user", "content": "質問"}


@respx.mock
def test_errors_mapped():
    provider = ChatCompletionsProvider("sk", BASE)
    respx.post(URL).mock(side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(ProviderTimeout):
        provider.chat("q")

    respx.post(URL).respond(503)
    with pytest.raises(ProviderError):
        provider.chat("q")

    respx.post(URL).respond(json={"choices": []})
    with pytest.raises(ProviderError):
        provider.chat("q")

    respx.post(URL).respond(json=_reply("   "))
    with pytest.raises(ProviderError):
        provider.chat("q")


def test_parse_analysis_sections():
    text = (
        "1. 要約: 本契約は業務委託契約です。\n\n"
        "2. 重要な条項:\n- 報酬は月額\n- 契約期間は1年\n\n"
        "3. 潜在的なリスク:\n- 高: 損害賠償の上限なし\n- 低: 軽微な表記揺れ\n\n"
        "4. 推奨事項:\n- 上限条項を追加する"
    )
    analysis = parse_analysis(text, contract_type="nda")
    assert analysis.summary == "本契約は業務委託契約です。"
    assert analysis.key_terms == ["報酬は月額", "契約期間は1年"]
    assert [r.level for r in analysis.risks] == ["high", "low"]
    assert analysis.recommendations == ["上限条項を追加する"]
    assert analysis.contract_type == "nda"


@pytest.mark.parametrize("text", ["", "   ", "ok", '{"risks": [{"level": "extreme", "description": "x"}]}'])
def test_parse_analysis_rejects_unusable(text):
    with pytest.raises(ProviderError):
        parse_analysis(text)
