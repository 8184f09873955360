from dataclasses import replace

from fastapi.testclient import TestClient

from econtract_app.api.app import create_app
from econtract_app.core.ratelimit import RateLimiter, RateLimitResult
from econtract_app.llm.provider import MockAnalysisProvider


class ExhaustedStore:
    def hit(self, key, limit, window_seconds, now):
        return RateLimitResult(False, 0, now + window_seconds)


class DownStore:
    def hit(self, key, limit, window_seconds, now):
        raise ConnectionError("counter store unreachable")


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "mode": "demo", "aiProvider": "mock"}


def test_request_id_echoed_or_generated(client):
    r = client.get("/health", headers={"x-request-id": "req-123"})
    assert r.headers["x-request-id"] == "req-123"
    assert int(r.headers["x-latency-ms"]) >= 0
    generated = client.get("/health").headers["x-request-id"]
    assert len(generated) == 32


def test_error_responses_carry_std_headers(client):
    r = client.get("/api/contracts/CNT-NOPE", headers={"x-request-id": "req-404"})
    assert r.status_code == 404
    assert r.headers["x-request-id"] == "req-404"


def test_unknown_route_is_404_envelope(client):
    r = client.get("/api/nowhere")
    assert r.status_code == 404
    assert r.json() == {"error": "指定されたリソースが見つかりませんでした。"}


def test_rate_limited_before_validation(client, services, new_contract_body):
    services.limiter = RateLimiter(ExhaustedStore())
    before = services.repository.count()
    r = client.post("/api/contracts", json={"garbage": True})
    assert r.status_code == 429
    assert r.json()["error"] == "リクエスト数が制限を超えました。しばらくお待ちください。"
    r = client.post("/api/contracts", json=new_contract_body)
    assert r.status_code == 429
    assert services.repository.count() == before


def test_rate_limit_counts_per_scope(client, services):
    state_limit = services.limiter
    for _ in range(3):
        client.get("/api/contracts")
    result = state_limit.check_limit("api:testclient", 100, 60)
    assert result.remaining == 100 - 4


def test_store_outage_policy(client, services, config):
    services.limiter = RateLimiter(DownStore())
    assert client.get("/api/contracts").status_code == 200

    closed = create_app(replace(config, rate_limit_fail_open=False), provider=MockAnalysisProvider())
    closed.state.services.limiter = RateLimiter(DownStore(), fail_open=False)
    r = TestClient(closed).get("/api/contracts")
    assert r.status_code == 429


def test_unhandled_errors_are_generic(config, monkeypatch):
    app = create_app(config, provider=MockAnalysisProvider())

    def explode(*a, **kw):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(app.state.services.contracts, "get", explode)
    r = TestClient(app, raise_server_exceptions=False).get("/api/contracts/CNT-202401-DEMO1")
    assert r.status_code == 500
    assert r.json() == {"error": "エラーが発生しました。もう一度お試しください。"}

    exposed = create_app(replace(config, expose_error_details=True), provider=MockAnalysisProvider())
    monkeypatch.setattr(exposed.state.services.contracts, "get", explode)
    r = TestClient(exposed, raise_server_exceptions=False).get("/api/contracts/CNT-202401-DEMO1")
    assert r.json()["details"] == "RuntimeError: secret internals"


def test_demo_seed_refused_outside_demo(config):
    app = create_app(
        replace(config, mode="persistent", contracts_dsn="sqlite://"),
        provider=MockAnalysisProvider(),
    )
    client = TestClient(app)
    r = client.post("/api/demo/seed")
    assert r.status_code == 400
    assert r.json()["error"] == "この操作はデモモードでのみ利用できます"
    assert client.get("/api/contracts").json()["pagination"]["total"] == 0


def test_persistent_mode_roundtrip(config, new_contract_body):
    app = create_app(
        replace(config, mode="persistent", contracts_dsn="sqlite://"),
        provider=MockAnalysisProvider(),
    )
    client = TestClient(app)
    cid = client.post("/api/contracts", json=new_contract_body).json()["contractId"]
    r = client.patch(f"/api/contracts/{cid}", json={"status": "pending_signature"})
    assert r.json()["contract"]["status"] == "pending_signature"
    body = client.get(f"/api/contracts/{cid}").json()
    assert [e["action"] for e in body["auditLog"]] == ["created", "updated"]
    assert client.get("/api/contracts").json()["pagination"]["total"] == 1
