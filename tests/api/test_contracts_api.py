import time
from concurrent.futures import ThreadPoolExecutor

from econtract_app.core.errors import ValidationError

DEMO1 = "CNT-202401-DEMO1"
DEMO2 = "CNT-202401-DEMO2"
DEMO3 = "CNT-202402-DEMO3"


def test_list_defaults(client):
    r = client.get("/api/contracts")
    assert r.status_code == 200
    body = r.json()
    assert body["pagination"] == {
        "page": 1,
        "limit": 20,
        "total": 3,
        "totalPages": 1,
        "hasNext": False,
        "hasPrev": False,
    }
    assert {c["contractId"] for c in body["data"]} == {DEMO1, DEMO2, DEMO3}
    assert r.headers["x-ratelimit-limit"] == "100"


def test_list_filters_and_sort(client):
    r = client.get("/api/contracts", params={"status": "draft,completed", "sortBy": "title", "sortOrder": "asc"})
    ids = [c["contractId"] for c in r.json()["data"]]
    assert set(ids) == {DEMO2, DEMO3}

    r = client.get("/api/contracts", params=[("type", "nda"), ("type", "design_agreement")])
    assert {c["contractId"] for c in r.json()["data"]} == {DEMO2, DEMO3}

    r = client.get("/api/contracts", params={"sortBy": "priority", "sortOrder": "desc", "limit": 1})
    body = r.json()
    assert [c["contractId"] for c in body["data"]] == [DEMO1]
    assert body["pagination"]["hasNext"] is True

    r = client.get("/api/contracts", params={"q": "サンプル"})
    assert DEMO1 in {c["contractId"] for c in r.json()["data"]}


def test_list_limit_clamped(client):
    r = client.get("/api/contracts", params={"limit": 5000, "page": 0})
    assert r.json()["pagination"]["limit"] == 100
    assert r.json()["pagination"]["page"] == 1


def test_list_rejects_unknown_sort(client):
    r = client.get("/api/contracts", params={"sortBy": "nope"})
    assert r.status_code == 400
    assert r.json()["error"] == "入力内容に誤りがあります。"


def test_get_records_view(client, services):
    r = client.get(f"/api/contracts/{DEMO1}")
    assert r.status_code == 200
    assert r.json()["title"]
    log = services.repository.get(DEMO1).audit_log
    assert log[-1].action == "viewed"


def test_get_unknown_is_404(client):
    r = client.get("/api/contracts/CNT-NOPE")
    assert r.status_code == 404
    assert r.json()["error"] == "契約書が見つかりませんでした。"


def test_create(client, services, new_contract_body):
    r = client.post("/api/contracts", json=new_contract_body)
    assert r.status_code == 201
    body = r.json()
    assert body["contractId"].startswith("CNT-")
    assert body["status"] == "draft"
    assert body["createdBy"] == "system"
    assert body["parties"][1]["company"] == "委託株式会社"
    assert [e["action"] for e in body["auditLog"]] == ["created"]
    assert body["auditLog"][0]["details"]["source"] == "api"
    assert services.repository.exists(body["contractId"])


def test_create_requires_title_content_and_type(client, services, new_contract_body):
    before = services.repository.count()
    for field, value in (("title", None), ("content", "   "), ("type", None)):
        payload = dict(new_contract_body)
        if value is None:
            payload.pop(field)
        else:
            payload[field] = value
        r = client.post("/api/contracts", json=payload)
        assert r.status_code == 400
        assert field in r.json()["details"]
    assert services.repository.count() == before


def test_create_rejects_unknown_fields_and_bad_values(client, new_contract_body):
    assert client.post("/api/contracts", json={**new_contract_body, "signatures": []}).status_code == 400
    assert client.post("/api/contracts", json={**new_contract_body, "type": "spaceship"}).status_code == 400
    assert client.post("/api/contracts", json={**new_contract_body, "transactionAmount": -1}).status_code == 400


def test_create_rejects_malformed_json(client):
    r = client.post("/api/contracts", content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 400


def test_update_advances_status_and_ignores_protected(client, services, new_contract_body):
    cid = client.post("/api/contracts", json=new_contract_body).json()["contractId"]
    r = client.put(
        f"/api/contracts/{cid}",
        json={"status": "pending_review", "title": "改題", "signatures": [{"bogus": True}], "contractId": "X"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["contract"]["status"] == "pending_review"
    assert body["contract"]["title"] == "改題"
    assert body["contract"]["signatures"] == []
    entry = services.repository.get(cid).audit_log[-1]
    assert entry.action == "updated"
    assert entry.details["previousStatus"] == "draft"
    assert entry.details["newStatus"] == "pending_review"
    assert entry.details["updatedFields"] == ["status", "title"]


def test_update_rejects_backwards_transition(client):
    r = client.patch(f"/api/contracts/{DEMO1}", json={"status": "draft"})
    assert r.status_code == 400
    assert r.json()["error"] == "契約ステータスをこの状態に変更することはできません"
    assert r.json()["details"] == "pending_signature -> draft"


def test_update_cannot_complete_directly(client):
    r = client.patch(f"/api/contracts/{DEMO3}", json={"status": "completed"})
    assert r.status_code == 400


def test_completed_contract_is_read_only(client, services):
    r = client.put(f"/api/contracts/{DEMO2}", json={"title": "x"})
    assert r.status_code == 400
    assert r.json()["error"] == "完了済みの契約は編集できません"
    r = client.delete(f"/api/contracts/{DEMO2}")
    assert r.status_code == 400
    assert r.json()["error"] == "完了済みの契約は削除できません"
    assert services.repository.get(DEMO2).status == "completed"


def test_update_unknown_is_404(client):
    assert client.put("/api/contracts/CNT-NOPE", json={"title": "x"}).status_code == 404


def test_delete_is_soft_cancel(client, services):
    r = client.delete(f"/api/contracts/{DEMO3}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "契約がキャンセルされました"}
    stored = services.repository.get(DEMO3)
    assert stored.status == "cancelled"
    assert stored.audit_log[-1].details["previousStatus"] == "draft"

    # cancelled is terminal
    r = client.put(f"/api/contracts/{DEMO3}", json={"status": "draft"})
    assert r.status_code == 400


def test_analytics(client):
    r = client.get("/api/contracts/analytics")
    assert r.status_code == 200
    body = r.json()
    assert body["totalContracts"] == 3
    assert body["contractsByStatus"]["completed"] == 1
    assert body["contractsByStatus"]["expired"] == 0
    assert body["contractsByType"]["nda"] == 1
    assert body["inProgress"] == 2
    assert body["topCounterparties"][0]["company"] == "デモ会社"


def test_demo_seed_resets_store(client, services, new_contract_body):
    client.post("/api/contracts", json=new_contract_body)
    assert services.repository.count() == 4
    r = client.post("/api/demo/seed")
    assert r.status_code == 200
    assert r.json()["count"] == 3
    assert services.repository.count() == 3


def test_cancel_is_not_overwritten_by_concurrent_update(services, monkeypatch):
    repo = services.repository
    plain_get = repo.get

    def slow_get(contract_id):
        found = plain_get(contract_id)
        time.sleep(0.2)
        return found

    monkeypatch.setattr(repo, "get", slow_get)

    def attempt(fn):
        try:
            return fn().status
        except ValidationError:
            return "rejected"

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = list(
            pool.map(
                attempt,
                [
                    lambda: services.contracts.cancel(DEMO3),
                    lambda: services.contracts.update(DEMO3, {"status": "pending_review"}),
                ],
            )
        )

    assert outcomes[0] == "cancelled"
    assert outcomes[1] in ("pending_review", "rejected")
    assert plain_get(DEMO3).status == "cancelled"
