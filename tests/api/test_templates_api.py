NDA_VALUES = {"disclosingParty": "甲株式会社", "receivingParty": "乙株式会社"}


def test_list_and_get(client):
    r = client.get("/api/templates")
    assert r.status_code == 200
    ids = [t["templateId"] for t in r.json()["data"]]
    assert ids == ["nda-template", "service-agreement-template"]
    assert [t["templateId"] for t in client.get("/api/templates", params={"category": "NDA"}).json()["data"]] == [
        "nda-template"
    ]
    body = client.get("/api/templates/nda-template").json()
    assert body["contractType"] == "nda"
    assert body["variables"][2]["defaultValue"] == 3


def test_unknown_template_404(client):
    r = client.get("/api/templates/nope")
    assert r.status_code == 404
    assert r.json()["error"] == "テンプレートが見つかりませんでした。"
    assert client.post("/api/templates/nope/instantiate", json={}).status_code == 404


def test_instantiate_creates_draft(client, services):
    r = client.post(
        "/api/templates/nda-template/instantiate",
        json={
            "values": NDA_VALUES,
            "title": "甲乙間NDA",
            "excludedClauses": ["clause-4"],
            "parties": [
                {"type": "contractor", "name": "甲", "email": "kou@example.com"},
                {"type": "client", "name": "乙", "email": "otsu@example.com"},
            ],
        },
    )
    assert r.status_code == 201
    contract = r.json()["contract"]
    assert contract["title"] == "甲乙間NDA"
    assert contract["status"] == "draft"
    assert contract["type"] == "nda"
    assert "甲株式会社" in contract["content"]
    assert "3年間" in contract["content"]
    assert "損害賠償" not in contract["content"]
    assert all(p["id"].startswith("party-") for p in contract["parties"])

    created = contract["auditLog"][0]
    assert created["details"]["source"] == "template"
    assert created["details"]["templateId"] == "nda-template"
    assert services.repository.exists(contract["contractId"])


def test_instantiate_reports_variable_errors(client, services):
    before = services.repository.count()
    r = client.post(
        "/api/templates/nda-template/instantiate",
        json={"values": {"confidentialityPeriod": 0}},
    )
    assert r.status_code == 400
    assert "開示者は必須です" in r.json()["details"]
    assert "1以上" in r.json()["details"]

    r = client.post(
        "/api/templates/nda-template/instantiate",
        json={"values": NDA_VALUES, "excludedClauses": ["clause-1"]},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "必須条項は除外できません"
    assert services.repository.count() == before


def test_template_crud(client):
    r = client.post(
        "/api/templates",
        json={
            "templateId": "lease-basic",
            "name": "賃貸借契約書",
            "title": "賃貸借契約書",
            "category": "賃貸",
            "contractType": "lease",
            "clauses": [{"id": "c1", "title": "目的", "content": "{{lessor}}は物件を貸す。", "order": 1}],
            "variables": [{"name": "lessor", "displayName": "貸主", "required": True}],
        },
    )
    assert r.status_code == 201
    assert r.json()["templateId"] == "lease-basic"
    assert client.post("/api/templates", json={"name": " ", "title": "x"}).status_code == 400

    r = client.put("/api/templates/lease-basic", json={"name": "賃貸借契約書（改）", "isActive": False})
    assert r.json()["name"] == "賃貸借契約書（改）"
    assert "lease-basic" not in [t["templateId"] for t in client.get("/api/templates").json()["data"]]
    listed = client.get("/api/templates", params={"include_inactive": True}).json()["data"]
    assert "lease-basic" in [t["templateId"] for t in listed]

    r = client.post("/api/templates/lease-basic/instantiate", json={"values": {"lessor": "大家"}})
    assert r.status_code == 400

    assert client.delete("/api/templates/lease-basic").json() == {"success": True}
    assert client.delete("/api/templates/lease-basic").status_code == 404


def test_template_with_bad_pattern_is_400(client):
    body = {
        "name": "発注書",
        "title": "発注書",
        "clauses": [{"id": "c1", "title": "品番", "content": "{{code}}", "order": 1}],
        "variables": [{"name": "code", "displayName": "品番", "validation": {"pattern": "("}}],
    }
    r = client.post("/api/templates", json=body)
    assert r.status_code == 400
    assert "invalid pattern" in r.json()["details"]

    body["templateId"] = "order-form"
    body["variables"][0]["validation"]["pattern"] = r"[A-Z]\d+"
    assert client.post("/api/templates", json=body).status_code == 201
    broken = [{"name": "code", "displayName": "品番", "validation": {"pattern": "[z-a]"}}]
    r = client.put("/api/templates/order-form", json={"variables": broken})
    assert r.status_code == 400
