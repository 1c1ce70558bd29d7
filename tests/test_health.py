def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["version"] == "1.0.0"
    assert body["uptime"] >= 0
    assert "timestamp" in body


def test_ready(client):
    resp = client.get("/api/health/ready")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ready", "database": "connected"}


def test_ready_reports_unreachable_database(client, monkeypatch):
    from models import storage

    monkeypatch.setattr(storage, "ping", lambda: False)

    resp = client.get("/api/health/ready")

    assert resp.status_code == 503
    assert resp.get_json()["database"] == "disconnected"


def test_live(client):
    assert client.get("/api/health/live").get_json() == {"status": "alive"}


def test_swagger_spec_lists_auth_routes(client):
    spec = client.get("/swagger.json").get_json()

    assert "/api/auth/login" in spec["paths"]
    assert "/api/users/{user_id}" in spec["paths"]
