from app.core.config import settings


def test_forwardauth_requires_forwarded_header(client, monkeypatch):
    monkeypatch.setattr(settings, "auth_mode", "forwardauth")

    assert client.get("/v1/me").status_code == 401
    assert client.get("/v1/me", headers={"X-Dev-User": "alice@example.com"}).status_code == 401

    response = client.get("/v1/me", headers={"X-Forwarded-User": "Alice@Example.com"})
    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"
    assert response.json()["member"] is None


def test_logout_needs_identity(client):
    assert client.post("/v1/logout").status_code == 401
    assert client.post("/v1/logout", headers={"X-Dev-User": "alice@example.com"}).json() == {"ok": True}
