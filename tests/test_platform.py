from ukuqala import config


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "X-Frame-Options" not in response.headers


def test_security_headers_on_api_responses(client):
    response = client.get("/doctors")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    assert response.headers["Cache-Control"] == "no-store, no-cache, must-revalidate"


def test_unknown_route_uses_envelope(client):
    response = client.get("/nope")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


def test_wrong_method_uses_envelope(client):
    response = client.delete("/health")

    assert response.status_code == 405
    assert response.json()["success"] is False


def test_docs_open_without_credentials_configured(client):
    response = client.get("/openapi.json")

    assert response.status_code == 200
    paths = response.json()["paths"]
    assert "/appointments" in paths
    assert "/docs" not in paths


def test_docs_require_basic_auth_when_configured(client, monkeypatch):
    monkeypatch.setattr(config, "SWAGGER_USER", "admin")
    monkeypatch.setattr(config, "SWAGGER_PASS", "s3cret")

    anonymous = client.get("/docs")
    wrong = client.get("/openapi.json", auth=("admin", "nope"))
    ok = client.get("/docs", auth=("admin", "s3cret"))

    assert anonymous.status_code == 401
    assert anonymous.headers["WWW-Authenticate"] == 'Basic realm="Swagger Docs"'
    assert anonymous.json()["message"] == "Authentication required."
    assert wrong.status_code == 401
    assert ok.status_code == 200
    assert "swagger-ui" in ok.text


def test_uploaded_files_are_served(client, doctor_headers):
    url = client.post(
        "/profile/avatar",
        files={"avatar": ("me.png", b"png-bytes", "image/png")},
        headers=doctor_headers,
    ).json()["data"]["avatar_url"]

    response = client.get(url.replace(config.BASE_URL, ""))

    assert response.status_code == 200
    assert response.content == b"png-bytes"
