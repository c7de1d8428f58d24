from ddproperty.config import Settings


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert "timestamp" in res.json()


def test_unknown_route_uses_error_envelope(client):
    res = client.get("/api/does-not-exist")
    assert res.status_code == 404
    assert res.json() == {"status": "error", "statusCode": 404, "message": "Not Found"}


def test_body_validation_errors_are_400(client):
    res = client.post("/api/messages", json={"name": "x"})
    assert res.status_code == 400
    body = res.json()
    assert body["status"] == "error"
    assert body["statusCode"] == 400
    fields = {err["field"] for err in body["errors"]}
    assert "body.propertyId" in fields
    assert "body.phone" in fields


def test_cors_origins_accept_json_or_comma_list():
    assert Settings(CORS_ORIGINS='["https://a.example", "https://b.example"]').cors_origins == [
        "https://a.example",
        "https://b.example",
    ]
    assert Settings(CORS_ORIGINS="https://a.example, https://b.example").cors_origins == [
        "https://a.example",
        "https://b.example",
    ]


def test_url_settings_are_normalized():
    settings = Settings(BASE_URL="https://api.example.com/", MEDIA_URL_PREFIX="media/")
    assert settings.BASE_URL == "https://api.example.com"
    assert settings.MEDIA_URL_PREFIX == "/media"
