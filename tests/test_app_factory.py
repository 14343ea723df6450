from buttons_api.app_factory import create_app
from buttons_api.config import Config


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok", "collections": ["custom_buttons"]}


def test_request_id_echoed_and_generated(client):
    r = client.get("/healthz", headers={"X-Request-Id": "abc-123"})
    assert r.headers["X-Request-Id"] == "abc-123"
    assert r.headers["X-Request-Duration-ms"].isdigit()
    generated = client.get("/healthz").headers["X-Request-Id"]
    assert generated and generated != "abc-123"


def test_problem_carries_request_id(client):
    r = client.get("/api/custom_buttons", headers={"X-Request-Id": "rid-1"})
    assert r.status_code == 401
    assert r.get_json()["request_id"] == "rid-1"


def test_unknown_route_is_problem(client):
    r = client.get("/api/nothing_here")
    assert r.status_code == 404
    assert r.headers["Content-Type"].startswith("application/problem+json")


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("JWT_SECRETS", "one, two")
    monkeypatch.setenv("OPTIONS_REQUIRE_AUTH", "1")
    monkeypatch.setenv("API_PREFIX", "/v2/")
    cfg = Config.from_env()
    assert cfg.jwt_secrets == ["one", "two"]
    assert cfg.options_require_auth is True
    assert cfg.api_prefix == "/v2"


def test_api_prefix_override(app_session):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "x",
            "api_prefix": "/v2",
            "database_url": app_session.config["SQLALCHEMY_DATABASE_URI"],
        }
    )
    urls = {r.rule for r in app.url_map.iter_rules()}
    assert "/v2/custom_buttons" in urls
    assert "/v2/openapi.json" in urls
