# test/test_submit_email_api.py

"""
HTTP-level tests for app.py

Each test gets a fresh limiter and an in-memory store patched into the
app module, so nothing touches Supabase or the real waitlist file.
"""

import dataclasses
from typing import List

import pytest
from fastapi.testclient import TestClient

import app as app_module
from logic.rate_limit import RateLimiter
from services.signup_store import InsertResult, SignupRecord


class MemoryStore:
    def __init__(self):
        self.emails: List[str] = []
        self.down = False

    def insert(self, email: str) -> InsertResult:
        if self.down:
            return InsertResult.failed("connection refused")
        if email in self.emails:
            return InsertResult.duplicate()
        self.emails.append(email)
        return InsertResult.accepted(SignupRecord(email=email, created_at="now"))


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> MemoryStore:
    s = MemoryStore()
    monkeypatch.setattr(app_module, "get_signup_store", lambda: s)
    return s


@pytest.fixture
def limiter(monkeypatch: pytest.MonkeyPatch) -> RateLimiter:
    lim = RateLimiter(window_seconds=3600, max_requests=5)
    monkeypatch.setattr(app_module, "limiter", lim)
    return lim


@pytest.fixture
def client(store, limiter) -> TestClient:
    return TestClient(app_module.app)


HEADERS = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}


def test_end_to_end_accept_duplicate_then_rate_limited(client, store):
    first = client.post("/api/submit-email", json={"email": "new@site.com"}, headers=HEADERS)
    assert first.status_code == 200
    assert first.json()["success"] is True
    assert first.json()["message"]

    again = client.post("/api/submit-email", json={"email": "new@site.com"}, headers=HEADERS)
    assert again.status_code == 400
    assert "already registered" in again.json()["error"]

    for i in range(3):
        r = client.post("/api/submit-email", json={"email": f"user{i}@site.com"}, headers=HEADERS)
        assert r.status_code == 200

    sixth = client.post("/api/submit-email", json={"email": "sixth@site.com"}, headers=HEADERS)
    assert sixth.status_code == 429
    assert "error" in sixth.json()
    assert "sixth@site.com" not in store.emails


def test_rate_limit_is_per_forwarded_client(client):
    for i in range(5):
        client.post("/api/submit-email", json={"email": f"a{i}@site.com"}, headers=HEADERS)

    blocked = client.post("/api/submit-email", json={"email": "b@site.com"}, headers=HEADERS)
    other = client.post(
        "/api/submit-email", json={"email": "b@site.com"}, headers={"X-Real-IP": "198.51.100.2"}
    )

    assert blocked.status_code == 429
    assert other.status_code == 200


@pytest.mark.parametrize(
    "body",
    [
        {"email": "not-an-email"},
        {"email": ""},
        {"email": None},
        {"email": "a@b"},
        {},
        ["new@site.com"],
    ],
)
def test_invalid_email_payloads(client, body):
    r = client.post("/api/submit-email", json=body)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid email address"}


def test_non_json_body_is_invalid_email(client):
    r = client.post(
        "/api/submit-email", content=b"email=new@site.com", headers={"Content-Type": "text/plain"}
    )
    assert r.status_code == 400
    assert "error" in r.json()


def test_store_outage_returns_generic_500_and_counts_attempt(client, store, limiter):
    store.down = True

    r = client.post("/api/submit-email", json={"email": "new@site.com"}, headers=HEADERS)

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to submit email. Please try again."}
    assert limiter.attempts("203.0.113.7") == 1


def test_unsupported_method_returns_405(client):
    r = client.get("/api/submit-email")
    assert r.status_code == 405
    assert r.json() == {"error": "Method not allowed"}


def test_options_returns_empty_200(client):
    r = client.options("/api/submit-email")
    assert r.status_code == 200
    assert r.content == b""
    assert r.headers["access-control-allow-origin"] == "*"


def test_cors_preflight(client):
    r = client.options(
        "/api/submit-email",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert r.status_code == 200
    assert r.content == b""
    assert r.headers["access-control-allow-origin"] == "*"
    assert "POST" in r.headers["access-control-allow-methods"]
    assert r.headers["access-control-allow-headers"] == "Content-Type"


def test_cors_header_on_post(client):
    r = client.post(
        "/api/submit-email",
        json={"email": "new@site.com"},
        headers={"Origin": "https://example.com"},
    )
    assert r.headers["access-control-allow-origin"] == "*"


def test_error_responses_carry_cors_headers(client):
    r = client.get("/api/submit-email", headers={"Origin": "https://example.com"})
    assert r.status_code == 405
    assert r.headers["access-control-allow-origin"] == "*"


def test_unhandled_error_returns_json_with_cors_headers(store, limiter, monkeypatch):
    def broken(headers):
        raise RuntimeError("header parsing bug")

    monkeypatch.setattr(app_module, "resolve_client_id", broken)
    client = TestClient(app_module.app, raise_server_exceptions=False)

    r = client.post(
        "/api/submit-email", json={"email": "new@site.com"}, headers={"Origin": "https://example.com"}
    )

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
    assert "header parsing bug" not in r.text
    assert r.headers["access-control-allow-origin"] == "*"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_privacy_policy_served(client):
    r = client.get("/api/privacy-policy")
    assert r.status_code == 200
    assert r.json()["title"] == "Privacy Policy"


def test_privacy_policy_missing_file(client, monkeypatch, tmp_path):
    settings = dataclasses.replace(
        app_module.settings, PRIVACY_POLICY_PATH=str(tmp_path / "missing.json")
    )
    monkeypatch.setattr(app_module, "settings", settings)

    r = client.get("/api/privacy-policy")
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to load privacy policy"}


def test_frontend_fallback_serves_index(client, monkeypatch, tmp_path):
    (tmp_path / "index.html").write_text("<h1>waitlist</h1>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log('hi')", encoding="utf-8")
    settings = dataclasses.replace(app_module.settings, FRONTEND_BUILD_DIR=str(tmp_path))
    monkeypatch.setattr(app_module, "settings", settings)

    assert client.get("/").text == "<h1>waitlist</h1>"
    assert client.get("/privacy").text == "<h1>waitlist</h1>"
    assert client.get("/app.js").text == "console.log('hi')"


def test_frontend_missing_build_is_404(client, monkeypatch, tmp_path):
    settings = dataclasses.replace(app_module.settings, FRONTEND_BUILD_DIR=str(tmp_path / "none"))
    monkeypatch.setattr(app_module, "settings", settings)

    r = client.get("/anything")
    assert r.status_code == 404
