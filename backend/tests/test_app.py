import pytest
from fastapi import HTTPException

from pethub.config import Settings
from pethub.schemas import error_message
from pethub.utils import uploads
from pethub.utils.rate_limit import LoginThrottle


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"
    assert body["timestamp"]


def test_request_id_is_echoed_or_generated(client):
    r = client.get("/api/health", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"
    generated = client.get("/api/health").headers["X-Request-ID"]
    assert len(generated) == 32


def test_cors_preflight(client):
    r = client.options(
        "/api/auth/login",
        headers={
            "Origin": "http://localhost:8081",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "http://localhost:8081"
    assert r.headers["access-control-allow-credentials"] == "true"
    assert r.headers["access-control-max-age"] == "86400"


def test_errors_use_message_envelope(client):
    r = client.get("/api/auth/login")
    assert r.status_code == 405
    assert "message" in r.json()

    missing = client.get("/api/nothing-here")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Not Found"}


def test_serving_uploads(client, make_user, png):
    assert client.get("/api/uploads/missing.png").json() == {"message": "File not found"}

    _uid, headers = make_user()
    post = client.post(
        "/api/post", data={"content": "pic"}, files={"image": ("a.png", png(), "image/png")}, headers=headers,
    ).json()["data"]
    name = post["image"][len("/uploads/"):]
    served = client.get(f"/api/uploads/{name}")
    assert served.status_code == 200
    assert served.headers["cache-control"] == "public, max-age=31536000"
    assert client.get(post["image"]).status_code == 200


@pytest.mark.parametrize("filename", ["..", "a/b.png", "a\\b.png", "x" * 201])
def test_resolve_upload_rejects_bad_names(filename):
    with pytest.raises(HTTPException) as exc:
        uploads.resolve_upload(filename)
    assert exc.value.status_code == 400


def test_is_upload_path():
    assert uploads.is_upload_path("/uploads/a.png")
    assert not uploads.is_upload_path("/etc/passwd")
    assert not uploads.is_upload_path("/uploads/../secret")
    assert not uploads.is_upload_path(None)


def test_settings_refuse_default_secret_outside_dev(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(RuntimeError):
        Settings()

    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://pethub.app, https://admin.pethub.app")
    prod = Settings()
    assert prod.is_production
    assert prod.ALLOWED_ORIGINS == ["https://pethub.app", "https://admin.pethub.app"]


def test_settings_reject_non_positive_expiry(monkeypatch):
    monkeypatch.setenv("JWT_EXPIRE_HOURS", "0")
    with pytest.raises(RuntimeError):
        Settings()


def test_login_throttle_window(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr("pethub.utils.rate_limit.time.monotonic", lambda: now[0])
    throttle = LoginThrottle(max_failures=2, window_seconds=60)

    throttle.record_failure("k")
    assert throttle.retry_after("k") == 0
    now[0] += 10
    throttle.record_failure("k")
    assert throttle.retry_after("k") == 50

    now[0] += 51
    assert throttle.retry_after("k") == 0
    assert throttle.retry_after("other") == 0

    throttle.record_failure("k")
    throttle.reset("k")
    assert throttle.retry_after("k") == 0


def test_error_message():
    assert error_message([]) == "Invalid request"
    assert error_message([{"type": "missing", "loc": ("body", "email"), "msg": "Field required"}]) == \
        "email is required"
    assert error_message([{"type": "value_error", "loc": ("body", "review"), "msg": "Value error, too long"}]) == \
        "too long"
    assert error_message([{"type": "int_parsing", "loc": ("query", "page"), "msg": "bad int"}]) == "page: bad int"
