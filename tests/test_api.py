"""HTTP-level tests through FastAPI's TestClient."""

from datetime import timedelta

import pyotp
import pytest
from fastapi.testclient import TestClient

from authcore.api.deps import get_clock, get_token_delivery
from authcore.core.clock import to_timestamp
from authcore.core.security import get_token_service
from authcore.db.session import get_db
from authcore.main import app

from helpers import PASSWORD


@pytest.fixture
def client(db, clock, tokens, delivery):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_token_service] = lambda: tokens
    app.dependency_overrides[get_token_delivery] = lambda: delivery
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def signup(client, email="a@x.com", **extra):
    response = client.post("/api/auth/signup", json={"email": email, "password": PASSWORD, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def bearer(tokens):
    return {"Authorization": f"Bearer {tokens['access_token']}"}


def test_health_and_request_id(client):
    response = client.get("/api/health", headers={"X-Request-Id": "req-1"})

    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-Id"] == "req-1"
    assert client.get("/api/health").headers["X-Request-Id"]


def test_forwarded_client_ip_is_recorded(client):
    response = client.post(
        "/api/auth/signup",
        json={"email": "a@x.com", "password": PASSWORD},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "phone-app"},
    )
    assert response.headers["Cache-Control"] == "no-store"

    sessions = client.get("/api/users/me/sessions", headers=bearer(response.json())).json()
    assert sessions["sessions"][0]["ip_address"] == "203.0.113.7"
    assert sessions["sessions"][0]["device_info"] == "phone-app"


def test_signup_signin_and_me(client):
    created = signup(client, username="alice")
    assert created["token_type"] == "bearer"
    assert created["expires_in"] == 900

    response = client.post("/api/auth/signin", json={"email": "a@x.com", "password": PASSWORD})
    assert response.status_code == 200
    me = client.get("/api/users/me", headers=bearer(response.json()))
    assert me.status_code == 200
    assert me.json()["username"] == "alice"
    assert "hashed_password" not in me.json()


def test_error_envelope(client):
    signup(client)

    duplicate = client.post("/api/auth/signup", json={"email": "a@x.com", "password": PASSWORD})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "EMAIL_ALREADY_EXISTS"

    wrong = client.post("/api/auth/signin", json={"email": "a@x.com", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json() == {
        "error": "INVALID_CREDENTIALS",
        "message": "Invalid email or password",
        "details": {},
    }


def test_request_validation(client):
    response = client.post("/api/auth/signup", json={"email": "not-an-email", "password": "short"})
    assert response.status_code == 422


def test_refresh_rotation_over_http(client):
    created = signup(client)

    rotated = client.post("/api/auth/refresh", json={"refresh_token": created["refresh_token"]})
    assert rotated.status_code == 200

    replay = client.post("/api/auth/refresh", json={"refresh_token": created["refresh_token"]})
    assert replay.status_code == 401
    assert replay.json()["error"] == "INVALID_REFRESH_TOKEN"


def test_signout_and_signout_all(client):
    created = signup(client)
    client.post("/api/auth/signin", json={"email": "a@x.com", "password": PASSWORD})

    first = client.post("/api/auth/signout", json={"refresh_token": created["refresh_token"]})
    again = client.post("/api/auth/signout", json={"refresh_token": created["refresh_token"]})
    assert first.json()["success"] is True
    assert again.json()["success"] is False

    everything = client.post("/api/auth/signout-all", headers=bearer(created))
    assert everything.json()["sessions_revoked"] == 1


def test_missing_and_expired_access_token(client, clock):
    created = signup(client)

    assert client.get("/api/users/me").status_code == 401
    bad = client.get("/api/users/me", headers={"Authorization": "Bearer nonsense"})
    assert bad.json()["detail"] == "Invalid token"

    clock.advance(minutes=16)
    expired = client.get("/api/users/me", headers=bearer(created))
    assert expired.status_code == 401
    assert expired.json()["detail"] == "Token expired"


def test_refresh_token_is_not_an_access_token(client):
    created = signup(client)

    response = client.get(
        "/api/users/me", headers={"Authorization": f"Bearer {created['refresh_token']}"}
    )
    assert response.status_code == 401


def test_sessions_listing_and_revocation(client):
    created = signup(client)
    client.post("/api/auth/signin", json={"email": "a@x.com", "password": PASSWORD})

    listing = client.get("/api/users/me/sessions", headers=bearer(created)).json()
    assert listing["pagination"]["total"] == 2
    session_id = listing["sessions"][0]["id"]

    revoked = client.delete(f"/api/users/me/sessions/{session_id}", headers=bearer(created))
    assert revoked.json()["success"] is True
    missing = client.delete("/api/users/me/sessions/999", headers=bearer(created))
    assert missing.status_code == 404
    assert missing.json()["error"] == "SESSION_NOT_FOUND"


def test_password_reset_flow(client, delivery):
    signup(client)

    unknown = client.post("/api/auth/password-reset", json={"email": "nobody@x.com"})
    known = client.post("/api/auth/password-reset", json={"email": "a@x.com"})
    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()

    token = delivery.reset_tokens["a@x.com"]
    confirm = client.post(
        "/api/auth/password-reset/confirm", json={"token": token, "new_password": "Brand1newpass"}
    )
    assert confirm.status_code == 200
    reuse = client.post(
        "/api/auth/password-reset/confirm", json={"token": token, "new_password": "Brand1newpass"}
    )
    assert reuse.status_code == 400
    assert reuse.json()["error"] == "INVALID_TOKEN"


def test_verify_email_over_http(client, delivery):
    created = signup(client)

    token = delivery.verification_tokens["a@x.com"]
    assert client.post("/api/auth/verify-email", json={"token": token}).status_code == 200
    resend = client.post("/api/auth/resend-verification", headers=bearer(created))
    assert resend.json() == {"message": "Email already verified", "success": False}


def test_self_service_deactivate_and_delete(client):
    created = signup(client)
    client.post("/api/users/me/deactivate", headers=bearer(created))

    response = client.post("/api/auth/signin", json={"email": "a@x.com", "password": PASSWORD})
    assert response.status_code == 403
    assert response.json()["error"] == "ACCOUNT_INACTIVE"

    assert client.delete("/api/users/me", headers=bearer(created)).status_code == 200
    gone = client.delete("/api/users/me", headers=bearer(created))
    assert gone.status_code == 409
    assert gone.json()["error"] == "INVALID_STATE_TRANSITION"


@pytest.fixture
def admin(client, container):
    created = signup(client, email="root@x.com")
    container.users.update_where(created["user"]["id"], {"role": "admin"})
    response = client.post("/api/auth/signin", json={"email": "root@x.com", "password": PASSWORD})
    return response.json()


def test_admin_suspend_and_unsuspend(client, clock, admin):
    target = signup(client)
    user_id = target["user"]["id"]
    until = (clock.now() + timedelta(days=2)).isoformat()

    suspended = client.post(
        f"/api/admin/users/{user_id}/suspend",
        json={"reason": "spam", "until": until},
        headers=bearer(admin),
    )
    assert suspended.status_code == 200
    assert suspended.json()["status"] == "suspended"

    blocked = client.post("/api/auth/signin", json={"email": "a@x.com", "password": PASSWORD})
    assert blocked.status_code == 423
    assert blocked.json()["details"] == {"reason": "spam", "until": until}

    restored = client.post(f"/api/admin/users/{user_id}/unsuspend", headers=bearer(admin))
    assert restored.json()["status"] == "active"


def test_admin_routes_require_role(client, admin):
    target = signup(client)

    forbidden = client.get("/api/admin/users", headers=bearer(target))
    assert forbidden.status_code == 403

    listing = client.get("/api/admin/users", headers=bearer(admin))
    assert listing.json()["pagination"]["total"] == 2

    promoted = client.put(
        f"/api/admin/users/{target['user']['id']}/role",
        json={"role": "moderator"},
        headers=bearer(admin),
    )
    assert promoted.json()["role"] == "moderator"


def test_two_factor_over_http(client, clock):
    created = signup(client)
    setup = client.post("/api/users/me/2fa/setup", headers=bearer(created)).json()
    code = pyotp.TOTP(setup["secret"]).at(to_timestamp(clock.now()))
    assert client.post(
        "/api/users/me/2fa/confirm", json={"code": code}, headers=bearer(created)
    ).status_code == 200

    gated = client.post("/api/auth/signin", json={"email": "a@x.com", "password": PASSWORD})
    assert gated.status_code == 401
    assert gated.json()["error"] == "TWO_FACTOR_REQUIRED"

    ok = client.post(
        "/api/auth/signin",
        json={"email": "a@x.com", "password": PASSWORD, "two_factor_code": code},
    )
    assert ok.status_code == 200


def test_admin_reads_security_events(client, admin):
    target = signup(client)
    user_id = target["user"]["id"]
    client.post("/api/auth/signin", json={"email": "a@x.com", "password": "nope"})
    client.post("/api/auth/signin", json={"email": "a@x.com", "password": PASSWORD})

    url = f"/api/admin/users/{user_id}/security-events"
    listing = client.get(url, headers=bearer(admin)).json()
    kinds = [e["event_type"] for e in listing["events"]]
    assert kinds[:2] == ["login_success", "login_failed"]
    assert listing["events"][1]["details"] == {"reason": "invalid_password"}

    failed = client.get(
        url, params={"event_type": "login_failed", "page_size": 1}, headers=bearer(admin)
    ).json()
    assert failed["pagination"]["total"] == 1
    assert failed["events"][0]["severity"] == "medium"

    assert client.get(url, headers=bearer(target)).status_code == 403
    missing = client.get("/api/admin/users/999/security-events", headers=bearer(admin))
    assert missing.status_code == 404
    assert missing.json()["error"] == "USER_NOT_FOUND"
    bad_kind = client.get(url, params={"event_type": "nope"}, headers=bearer(admin))
    assert bad_kind.status_code == 422
