"""API endpoint tests."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import redis
from fastapi.testclient import TestClient
from passlib.hash import bcrypt

import libala.services.sessions as sessions_module
from libala.main import app
from libala.models import AuthToken, User
from libala.services.passwords import verify_password
from libala.services.tokens import hash_token


def signup(client, email="newuser@example.com", password="password123", first_name="New"):
    return client.post(
        "/api/auth/signup",
        json={"email": email, "password": password, "firstName": first_name},
    )


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_signup_creates_unverified_user(client, db, outbox):
    """Signup stores a hashed password and emails a verification link."""
    response = signup(client)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Signup successful. Check your email to activate your account."
    assert data["user"]["email"] == "newuser@example.com"

    user = db.query(User).filter(User.email == "newuser@example.com").one()
    assert user.email_verified_at is None
    assert user.password_hash != "password123"
    assert user.is_admin is False

    assert len(outbox) == 1
    assert outbox[0]["to"] == "newuser@example.com"
    assert "/verify-email?token=" in outbox[0]["html"]


def test_signup_stores_only_token_hash(client, db, outbox):
    """The raw token from the email never appears in the database."""
    signup(client)
    raw_token = outbox.last_token()

    auth_token = db.query(AuthToken).one()
    assert auth_token.token_hash == hash_token(raw_token)
    assert auth_token.token_hash != raw_token
    assert auth_token.type == "email_verification"


def test_signup_normalizes_email(client, db):
    """Emails are stored lower-cased."""
    response = signup(client, email="Mixed.Case@Example.com")
    assert response.status_code == 201
    assert db.query(User).one().email == "mixed.case@example.com"


def test_signup_duplicate_email(client, verified_user):
    """Signup with an email already in use fails, whatever its case."""
    response = signup(client, email=verified_user["email"].upper())
    assert response.status_code == 400
    assert response.json()["detail"] == "This email is already in use."


def test_signup_missing_fields(client, outbox):
    """Missing required fields return 400 and create nothing."""
    response = client.post("/api/auth/signup", json={"email": "a@example.com"})
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Validation failed."
    assert {tuple(e["loc"])[-1] for e in body["errors"]} >= {"password", "firstName"}
    assert outbox == []


def test_signup_short_password(client):
    """Passwords under 8 characters are rejected."""
    response = signup(client, password="short")
    assert response.status_code == 400


def test_signup_succeeds_when_email_queue_fails(client, db):
    """A broker outage is logged but does not fail the signup."""
    with patch("libala.tasks.email.send_email.delay", side_effect=ConnectionError("down")):
        response = signup(client)

    assert response.status_code == 201
    assert db.query(User).count() == 1


def test_login_before_verification(client, outbox):
    """Correct credentials on an unverified account are refused with a resend hint."""
    signup(client)

    response = client.post(
        "/api/auth/login", json={"email": "newuser@example.com", "password": "password123"}
    )
    assert response.status_code == 403
    body = response.json()
    assert body["canResend"] is True
    assert body["email"] == "newuser@example.com"
    assert body["message"]
    assert "detail" not in body
    assert "libala_session" not in response.cookies


def test_signup_verify_login(client, outbox):
    """Full flow: signup, follow the link, log in, read the profile."""
    signup(client)

    response = client.get("/api/auth/verify-email", params={"token": outbox.last_token()})
    assert response.status_code == 200
    assert response.json()["message"] == "Your email has been verified. You can now log in."

    response = client.post(
        "/api/auth/login", json={"email": "newuser@example.com", "password": "password123"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Login successful."
    assert response.json()["user"]["emailVerifiedAt"] is not None
    assert "libala_session" in response.cookies

    response = client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json()["email"] == "newuser@example.com"
    assert response.json()["firstName"] == "New"


def test_login_sets_http_only_cookie(client, verified_user):
    """The session cookie is HttpOnly and SameSite=Lax."""
    response = client.post(
        "/api/auth/login",
        json={"email": verified_user["email"], "password": verified_user["password"]},
    )
    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie


def test_login_records_last_login(client, db, verified_user):
    """A successful login stamps last_login_at."""
    client.post(
        "/api/auth/login",
        json={"email": verified_user["email"], "password": verified_user["password"]},
    )
    user = db.query(User).filter(User.id == verified_user["id"]).one()
    db.refresh(user)
    assert user.last_login_at is not None


def test_login_upgrades_plain_bcrypt_hash(client, db):
    """Accounts hashed with plain bcrypt still log in and get the current scheme."""
    user = User(
        email="legacy@example.com",
        password_hash=bcrypt.using(rounds=4).hash("password123"),
        first_name="Legacy",
        email_verified_at=datetime.now(UTC),
    )
    db.add(user)
    db.commit()

    response = client.post(
        "/api/auth/login", json={"email": "legacy@example.com", "password": "password123"}
    )
    assert response.status_code == 200
    db.refresh(user)
    assert user.password_hash.startswith("$bcrypt-sha256$")
    assert verify_password("password123", user.password_hash)


def test_login_wrong_password(client, verified_user):
    """Test login with wrong password."""
    response = client.post(
        "/api/auth/login", json={"email": verified_user["email"], "password": "wrongpass"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password."


def test_login_unknown_email_matches_wrong_password(client, verified_user):
    """Unknown email and wrong password are indistinguishable."""
    wrong_password = client.post(
        "/api/auth/login", json={"email": verified_user["email"], "password": "wrongpass"}
    )
    unknown_email = client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": "wrongpass"}
    )
    assert unknown_email.status_code == wrong_password.status_code == 401
    assert unknown_email.json() == wrong_password.json()


def test_login_case_insensitive_email(client, verified_user):
    """Login accepts the email in any case."""
    response = client.post(
        "/api/auth/login",
        json={"email": verified_user["email"].upper(), "password": verified_user["password"]},
    )
    assert response.status_code == 200


def test_login_account_without_password(client, db):
    """Accounts without a password hash cannot use password login."""
    db.add(
        User(email="oauth@example.com", first_name="Ext", email_verified_at=datetime.now(UTC))
    )
    db.commit()

    response = client.post(
        "/api/auth/login", json={"email": "oauth@example.com", "password": "password123"}
    )
    assert response.status_code == 401


def test_me_anonymous(client):
    """Without a session /me returns null."""
    response = client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json() is None


def test_me_with_unknown_session_cookie(client):
    """A forged cookie is treated as anonymous."""
    client.cookies.set("libala_session", "not-a-real-session")
    response = client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json() is None


def test_logout(client, verified_user, login):
    """Logout destroys the session server-side."""
    login(verified_user["email"])
    session_id = client.cookies.get("libala_session")

    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get("/api/auth/me").json() is None

    # Replaying the old cookie does not bring the session back
    client.cookies.set("libala_session", session_id)
    assert client.get("/api/auth/me").json() is None


def test_logout_without_session(client):
    """Logging out anonymously still succeeds."""
    response = client.post("/api/auth/logout")
    assert response.status_code == 200


def test_verify_email_missing_token(client):
    """The verification link requires a token."""
    response = client.get("/api/auth/verify-email")
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing token."


def test_verify_email_unknown_token(client):
    """An unknown token is rejected."""
    response = client.get("/api/auth/verify-email", params={"token": "0" * 64})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired link."


def test_verify_email_twice(client, outbox):
    """A verification link works exactly once."""
    signup(client)
    token = outbox.last_token()

    assert client.get("/api/auth/verify-email", params={"token": token}).status_code == 200
    assert client.get("/api/auth/verify-email", params={"token": token}).status_code == 400


def test_verify_email_expired(client, db, outbox):
    """An expired verification link is rejected and the user stays unverified."""
    signup(client)
    token = outbox.last_token()

    auth_token = db.query(AuthToken).one()
    auth_token.expires_at = datetime.now(UTC) - timedelta(minutes=1)
    db.commit()

    response = client.get("/api/auth/verify-email", params={"token": token})
    assert response.status_code == 400
    assert db.query(User).one().email_verified_at is None


def test_resend_verification_replaces_link(client, outbox):
    """Resending issues a new link and the previous one stops working."""
    signup(client)
    first_token = outbox.last_token()

    response = client.post("/api/auth/resend-verification", json={"email": "newuser@example.com"})
    assert response.status_code == 200
    second_token = outbox.last_token()
    assert second_token != first_token

    assert client.get("/api/auth/verify-email", params={"token": first_token}).status_code == 400
    assert client.get("/api/auth/verify-email", params={"token": second_token}).status_code == 200


def test_resend_verification_does_not_reveal_accounts(client, verified_user, outbox):
    """Unknown, verified and unverified emails get the same answer."""
    signup(client, email="pending@example.com")
    emails_before = len(outbox)

    responses = [
        client.post("/api/auth/resend-verification", json={"email": email})
        for email in ("nobody@example.com", verified_user["email"], "pending@example.com")
    ]

    assert {r.status_code for r in responses} == {200}
    assert len({r.content for r in responses}) == 1
    # Only the unverified account gets an email
    assert len(outbox) == emails_before + 1
    assert outbox[-1]["to"] == "pending@example.com"


def test_forgot_password_does_not_reveal_accounts(client, verified_user, outbox):
    """Existing and unknown emails get byte-identical responses."""
    emails_before = len(outbox)

    known = client.post("/api/auth/forgot-password", json={"email": verified_user["email"]})
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.content == unknown.content
    assert len(outbox) == emails_before + 1
    assert "/reset-password?token=" in outbox[-1]["html"]


def test_reset_password_flow(client, verified_user, outbox):
    """Reset with the emailed token; only the new password works afterwards."""
    client.post("/api/auth/forgot-password", json={"email": verified_user["email"]})
    token = outbox.last_token(verified_user["email"])

    response = client.post(
        "/api/auth/reset-password", json={"token": token, "password": "brandnew123"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Your password has been reset."

    old = client.post(
        "/api/auth/login", json={"email": verified_user["email"], "password": "password123"}
    )
    assert old.status_code == 401
    new = client.post(
        "/api/auth/login", json={"email": verified_user["email"], "password": "brandnew123"}
    )
    assert new.status_code == 200

    # Same token again is refused
    response = client.post(
        "/api/auth/reset-password", json={"token": token, "password": "another123"}
    )
    assert response.status_code == 400


def test_reset_password_rejects_verification_token(client, outbox):
    """A verification token cannot be used to reset a password."""
    signup(client)
    token = outbox.last_token()

    response = client.post(
        "/api/auth/reset-password", json={"token": token, "password": "brandnew123"}
    )
    assert response.status_code == 400

    # ...and it still verifies the email afterwards
    assert client.get("/api/auth/verify-email", params={"token": token}).status_code == 200


def test_reset_password_short_password(client, verified_user, outbox):
    """The new password must be at least 8 characters."""
    client.post("/api/auth/forgot-password", json={"email": verified_user["email"]})
    response = client.post(
        "/api/auth/reset-password", json={"token": outbox.last_token(), "password": "short"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation failed."


def test_error_responses_never_echo_password(client):
    """Validation errors do not include submitted values."""
    response = client.post(
        "/api/auth/signup",
        json={"email": "not-an-email", "password": "secret-password-1", "firstName": "X"},
    )
    assert response.status_code == 400
    assert "secret-password-1" not in response.text


def test_logout_store_failure(client):
    """A session store outage during logout is reported as a server error."""
    store = MagicMock()
    store.load.return_value = None
    store.delete.side_effect = redis.ConnectionError("down")
    sessions_module._session_store = store
    client.cookies.set("libala_session", "abc")

    response = client.post("/api/auth/logout")
    assert response.status_code == 500
    assert response.json()["detail"] == "Logout failed."


def test_unexpected_error_returns_generic_500(client):
    """Unhandled exceptions never leak details to the client."""
    store = MagicMock()
    store.load.side_effect = RuntimeError("secret internals")
    sessions_module._session_store = store

    with TestClient(app, raise_server_exceptions=False) as raw_client:
        raw_client.cookies.set("libala_session", "abc")
        response = raw_client.get("/api/auth/me")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error."}
    assert "secret internals" not in response.text
