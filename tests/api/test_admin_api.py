from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from core.config import settings
from infrastructure.models import AdminSessionModel


COOKIE = settings.SESSION_COOKIE_NAME
ADMIN = {"username": "admin", "password": "s3cret-pass"}


async def _login(client, creds=ADMIN):
    resp = await client.post("/admin-api/login", json=creds)
    assert resp.status_code == 200, resp.text
    return resp


@pytest.mark.asyncio
async def test_bootstrap_registration_then_locked(client):
    resp = await client.get("/admin-api/check-setup")
    assert resp.json() == {"setup": False}

    resp = await client.post("/admin-api/register", json=ADMIN)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Admin user registered successfully."}

    resp = await client.get("/admin-api/check-setup")
    assert resp.json() == {"setup": True}

    resp = await client.post("/admin-api/register", json={"username": "intruder", "password": "x"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized. Please log in as admin to add new users."


@pytest.mark.asyncio
async def test_register_missing_fields(client):
    resp = await client.post("/admin-api/register", json={"username": "admin"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Username and password are required."

    resp = await client.get("/admin-api/check-setup")
    assert resp.json() == {"setup": False}


@pytest.mark.asyncio
async def test_login_sets_session_cookie(client):
    await client.post("/admin-api/register", json=ADMIN)
    resp = await _login(client)

    assert resp.json() == {"message": "Login successful."}
    set_cookie = resp.headers["set-cookie"].lower()
    assert COOKIE in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    assert f"max-age={7 * 24 * 60 * 60}" in set_cookie


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "creds",
    [
        {"username": "admin", "password": "wrong"},
        {"username": "nobody", "password": "s3cret-pass"},
    ],
)
async def test_login_invalid_credentials_indistinguishable(client, creds):
    await client.post("/admin-api/register", json=ADMIN)
    resp = await client.post("/admin-api/login", json=creds)

    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid credentials."
    assert COOKIE not in client.cookies


@pytest.mark.asyncio
async def test_login_missing_fields(client):
    resp = await client.post("/admin-api/login", json={"password": "x"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_donations_requires_session(client):
    resp = await client.get("/admin-api/donations")
    assert resp.status_code == 401
    assert resp.json()["type"] == "Unauthorized"


@pytest.mark.asyncio
async def test_donations_listed_and_reconciled(client, gateway):
    await client.post("/create-payment-intent", json={"donationAmount": 10, "email": "a@example.com"})
    await client.post("/create-payment-intent", json={"donationAmount": 20, "email": "b@example.com"})
    gateway.statuses["pi_1"] = "succeeded"

    await client.post("/admin-api/register", json=ADMIN)
    await _login(client)
    resp = await client.get("/admin-api/donations")

    assert resp.status_code == 200
    donations = resp.json()["donations"]
    assert [d["payment_intent_id"] for d in donations] == ["pi_2", "pi_1"]
    assert donations[1]["payment_intent_status"] == "succeeded"
    assert donations[0]["payment_intent_status"] == "requires_payment_method"
    assert donations[1]["donation_amount"] == 1000
    assert set(donations[0]) == {
        "id", "donation_amount", "email", "first_name", "last_name", "card_name",
        "country", "postal_code", "payment_intent_id", "payment_intent_status", "created_at",
    }


@pytest.mark.asyncio
async def test_add_user_requires_session_and_rejects_duplicates(client):
    resp = await client.post("/admin-api/users", json={"username": "second", "password": "pw"})
    assert resp.status_code == 401

    await client.post("/admin-api/register", json=ADMIN)
    await _login(client)

    resp = await client.post("/admin-api/users", json={"username": "second", "password": "pw"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "New admin user added successfully."}

    resp = await client.post("/admin-api/users", json={"username": "second", "password": "other"})
    assert resp.status_code == 409

    # logged-in admins may also use the register endpoint
    resp = await client.post("/admin-api/register", json={"username": "third", "password": "pw"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_logout_invalidates_session(client):
    await client.post("/admin-api/register", json=ADMIN)
    await _login(client)
    token = client.cookies.get(COOKIE)

    resp = await client.post("/admin-api/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out."}

    # replaying the old token no longer authenticates
    client.cookies.clear()
    client.cookies.set(COOKIE, token)
    resp = await client.get("/admin-api/donations")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_logout_without_session_is_ok(client):
    resp = await client.post("/admin-api/logout")
    assert resp.status_code == 200

    client.cookies.set(COOKIE, "garbage")
    resp = await client.post("/admin-api/logout")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_expired_session_rejected(client, db_engine):
    await client.post("/admin-api/register", json=ADMIN)
    await _login(client)

    async with db_engine.begin() as conn:
        await conn.execute(
            update(AdminSessionModel).values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )

    resp = await client.get("/admin-api/donations")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_tampered_token_rejected(client):
    await client.post("/admin-api/register", json=ADMIN)
    await _login(client)
    token = client.cookies.get(COOKIE)

    client.cookies.clear()
    client.cookies.set(COOKIE, token[:-2] + ("AA" if not token.endswith("AA") else "BB"))
    resp = await client.get("/admin-api/donations")
    assert resp.status_code == 401
