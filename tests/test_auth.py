"""Tests for signup, login, profile and password endpoints."""

import pytest
from httpx import AsyncClient

from app.models.user import ROLE_NORMAL_USER, ROLE_STORE_OWNER, ROLE_SYSTEM_ADMIN

SIGNUP = {
    "name": "Registered Customer Full Name",
    "email": "Customer@Example.com",
    "password": "Passw0rd!",
    "address": "221B Baker Street",
}


@pytest.mark.asyncio
async def test_register_creates_normal_user(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/register", json=SIGNUP)
    assert resp.status_code == 201
    data = resp.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "customer@example.com"
    assert data["user"]["role"] == ROLE_NORMAL_USER
    assert "hashed_password" not in data["user"]


@pytest.mark.asyncio
async def test_register_duplicate_email(async_client: AsyncClient):
    await async_client.post("/api/v1/auth/register", json=SIGNUP)
    resp = await async_client.post("/api/v1/auth/register", json=SIGNUP)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, value",
    [
        ("name", "Too Short"),
        ("name", "N" * 61),
        ("email", "not-an-email"),
        ("password", "short!A"),
        ("password", "nouppercase!1"),
        ("password", "NoSpecialChar1"),
        ("address", "A" * 401),
    ],
)
async def test_register_validation(async_client: AsyncClient, field, value):
    resp = await async_client.post("/api/v1/auth/register", json={**SIGNUP, field: value})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_sets_cookie_and_returns_token(async_client: AsyncClient):
    await async_client.post("/api/v1/auth/register", json=SIGNUP)

    resp = await async_client.post(
        "/api/v1/auth/login",
        data={"username": "customer@example.com", "password": SIGNUP["password"]},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == ROLE_NORMAL_USER
    assert "access_token" in resp.cookies
    set_cookie = resp.headers.get("set-cookie")
    assert "HttpOnly" in set_cookie
    assert "SameSite=lax" in set_cookie


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient):
    await async_client.post("/api/v1/auth/register", json=SIGNUP)
    resp = await async_client.post(
        "/api/v1/auth/login",
        data={"username": SIGNUP["email"], "password": "Wrong@Pass1"},
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401

    resp = await async_client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_reads_cookie(async_client: AsyncClient):
    register = await async_client.post("/api/v1/auth/register", json=SIGNUP)
    token = register.json()["access_token"]

    async_client.cookies.set("access_token", f"Bearer {token}")
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == "customer@example.com"


@pytest.mark.asyncio
async def test_me_for_store_owner_includes_stores(
    async_client: AsyncClient, make_user, make_store, auth_headers
):
    owner = await make_user()
    store = await make_store(owner)
    assert owner.role == ROLE_STORE_OWNER

    resp = await async_client.get("/api/v1/auth/me", headers=auth_headers(owner))
    assert resp.status_code == 200
    data = resp.json()
    assert data["role"] == ROLE_STORE_OWNER
    assert [s["id"] for s in data["stores"]] == [store.id]
    assert data["stores"][0]["average_rating"] == 0.0


@pytest.mark.asyncio
async def test_role_comes_from_database_not_token(
    async_client: AsyncClient, make_user, make_store, auth_headers
):
    """A token minted while the user was a normal user still sees the new role."""
    user = await make_user()
    headers = auth_headers(user)
    await make_store(user)

    resp = await async_client.get("/api/v1/auth/me", headers=headers)
    assert resp.json()["role"] == ROLE_STORE_OWNER


@pytest.mark.asyncio
async def test_update_password(async_client: AsyncClient):
    register = await async_client.post("/api/v1/auth/register", json=SIGNUP)
    headers = {"Authorization": f"Bearer {register.json()['access_token']}"}

    wrong = await async_client.put(
        "/api/v1/auth/password",
        json={"current_password": "Nope@1234", "new_password": "Brand#New1"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = await async_client.put(
        "/api/v1/auth/password",
        json={"current_password": SIGNUP["password"], "new_password": "Brand#New1"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert ok.json()["success"] is True

    login = await async_client.post(
        "/api/v1/auth/login",
        data={"username": SIGNUP["email"], "password": "Brand#New1"},
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_logout_clears_cookie(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/logout")
    assert resp.status_code == 200
    assert 'access_token=""' in resp.headers.get("set-cookie")


@pytest.mark.asyncio
async def test_admin_can_read_own_profile(async_client: AsyncClient, make_user, auth_headers):
    admin = await make_user(role=ROLE_SYSTEM_ADMIN)
    resp = await async_client.get("/api/v1/auth/me", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["role"] == ROLE_SYSTEM_ADMIN
    assert resp.json()["stores"] == []
