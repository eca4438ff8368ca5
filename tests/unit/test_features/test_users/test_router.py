"""HTTP tests for registration, login and user management."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import TEST_PASSWORD

PREFIX = "/api/v1/users"


@pytest.mark.asyncio
async def test_register_and_login(client: AsyncClient) -> None:
    registered = await client.post(
        f"{PREFIX}/register",
        json={"name": "Ada", "email": "ada@example.com", "password": TEST_PASSWORD},
    )
    assert registered.status_code == 201
    assert "password" not in registered.json()
    assert "hashedPassword" not in registered.json()

    login = await client.post(f"{PREFIX}/login", json={"email": "ada@example.com", "password": TEST_PASSWORD})
    assert login.status_code == 200
    token = login.json()["token"]

    me = await client.get(f"{PREFIX}/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "ada@example.com"
    assert me.json()["role"] == "user"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, regular_user) -> None:
    response = await client.post(
        f"{PREFIX}/register",
        json={"name": "Dup", "email": "user@example.com", "password": TEST_PASSWORD},
    )

    assert response.status_code == 409
    assert response.json()["type"] == "email-already-in-use"


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient) -> None:
    response = await client.post(
        f"{PREFIX}/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "weakpass"},
    )

    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "body.password"


@pytest.mark.asyncio
async def test_login_bad_password(client: AsyncClient, regular_user) -> None:
    response = await client.post(f"{PREFIX}/login", json={"email": "user@example.com", "password": "Nope1234!"})

    assert response.status_code == 401
    assert response.json()["type"] == "invalid-credentials"


@pytest.mark.asyncio
async def test_invalid_token(client: AsyncClient) -> None:
    response = await client.get(f"{PREFIX}/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["type"] == "token-invalid"


@pytest.mark.asyncio
async def test_list_users_admin_only(client: AsyncClient, admin_headers, user_headers) -> None:
    as_admin = await client.get(f"{PREFIX}/", headers=admin_headers)
    as_user = await client.get(f"{PREFIX}/", headers=user_headers)

    assert as_admin.status_code == 200
    assert as_admin.json()["count"] == 2
    assert as_user.status_code == 403


@pytest.mark.asyncio
async def test_user_updates_self_but_not_role(client: AsyncClient, regular_user, user_headers) -> None:
    url = f"{PREFIX}/{regular_user.id}"

    renamed = await client.put(url, json={"name": "Renamed"}, headers=user_headers)
    promoted = await client.put(url, json={"role": "admin"}, headers=user_headers)

    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Renamed"
    assert promoted.status_code == 403


@pytest.mark.asyncio
async def test_admin_gets_and_deletes_user(client: AsyncClient, regular_user, admin_headers) -> None:
    url = f"{PREFIX}/{regular_user.id}"

    fetched = await client.get(url, headers=admin_headers)
    deleted = await client.delete(url, headers=admin_headers)
    missing = await client.get(url, headers=admin_headers)

    assert fetched.status_code == 200
    assert deleted.status_code == 204
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_deleted_users_token_is_rejected(client: AsyncClient, make_user, headers_for, admin_headers) -> None:
    doomed = await make_user("doomed@example.com")
    headers = headers_for(doomed)

    await client.delete(f"{PREFIX}/{doomed.id}", headers=admin_headers)
    response = await client.get(f"{PREFIX}/me", headers=headers)

    assert response.status_code == 401
