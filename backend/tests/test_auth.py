"""
Quiz Platform - Authentication API Tests
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test the health check endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient, sample_user_data):
    """Test user registration."""
    response = await client.post("/api/v1/auth/register", json=sample_user_data)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["email"] == sample_user_data["email"]
    assert body["data"]["name"] == sample_user_data["name"]
    assert body["data"]["role"] == "student"
    assert "id" in body["data"]


@pytest.mark.asyncio
async def test_register_admin_is_rejected(client: AsyncClient, sample_user_data):
    response = await client.post("/api/v1/auth/register", json={**sample_user_data, "role": "admin"})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, sample_user_data):
    """Test that duplicate email registration fails."""
    await client.post("/api/v1/auth/register", json=sample_user_data)

    response = await client.post(
        "/api/v1/auth/register",
        json={**sample_user_data, "email": sample_user_data["email"].upper()},
    )
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "EMAIL_TAKEN"
    assert "already registered" in body["error"].lower()


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, sample_user_data):
    """Test successful login."""
    await client.post("/api/v1/auth/register", json=sample_user_data)

    response = await client.post("/api/v1/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient, sample_user_data):
    """Test login with invalid credentials."""
    await client.post("/api/v1/auth/register", json=sample_user_data)

    response = await client.post("/api/v1/auth/login", json={
        "email": sample_user_data["email"],
        "password": "WrongPassword123",
    })
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_account_locks_after_repeated_failures(client: AsyncClient, sample_user_data):
    await client.post("/api/v1/auth/register", json=sample_user_data)
    bad_login = {"email": sample_user_data["email"], "password": "WrongPassword123"}

    for _ in range(5):
        response = await client.post("/api/v1/auth/login", json=bad_login)
        assert response.status_code == 401

    # Even the right password is refused while locked
    response = await client.post("/api/v1/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    assert response.status_code == 423
    assert response.json()["code"] == "ACCOUNT_LOCKED"


@pytest.mark.asyncio
async def test_get_current_user(client: AsyncClient, sample_user_data):
    """Test getting current user profile."""
    await client.post("/api/v1/auth/register", json=sample_user_data)
    login_response = await client.post("/api/v1/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    token = login_response.json()["data"]["access_token"]

    response = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["email"] == sample_user_data["email"]


@pytest.mark.asyncio
async def test_missing_credentials(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, sample_user_data):
    """Test token refresh."""
    await client.post("/api/v1/auth/register", json=sample_user_data)
    login_response = await client.post("/api/v1/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    refresh_token = login_response.json()["data"]["refresh_token"]

    response = await client.post("/api/v1/auth/refresh", json={
        "refresh_token": refresh_token
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert "access_token" in data
    assert data["refresh_token"] != refresh_token

    # The presented token was rotated out
    reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert reused.status_code == 401
    assert reused.json()["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(client: AsyncClient, sample_user_data):
    await client.post("/api/v1/auth/register", json=sample_user_data)
    login_response = await client.post("/api/v1/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    refresh_token = login_response.json()["data"]["refresh_token"]

    response = await client.post("/api/v1/auth/logout", json={"refresh_token": refresh_token})
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out"

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 401
