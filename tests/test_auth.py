import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD


def registration(email="asha.rao@college.edu", role="STUDENT", **profile):
    return {
        "email": email,
        "username": "asha",
        "password": TEST_PASSWORD,
        "role": role,
        "profileData": {"department": "Electronics", **profile},
    }


@pytest.mark.asyncio
async def test_register_student(client: AsyncClient):
    """Test student registration"""
    response = await client.post(
        "/api/v1/auth/register",
        json=registration(year=2, rollNumber="102103001"),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "User registered successfully"
    assert data["user"]["email"] == "asha.rao@college.edu"
    assert data["user"]["role"] == "STUDENT"
    assert "password" not in data["user"]
    assert "hashedPassword" not in data["user"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient):
    """Test registration with an email that is taken"""
    await client.post("/api/v1/auth/register", json=registration())
    response = await client.post("/api/v1/auth/register", json=registration(role="TEACHER"))

    assert response.status_code == 400
    assert response.json()["error"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_missing_fields(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "nobody@college.edu", "password": TEST_PASSWORD},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"


@pytest.mark.asyncio
async def test_register_invalid_email(client: AsyncClient):
    response = await client.post("/api/v1/auth/register", json=registration(email="not-an-email"))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_and_me_for_student(client: AsyncClient):
    await client.post("/api/v1/auth/register", json=registration(year=2, rollNumber="102103001"))

    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "asha.rao@college.edu", "password": TEST_PASSWORD},
    )
    assert login.status_code == 200
    token_data = login.json()
    assert token_data["tokenType"] == "bearer"
    assert token_data["user"]["username"] == "asha"

    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {token_data['accessToken']}"},
    )
    assert me.status_code == 200
    data = me.json()
    assert data["role"] == "STUDENT"
    assert data["department"] == "Electronics"
    assert data["student"]["year"] == 2
    assert data["student"]["rollNumber"] == "102103001"
    assert data["teacher"] is None


@pytest.mark.asyncio
async def test_me_for_teacher(client: AsyncClient):
    await client.post(
        "/api/v1/auth/register",
        json=registration(email="prof.mehta@college.edu", role="TEACHER", designation="Professor"),
    )
    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "prof.mehta@college.edu", "password": TEST_PASSWORD},
    )

    me = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {login.json()['accessToken']}"},
    )

    data = me.json()
    assert data["role"] == "TEACHER"
    assert data["teacher"]["designation"] == "Professor"
    assert data["student"] is None


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, student):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": student.user.email, "password": "wrongpassword"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Incorrect email or password"


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "ghost@college.edu", "password": TEST_PASSWORD},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_protected_routes_require_token(client: AsyncClient):
    for method, url in (
        ("GET", "/api/v1/projects"),
        ("GET", "/api/v1/notifications"),
        ("GET", "/api/v1/profile"),
        ("PUT", "/api/v1/notifications/read-all"),
    ):
        response = await client.request(method, url)
        assert response.status_code == 401, url
