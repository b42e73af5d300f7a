from datetime import timedelta
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_booking_service
from app.core.config import settings
from app.core.redis import redis_client
from app.core.security import create_access_token
from app.main import app
from app.services.booking_service import BookingService


@pytest.fixture
def registry(monkeypatch, overrides, datastore):
    tokens = {}
    sessions = {}

    async def get_token(token):
        return tokens.get(token)

    async def get_session(session_id):
        return sessions.get(session_id)

    monkeypatch.setattr(redis_client, "get_token", get_token)
    monkeypatch.setattr(redis_client, "get_session", get_session)
    overrides[get_booking_service] = lambda: BookingService(datastore.store())
    return tokens, sessions


def issue(tokens, user_id, role="user", expires_delta=None):
    token = create_access_token({"sub": str(user_id), "role": role}, expires_delta=expires_delta)
    tokens[token] = role
    return token


@pytest.mark.asyncio
async def test_registered_bearer_token_is_accepted(registry):
    tokens, _ = registry
    user_id = uuid4()
    token = issue(tokens, user_id)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get(f"/api/v1/users/{user_id}/bookings", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_revoked_token_is_rejected(registry):
    tokens, _ = registry
    user_id = uuid4()
    token = issue(tokens, user_id)
    del tokens[token]

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get(f"/api/v1/users/{user_id}/bookings", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["not-a-jwt", ""])
async def test_garbage_token_is_rejected(registry, token):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get(f"/api/v1/users/{uuid4()}/bookings", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_is_rejected(registry):
    tokens, _ = registry
    user_id = uuid4()
    token = issue(tokens, user_id, expires_delta=timedelta(minutes=-5))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get(f"/api/v1/users/{user_id}/bookings", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_role_controls_access_to_other_users(registry):
    tokens, _ = registry
    patient_token = issue(tokens, uuid4())
    staff_token = issue(tokens, uuid4(), role="staff")
    other = uuid4()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        as_patient = await ac.get(f"/api/v1/users/{other}/bookings", headers={"Authorization": f"Bearer {patient_token}"})
        as_staff = await ac.get(f"/api/v1/users/{other}/bookings", headers={"Authorization": f"Bearer {staff_token}"})

    assert as_patient.status_code == 403
    assert as_patient.json()["error"] == "identity_mismatch"
    assert as_staff.status_code == 200


@pytest.mark.asyncio
async def test_session_cookie_is_accepted(registry):
    _, sessions = registry
    user_id = uuid4()
    sessions["abc123"] = {"user_id": str(user_id), "role": "user"}

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={settings.SESSION_COOKIE_NAME: "abc123"},
    ) as ac:
        response = await ac.get(f"/api/v1/users/{user_id}/bookings")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_session_without_token_is_rejected(registry):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={settings.SESSION_COOKIE_NAME: "expired"},
    ) as ac:
        response = await ac.get(f"/api/v1/users/{uuid4()}/bookings")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_session_without_identity_is_rejected(registry):
    _, sessions = registry
    sessions["broken"] = {"role": "user"}

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={settings.SESSION_COOKIE_NAME: "broken"},
    ) as ac:
        response = await ac.get(f"/api/v1/users/{uuid4()}/bookings")

    assert response.status_code == 401
