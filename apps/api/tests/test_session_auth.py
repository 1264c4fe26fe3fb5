"""Tests for session cookie verification and tenant resolution."""
import uuid

import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.core.deps import COOKIE_NAME, get_db
from app.core.security import create_session_token, decode_session_token
from app.db.models import Membership, User
from app.main import app


async def _get_quotes(db, cookie: str | None):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        cookies = {COOKIE_NAME: cookie} if cookie else {}
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test", cookies=cookies
        ) as c:
            return await c.get("/quotes")
    finally:
        app.dependency_overrides.clear()


def test_token_round_trip(test_auth):
    payload = decode_session_token(test_auth.token)

    assert payload["sub"] == str(test_auth.user.id)
    assert payload["org_id"] == str(test_auth.org.id)
    assert payload["token_version"] == test_auth.user.token_version


def test_previous_secret_still_accepted(monkeypatch, test_auth):
    token = test_auth.token
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", settings.JWT_SECRET)
    monkeypatch.setattr(settings, "JWT_SECRET", "rotated-secret")

    assert decode_session_token(token)["sub"] == str(test_auth.user.id)


def test_unknown_secret_rejected(test_auth):
    forged = jwt.encode({"sub": str(test_auth.user.id)}, "not-the-secret", algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(forged)


@pytest.mark.asyncio
async def test_missing_cookie(db):
    response = await _get_quotes(db, None)
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_garbage_cookie(db):
    response = await _get_quotes(db, "not-a-jwt")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


@pytest.mark.asyncio
async def test_revoked_session(db, test_auth):
    user = db.get(User, test_auth.user.id)
    user.token_version += 1
    db.commit()

    response = await _get_quotes(db, test_auth.token)
    assert response.status_code == 401
    assert response.json()["detail"] == "Session revoked"


@pytest.mark.asyncio
async def test_disabled_user(db, test_auth):
    user = db.get(User, test_auth.user.id)
    user.is_active = False
    db.commit()

    response = await _get_quotes(db, test_auth.token)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_user_without_membership(db, test_auth):
    db.query(Membership).filter(Membership.user_id == test_auth.user.id).delete()
    db.commit()

    response = await _get_quotes(db, test_auth.token)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_user(db, test_org):
    token = create_session_token(
        user_id=uuid.uuid4(), org_id=test_org.id, role="admin", token_version=1
    )

    response = await _get_quotes(db, token)
    assert response.status_code == 401
    assert response.json()["detail"] == "User not found"
