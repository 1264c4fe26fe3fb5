"""Tests for the scheduled quote expiry sweep."""
from datetime import date, datetime, timezone

import pytest
from httpx import AsyncClient

from app.db.enums import ActivityType, QuoteStatus
from app.db.models import Activity
from app.services import quote_service


HEADERS = {"X-Internal-Secret": "test-internal-secret"}


@pytest.fixture
def overdue_quotes(db, test_auth, quote_factory):
    """One sent, one viewed, one draft, one still valid; all but the last past due."""
    sent = quote_factory(title="Sent", valid_until=date(2026, 1, 31))
    viewed = quote_factory(title="Viewed", valid_until=date(2026, 1, 15))
    draft = quote_factory(title="Draft", valid_until=date(2026, 1, 1))
    current = quote_factory(title="Current", valid_until=date(2026, 2, 1))

    for quote in (sent, viewed, current):
        quote_service.send_quote(db, test_auth.org.id, test_auth.user.id, quote.id)
    quote_service.mark_quote_viewed(db, viewed)
    db.commit()
    return {"sent": sent, "viewed": viewed, "draft": draft, "current": current}


def test_sweep_expires_only_overdue_open_quotes(db, overdue_quotes):
    expired = quote_service.expire_overdue_quotes(db, date(2026, 2, 1))
    db.commit()

    assert expired == 2
    statuses = {}
    for name, quote in overdue_quotes.items():
        db.refresh(quote)
        statuses[name] = quote.status
    assert statuses == {
        "sent": QuoteStatus.EXPIRED.value,
        "viewed": QuoteStatus.EXPIRED.value,
        "draft": QuoteStatus.DRAFT.value,
        "current": QuoteStatus.SENT.value,
    }
    logged = db.query(Activity).filter(
        Activity.activity_type == ActivityType.QUOTE_EXPIRED.value
    ).count()
    assert logged == 2


def test_sweep_is_idempotent(db, overdue_quotes):
    assert quote_service.expire_overdue_quotes(db, date(2026, 2, 1)) == 2
    db.commit()
    assert quote_service.expire_overdue_quotes(db, date(2026, 2, 1)) == 0


@pytest.mark.asyncio
async def test_expiry_endpoint(client: AsyncClient, db, overdue_quotes):
    response = await client.post(
        "/internal/scheduled/quote-expiry",
        json={"today": "2026-02-01"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"as_of": "2026-02-01", "quotes_expired": 2}


@pytest.mark.asyncio
async def test_expiry_endpoint_defaults_to_today(client: AsyncClient, db, overdue_quotes):
    response = await client.post("/internal/scheduled/quote-expiry", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["as_of"] == datetime.now(timezone.utc).date().isoformat()


@pytest.mark.asyncio
async def test_expiry_endpoint_rejects_wrong_secret(client: AsyncClient, db, overdue_quotes):
    response = await client.post(
        "/internal/scheduled/quote-expiry",
        json={"today": "2026-02-01"},
        headers={"X-Internal-Secret": "wrong"},
    )

    assert response.status_code == 403
    db.refresh(overdue_quotes["sent"])
    assert overdue_quotes["sent"].status == QuoteStatus.SENT.value


@pytest.mark.asyncio
async def test_expiry_endpoint_requires_secret_header(client: AsyncClient):
    response = await client.post("/internal/scheduled/quote-expiry")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_expiry_endpoint_disabled_without_secret(client: AsyncClient, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "INTERNAL_SECRET", "")

    response = await client.post("/internal/scheduled/quote-expiry", headers=HEADERS)
    assert response.status_code == 501
