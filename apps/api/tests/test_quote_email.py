"""Tests for the quote email sender (Resend)."""
from datetime import date
from decimal import Decimal

import httpx
import pytest

from app.core.config import settings
from app.services import quote_email_service
from app.services.quote_email_service import (
    RESEND_SEND_URL,
    QuoteEmailParams,
    build_html,
    build_quote_email_params,
    build_subject,
    build_text,
    format_currency,
    format_date,
)


def _params(**overrides) -> QuoteEmailParams:
    values = dict(
        client_email="jane@example.com",
        client_name="Jane Doe",
        quote_number="Q-0007",
        quote_title="Spring clean",
        quote_total=Decimal("1234.5"),
        quote_valid_until=date(2026, 3, 12),
        accept_url="https://app.example.com/q/abc",
        org_name="Sparkle & Shine",
        org_email="hello@sparkle.example.com",
        org_phone="01234 567890",
        idempotency_key="quote-send/1/2026-03-01T10:00:00",
    )
    values.update(overrides)
    return QuoteEmailParams(**values)


class _FakeAsyncClient:
    """Stands in for httpx.AsyncClient and records the single POST."""

    calls: list[dict] = []
    response: httpx.Response | None = None
    error: Exception | None = None

    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def post(self, url, headers=None, json=None):
        type(self).calls.append({"url": url, "headers": headers, "json": json})
        if type(self).error:
            raise type(self).error
        return type(self).response


@pytest.fixture
def fake_resend(monkeypatch):
    _FakeAsyncClient.calls = []
    _FakeAsyncClient.error = None
    _FakeAsyncClient.response = httpx.Response(
        200, json={"id": "msg_123"}, request=httpx.Request("POST", RESEND_SEND_URL)
    )
    monkeypatch.setattr(quote_email_service.httpx, "AsyncClient", _FakeAsyncClient)
    monkeypatch.setattr(settings, "PLATFORM_RESEND_API_KEY", "re_test_key")
    return _FakeAsyncClient


def test_format_helpers():
    assert format_currency(Decimal("1234.5")) == "£1,234.50"
    assert format_date(date(2026, 3, 12)) == "12 March 2026"
    assert format_date(None) is None


def test_subject_strips_header_injection():
    subject = build_subject(_params(org_name="Evil\r\nBcc: x@example.com"))
    assert "\r" not in subject and "\n" not in subject
    assert subject.endswith("- Q-0007")


def test_html_escapes_values():
    body = build_html(_params(client_name="<script>alert(1)</script>"))
    assert "<script>" not in body
    assert "&lt;script&gt;" in body
    assert "Sparkle &amp; Shine" in body
    assert "£1,234.50" in body
    assert "12 March 2026" in body


def test_text_body_has_link_and_total():
    text = build_text(_params(quote_valid_until=None))
    assert "https://app.example.com/q/abc" in text
    assert "Total: £1,234.50" in text
    assert "Valid until" not in text


@pytest.mark.asyncio
async def test_send_posts_once_with_idempotency_key(fake_resend):
    result = await quote_email_service.send_quote_email(_params())

    assert result.sent is True
    assert result.message_id == "msg_123"
    assert len(fake_resend.calls) == 1
    call = fake_resend.calls[0]
    assert call["url"] == RESEND_SEND_URL
    assert call["headers"]["Authorization"] == "Bearer re_test_key"
    assert call["headers"]["Idempotency-Key"] == "quote-send/1/2026-03-01T10:00:00"
    assert call["json"]["to"] == ["jane@example.com"]
    assert call["json"]["reply_to"] == "hello@sparkle.example.com"
    assert call["json"]["from"] == f"Sparkle & Shine <{settings.QUOTE_EMAIL_FROM}>"


@pytest.mark.asyncio
async def test_send_treats_idempotent_replay_as_sent(fake_resend):
    fake_resend.response = httpx.Response(
        409, json={"message": "duplicate"}, request=httpx.Request("POST", RESEND_SEND_URL)
    )

    result = await quote_email_service.send_quote_email(_params())
    assert result.sent is True


@pytest.mark.asyncio
async def test_send_reports_provider_rejection(fake_resend):
    fake_resend.response = httpx.Response(
        422, json={"message": "Invalid to"}, request=httpx.Request("POST", RESEND_SEND_URL)
    )

    result = await quote_email_service.send_quote_email(_params())

    assert result.sent is False
    assert result.error == "Failed to send email."
    assert len(fake_resend.calls) == 1


@pytest.mark.asyncio
async def test_send_network_error_is_not_raised(fake_resend):
    fake_resend.error = httpx.ConnectError("boom")

    result = await quote_email_service.send_quote_email(_params())

    assert result.sent is False
    assert result.error == "Failed to send email."


@pytest.mark.asyncio
async def test_send_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "PLATFORM_RESEND_API_KEY", "")

    result = await quote_email_service.send_quote_email(_params())

    assert result.sent is False
    assert result.error == "Email sender not configured"


def test_build_params_from_sent_quote(db, sent_quote):
    params = build_quote_email_params(sent_quote)

    assert params.client_email == "jane@example.com"
    assert params.client_name == "Jane Doe"
    assert params.quote_total == Decimal("120.00")
    assert params.accept_url == f"https://app.example.com/q/{sent_quote.accept_token}"
    assert params.org_name == "Sparkle & Shine"
    assert params.idempotency_key.startswith(f"quote-send/{sent_quote.id}/")


def test_build_params_skips_client_without_email(db, test_org, quote_factory, client_factory):
    quote = quote_factory(client=client_factory(test_org, email=None))
    assert build_quote_email_params(quote) is None


@pytest.mark.asyncio
async def test_dispatch_skips_without_email(db, test_org, quote_factory, client_factory, fake_resend):
    quote = quote_factory(client=client_factory(test_org, email=None))

    result = await quote_email_service.dispatch_quote_email(quote)

    assert result.skipped is True
    assert result.sent is False
    assert fake_resend.calls == []
