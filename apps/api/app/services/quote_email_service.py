"""Quote email sender.

Sends the "your quote is ready" email through the platform Resend account
(PLATFORM_RESEND_API_KEY). The From mailbox is QUOTE_EMAIL_FROM with the
organisation's name as display name; replies go to the organisation.

One attempt, no retry. Failures never propagate: they come back as a
QuoteEmailResult and are logged, so a failed email can never undo the
send transition that triggered it.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import httpx

from app.core.config import settings
from app.core.structured_logging import build_log_context
from app.db.models import Quote

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True)
class QuoteEmailParams:
    client_email: str
    client_name: str
    quote_number: str
    quote_title: str
    quote_total: Decimal
    quote_valid_until: date | None
    accept_url: str
    org_name: str
    org_email: str | None
    org_phone: str | None
    idempotency_key: str | None = None


@dataclass(frozen=True)
class QuoteEmailResult:
    sent: bool
    skipped: bool = False
    error: str | None = None
    message_id: str | None = None


def format_currency(amount: Decimal) -> str:
    return f"£{amount:,.2f}"


def format_date(value: date | None) -> str | None:
    if not value:
        return None
    return f"{value.day} {value:%B %Y}"


def _clean_header_value(value: str) -> str:
    # Header injection: org names end up in From and Subject
    return value.replace("\r", " ").replace("\n", " ").strip()


def build_subject(params: QuoteEmailParams) -> str:
    return f"Your quote from {_clean_header_value(params.org_name)} - {params.quote_number}"


def build_html(params: QuoteEmailParams) -> str:
    esc = html.escape
    org_name = esc(params.org_name)
    valid_until = format_date(params.quote_valid_until)
    valid_line = (
        f'<p style="margin:0 0 8px;color:#6b7280;font-size:14px;">'
        f"This quote is valid until <strong>{esc(valid_until)}</strong>.</p>"
        if valid_until
        else ""
    )
    phone_line = (
        f'<p style="margin:4px 0 0;color:#6b7280;font-size:13px;">{esc(params.org_phone)}</p>'
        if params.org_phone
        else ""
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Quote {esc(params.quote_number)} from {org_name}</title></head>
<body style="margin:0;padding:24px;background:#f9f8f5;font-family:Arial,sans-serif;">
  <div style="max-width:560px;margin:0 auto;">
    <p style="font-size:13px;font-weight:600;letter-spacing:0.15em;text-transform:uppercase;color:#4a5c4e;">{org_name}</p>
    <div style="background:#ffffff;border-radius:12px;border:1px solid #e5e7eb;padding:32px;">
      <p style="margin:0 0 16px;font-size:16px;">Hi {esc(params.client_name)},</p>
      <p style="margin:0 0 24px;font-size:15px;color:#374151;line-height:1.6;">
        Please find your quote below. You can review the details and let us know if you'd like to go ahead.
      </p>
      <p style="margin:0 0 4px;font-size:11px;text-transform:uppercase;color:#9ca3af;">Quote {esc(params.quote_number)}</p>
      <p style="margin:0 0 12px;font-size:16px;font-weight:600;">{esc(params.quote_title)}</p>
      <p style="margin:0 0 16px;font-size:28px;font-weight:300;">{esc(format_currency(params.quote_total))}</p>
      {valid_line}
      <p style="text-align:center;margin:24px 0;">
        <a href="{esc(params.accept_url, quote=True)}" style="background:#4a5c4e;color:#ffffff;text-decoration:none;padding:14px 32px;border-radius:100px;">View &amp; Accept Quote</a>
      </p>
      <p style="margin:0;font-size:13px;color:#9ca3af;text-align:center;">
        You can also decline from the same link if you'd prefer not to proceed.<br>
        If you have any questions, just reply to this email.
      </p>
    </div>
    <div style="text-align:center;padding-top:24px;font-size:12px;color:#9ca3af;">
      <p style="margin:0;">{org_name}</p>
      {phone_line}
    </div>
  </div>
</body>
</html>"""


def build_text(params: QuoteEmailParams) -> str:
    valid_until = format_date(params.quote_valid_until)
    lines = [
        f"Hi {params.client_name},",
        "",
        f"{params.org_name} has sent you a quote.",
        "",
        f"Quote: {params.quote_number}",
        params.quote_title,
        f"Total: {format_currency(params.quote_total)}",
    ]
    if valid_until:
        lines.append(f"Valid until: {valid_until}")
    lines += [
        "",
        "View and accept your quote here:",
        params.accept_url,
        "",
        "If you have any questions, reply to this email.",
        "",
        f"- {params.org_name}",
    ]
    return "\n".join(lines)


async def send_quote_email(params: QuoteEmailParams) -> QuoteEmailResult:
    """Send one quote email. Never raises for delivery problems."""
    api_key = settings.PLATFORM_RESEND_API_KEY
    if not api_key:
        logger.warning("Quote email not sent: PLATFORM_RESEND_API_KEY is not set")
        return QuoteEmailResult(sent=False, error="Email sender not configured")

    org_name = _clean_header_value(params.org_name)
    payload: dict[str, object] = {
        "from": f"{org_name} <{settings.QUOTE_EMAIL_FROM}>",
        "to": [params.client_email],
        "subject": build_subject(params),
        "html": build_html(params),
        "text": build_text(params),
    }
    if params.org_email:
        payload["reply_to"] = params.org_email

    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    if params.idempotency_key:
        headers["Idempotency-Key"] = params.idempotency_key

    try:
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:
            response = await client.post(RESEND_SEND_URL, headers=headers, json=payload)
    except httpx.HTTPError:
        logger.exception("Quote email request failed for %s", params.quote_number)
        return QuoteEmailResult(sent=False, error="Failed to send email.")

    if 200 <= response.status_code < 300 or response.status_code == 409:
        # 409 is Resend's idempotency replay: the message already went out
        message_id = None
        try:
            data = response.json()
            if isinstance(data, dict) and isinstance(data.get("id"), str):
                message_id = data["id"]
        except ValueError:
            message_id = None
        return QuoteEmailResult(sent=True, message_id=message_id)

    detail = None
    try:
        data = response.json()
        if isinstance(data, dict):
            detail = data.get("message") or data.get("error")
    except ValueError:
        detail = None
    logger.error(
        "Resend rejected quote email for %s: %s %s",
        params.quote_number,
        response.status_code,
        detail or "",
    )
    return QuoteEmailResult(sent=False, error="Failed to send email.")


def build_quote_email_params(quote: Quote) -> QuoteEmailParams | None:
    """Shape the email for a sent quote, or None when it cannot be delivered."""
    context = build_log_context(org_id=quote.organization_id, quote_id=quote.id)
    client = quote.client
    if not client.email:
        logger.warning(
            "Quote %s: client has no email address, skipping send.",
            quote.quote_number,
            extra=context,
        )
        return None
    if not settings.FRONTEND_URL.strip():
        logger.error("FRONTEND_URL is not set; cannot build quote link", extra=context)
        return None

    org = quote.organization
    sent_marker = quote.sent_at.isoformat() if quote.sent_at else "unsent"
    return QuoteEmailParams(
        client_email=client.email,
        client_name=client.full_name,
        quote_number=quote.quote_number,
        quote_title=quote.title,
        quote_total=quote.total,
        quote_valid_until=quote.valid_until,
        accept_url=f"{settings.quote_link_base}/q/{quote.accept_token}",
        org_name=org.name,
        org_email=org.email,
        org_phone=org.phone,
        idempotency_key=f"quote-send/{quote.id}/{sent_marker}",
    )


async def dispatch_quote_email(quote: Quote) -> QuoteEmailResult:
    """Send the email for a quote that just moved to sent."""
    params = build_quote_email_params(quote)
    if params is None:
        return QuoteEmailResult(sent=False, skipped=True)

    result = await send_quote_email(params)
    context = build_log_context(org_id=quote.organization_id, quote_id=quote.id)
    if result.sent:
        logger.info("Quote email sent", extra={**context, "message_id": result.message_id})
    else:
        logger.warning("Quote email failed: %s", result.error, extra=context)
    return result
