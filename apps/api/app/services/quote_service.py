"""Quote service - lifecycle, pricing and public token operations.

Status changes are compare-and-set updates guarded by the source statuses
from quote_state.TRANSITIONS, so two concurrent callers can never both win
(and an accepted quote can never produce two jobs).

Services flush; routers own commit/rollback.
"""

import json
import logging
import secrets
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.db.enums import PricingType, QuoteDecision, QuoteEvent, QuoteStatus
from app.db.models import Client, Organization, Property, Quote
from app.schemas.quote import QuoteWrite
from app.services import activity_service, job_service
from app.services.line_item_service import (
    LineItemInput,
    LineItemPayloadError,
    normalize_line_items,
    replace_line_items,
)
from app.services.quote_state import (
    OPEN_STATUSES,
    InvalidQuoteTransition,
    QuoteServiceError,
    QuoteStateError,
    allowed_sources,
    transition,
)
from app.services.totals_service import (
    MAX_STORED_AMOUNT,
    ZERO,
    QuoteTotals,
    compute_itemised_totals,
    compute_totals,
    effective_tax_rate,
    round2,
)
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

__all__ = [
    "InvalidQuoteTransition",
    "QuoteNotFoundError",
    "QuoteServiceError",
    "QuoteStateError",
    "QuoteValidationError",
]


class QuoteValidationError(QuoteServiceError):
    """Input rejected; message is safe to show the user."""

    pass


class QuoteNotFoundError(QuoteServiceError):
    """Quote not found (or belongs to another organization)."""

    def __init__(self, message: str = "Quote not found."):
        super().__init__(message)


ACCEPT_TOKEN_BYTES = 32
MAX_TOKEN_LENGTH = 128
MAX_FIXED_PRICE = Decimal("999999")

MSG_NO_CLIENT = "Please select a client."
MSG_NO_TITLE = "Please enter a quote title."
MSG_BAD_PRICE = "Please enter a price greater than zero."
MSG_PRICE_TOO_LARGE = "Please enter a price of £999,999 or less."
MSG_TOTAL_TOO_LARGE = "Quote total is too large."
MSG_BAD_PROPERTY = "Please select a valid property."
MSG_BAD_LINE_ITEMS = "Invalid line items data."
MSG_ALREADY_RESPONDED = "You have already responded to this quote."
MSG_EXPIRED = "This quote has expired."
MSG_NOT_OPEN = "This quote is no longer open for responses."
MSG_DELETE_NOT_DRAFT = "Only draft quotes can be deleted."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_accept_token() -> str:
    """256 bits of randomness, URL safe."""
    return secrets.token_urlsafe(ACCEPT_TOKEN_BYTES)


# =============================================================================
# Reads
# =============================================================================


def get_quote(db: Session, org_id: UUID, quote_id: UUID) -> Quote | None:
    """Get a quote by ID, scoped to org."""
    return (
        db.query(Quote)
        .options(selectinload(Quote.line_items))
        .filter(Quote.id == quote_id, Quote.organization_id == org_id)
        .first()
    )


def require_quote(db: Session, org_id: UUID, quote_id: UUID) -> Quote:
    quote = get_quote(db, org_id, quote_id)
    if not quote:
        raise QuoteNotFoundError()
    return quote


def list_quotes(
    db: Session,
    org_id: UUID,
    pagination: PaginationParams,
    status: QuoteStatus | None = None,
    client_id: UUID | None = None,
) -> tuple[list[Quote], int]:
    """List quotes for an organization, newest first."""
    query = db.query(Quote).filter(Quote.organization_id == org_id)
    if status:
        query = query.filter(Quote.status == status.value)
    if client_id:
        query = query.filter(Quote.client_id == client_id)
    query = query.order_by(Quote.created_at.desc(), Quote.quote_number.desc())
    return paginate_query(query, pagination)


def get_quote_by_token(db: Session, token: str) -> Quote | None:
    """Exact-match lookup by accept token."""
    if not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    return (
        db.query(Quote)
        .options(selectinload(Quote.line_items))
        .filter(Quote.accept_token == token)
        .first()
    )


# =============================================================================
# Validation & pricing
# =============================================================================


def _parse_line_items(raw: Any) -> list[LineItemInput]:
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise QuoteValidationError(MSG_BAD_LINE_ITEMS) from exc
    try:
        return normalize_line_items(raw)
    except LineItemPayloadError as exc:
        raise QuoteValidationError(MSG_BAD_LINE_ITEMS) from exc


def _validate_write(
    db: Session, org_id: UUID, data: QuoteWrite
) -> tuple[Client, Property | None, list[LineItemInput]]:
    """Check a create/edit payload before anything is written."""
    if not data.client_id:
        raise QuoteValidationError(MSG_NO_CLIENT)
    if not data.title or not data.title.strip():
        raise QuoteValidationError(MSG_NO_TITLE)
    if data.pricing_type == PricingType.FIXED:
        price = data.fixed_price
        if price is None or price <= 0:
            raise QuoteValidationError(MSG_BAD_PRICE)
        if price > MAX_FIXED_PRICE:
            raise QuoteValidationError(MSG_PRICE_TOO_LARGE)
        # Sub-penny prices round to 0.00
        if round2(price) <= 0:
            raise QuoteValidationError(MSG_BAD_PRICE)

    client = (
        db.query(Client)
        .filter(Client.id == data.client_id, Client.organization_id == org_id)
        .first()
    )
    if not client:
        raise QuoteValidationError(MSG_NO_CLIENT)

    prop = None
    if data.property_id:
        prop = (
            db.query(Property)
            .filter(
                Property.id == data.property_id,
                Property.organization_id == org_id,
                Property.client_id == client.id,
            )
            .first()
        )
        if not prop:
            raise QuoteValidationError(MSG_BAD_PROPERTY)

    items: list[LineItemInput] = []
    if data.pricing_type == PricingType.ITEMISED:
        items = _parse_line_items(data.line_items)
    return client, prop, items


def _get_org(db: Session, org_id: UUID) -> Organization:
    org = db.get(Organization, org_id)
    if not org:
        raise QuoteNotFoundError("Organization not found.")
    return org


def _check_storable(totals: QuoteTotals) -> QuoteTotals:
    # total >= subtotal and tax_amount, so it is the one that can overflow
    if totals.total > MAX_STORED_AMOUNT:
        raise QuoteValidationError(MSG_TOTAL_TOO_LARGE)
    return totals


def _price_write(
    data: QuoteWrite, items: list[LineItemInput], org: Organization
) -> tuple[Decimal, QuoteTotals]:
    """Snapshot the VAT rate and compute totals, before anything is written."""
    vat_registered = bool(org.vat_registered)
    tax_rate = effective_tax_rate(org.vat_rate, vat_registered)
    if data.pricing_type == PricingType.FIXED:
        totals = compute_totals(data.fixed_price, tax_rate, vat_registered)
    else:
        totals = compute_itemised_totals((i.amount for i in items), tax_rate, vat_registered)
    return tax_rate, _check_storable(totals)


def _apply_write(
    quote: Quote,
    data: QuoteWrite,
    items: list[LineItemInput],
    tax_rate: Decimal,
    totals: QuoteTotals,
) -> None:
    """Copy fields, the VAT snapshot and the totals onto the quote."""
    quote.client_id = data.client_id
    quote.property_id = data.property_id
    quote.title = data.title.strip()
    quote.pricing_type = data.pricing_type.value
    quote.notes = data.notes or None
    quote.internal_notes = data.internal_notes or None
    quote.valid_until = data.valid_until
    quote.tax_rate = tax_rate

    if data.pricing_type == PricingType.FIXED:
        quote.fixed_price = totals.total
        replace_line_items(quote, [])
    else:
        quote.fixed_price = None
        replace_line_items(quote, items)
    _set_totals(quote, totals)


def _reprice_itemised(quote: Quote, items: list[LineItemInput]) -> QuoteTotals:
    """Totals for new items at the quote's own snapshotted rate."""
    rate = quote.tax_rate or ZERO
    return _check_storable(compute_itemised_totals((i.amount for i in items), rate, rate > 0))


def _set_totals(quote: Quote, totals: QuoteTotals) -> None:
    quote.subtotal = totals.subtotal
    quote.tax_amount = totals.tax_amount
    quote.total = totals.total


def next_quote_number(db: Session, org_id: UUID) -> str:
    """
    Issue the organisation's next quote number.

    A single UPDATE ... RETURNING increments the counter, so concurrent
    creates serialize on the organisation row and never share a number.
    """
    seq = db.execute(
        update(Organization)
        .where(Organization.id == org_id)
        .values(quote_sequence=Organization.quote_sequence + 1)
        .returning(Organization.quote_sequence)
        .execution_options(synchronize_session=False)
    ).scalar_one()
    return f"Q-{seq:04d}"


# =============================================================================
# Status changes
# =============================================================================


def _compare_and_set(db: Session, quote: Quote, event: QuoteEvent, **values: Any) -> QuoteStatus:
    """
    Apply event to the quote if its stored status still allows it.

    Raises:
        InvalidQuoteTransition: the loaded status does not allow event
        QuoteStateError: status changed underneath us (lost race)
    """
    target = transition(QuoteStatus(quote.status), event)
    db.flush()
    sources = [s.value for s in allowed_sources(event)]
    result = db.execute(
        update(Quote)
        .where(Quote.id == quote.id, Quote.status.in_(sources))
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    db.refresh(quote)
    if result.rowcount != 1:
        current = QuoteStatus(quote.status)
        logger.info(
            "Quote transition lost race",
            extra={"quote_id": str(quote.id), "event": event.value, "status": current.value},
        )
        raise QuoteStateError(
            f"Quote is now {current.value}; please reload and try again.",
            current_status=current,
        )
    return target


def create_quote(db: Session, org_id: UUID, user_id: UUID | None, data: QuoteWrite) -> Quote:
    """
    Create a draft quote with its line items.

    Raises:
        QuoteValidationError: bad input; nothing is written
    """
    _, _, items = _validate_write(db, org_id, data)
    tax_rate, totals = _price_write(data, items, _get_org(db, org_id))

    quote = Quote(
        organization_id=org_id,
        created_by_user_id=user_id,
        quote_number=next_quote_number(db, org_id),
        accept_token=generate_accept_token(),
        status=QuoteStatus.DRAFT.value,
    )
    _apply_write(quote, data, items, tax_rate, totals)
    db.add(quote)
    db.flush()
    logger.info(
        "Quote created",
        extra={"quote_id": str(quote.id), "org_id": str(org_id), "pricing_type": quote.pricing_type},
    )
    return quote


def update_quote(db: Session, org_id: UUID, quote_id: UUID, data: QuoteWrite) -> Quote:
    """
    Full edit. Replaces line items and returns the quote to draft.

    Raises:
        QuoteNotFoundError, QuoteValidationError,
        InvalidQuoteTransition: quote already accepted
    """
    quote = require_quote(db, org_id, quote_id)
    transition(QuoteStatus(quote.status), QuoteEvent.EDIT)
    _, _, items = _validate_write(db, org_id, data)
    tax_rate, totals = _price_write(data, items, _get_org(db, org_id))

    # Reopening starts a fresh round; sent_at is set again on the next send
    _compare_and_set(db, quote, QuoteEvent.EDIT, viewed_at=None, responded_at=None)
    _apply_write(quote, data, items, tax_rate, totals)
    db.flush()
    return quote


def save_line_items(db: Session, org_id: UUID, quote_id: UUID, raw_items: Any) -> Quote:
    """Replace an itemised draft's line items and recompute its totals."""
    quote = require_quote(db, org_id, quote_id)
    if quote.status != QuoteStatus.DRAFT.value:
        raise QuoteStateError(
            "Line items can only be changed while the quote is a draft.",
            current_status=QuoteStatus(quote.status),
        )
    if quote.pricing_type != PricingType.ITEMISED.value:
        raise QuoteValidationError("Line items only apply to itemised quotes.")

    items = _parse_line_items(raw_items)
    totals = _reprice_itemised(quote, items)
    replace_line_items(quote, items)
    _set_totals(quote, totals)
    db.flush()
    return quote


def send_quote(db: Session, org_id: UUID, user_id: UUID | None, quote_id: UUID) -> Quote:
    """draft -> sent. The router dispatches the email after commit."""
    quote = require_quote(db, org_id, quote_id)
    _compare_and_set(db, quote, QuoteEvent.SEND, sent_at=_now())
    activity_service.log_quote_sent(db, quote, actor_user_id=user_id)
    return quote


def _record_response(
    db: Session,
    quote: Quote,
    decision: QuoteDecision,
    actor_user_id: UUID | None,
    assignee_user_id: UUID | None,
    via_public_link: bool,
) -> Quote:
    accepted = decision == QuoteDecision.ACCEPTED
    event = QuoteEvent.ACCEPT if accepted else QuoteEvent.DECLINE
    _compare_and_set(db, quote, event, responded_at=_now())

    if accepted:
        job = job_service.create_job_from_quote(db, quote, assigned_to_user_id=assignee_user_id)
        logger.info(
            "Job created from accepted quote",
            extra={"quote_id": str(quote.id), "job_id": str(job.id)},
        )
    activity_service.log_quote_response(
        db,
        quote,
        accepted=accepted,
        actor_user_id=actor_user_id,
        via_public_link=via_public_link,
    )
    return quote


def set_quote_response(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    quote_id: UUID,
    decision: QuoteDecision,
) -> Quote:
    """Staff marks a sent/viewed quote accepted or declined."""
    quote = require_quote(db, org_id, quote_id)
    return _record_response(
        db,
        quote,
        decision,
        actor_user_id=user_id,
        assignee_user_id=user_id,
        via_public_link=False,
    )


def expire_quote(db: Session, org_id: UUID, user_id: UUID | None, quote_id: UUID) -> Quote:
    """Staff marks a sent/viewed quote expired."""
    quote = require_quote(db, org_id, quote_id)
    _compare_and_set(db, quote, QuoteEvent.EXPIRE)
    activity_service.log_quote_expired(db, quote, actor_user_id=user_id)
    return quote


def expire_overdue_quotes(db: Session, today: date) -> int:
    """
    Expire sent/viewed quotes whose valid_until is before today.

    Quotes that move on concurrently (e.g. accepted mid-sweep) are skipped.

    Returns:
        Number of quotes expired
    """
    open_values = [s.value for s in OPEN_STATUSES]
    overdue = db.scalars(
        select(Quote)
        .where(
            Quote.status.in_(open_values),
            Quote.valid_until.is_not(None),
            Quote.valid_until < today,
        )
        .order_by(Quote.valid_until)
    ).all()

    expired = 0
    for quote in overdue:
        try:
            _compare_and_set(db, quote, QuoteEvent.EXPIRE)
        except QuoteStateError:
            continue
        activity_service.log_quote_expired(db, quote)
        expired += 1
    return expired


def delete_quote(db: Session, org_id: UUID, quote_id: UUID) -> None:
    """
    Delete a draft quote and its line items.

    Raises:
        QuoteNotFoundError, QuoteStateError: not a draft
    """
    quote = (
        db.query(Quote)
        .filter(Quote.id == quote_id, Quote.organization_id == org_id)
        .with_for_update()
        .first()
    )
    if not quote:
        raise QuoteNotFoundError()
    if quote.status != QuoteStatus.DRAFT.value:
        raise QuoteStateError(MSG_DELETE_NOT_DRAFT, current_status=QuoteStatus(quote.status))
    db.delete(quote)
    db.flush()


# =============================================================================
# Public token operations
# =============================================================================


def public_response_state(quote: Quote) -> str:
    """open | accepted | declined | expired | closed"""
    status = QuoteStatus(quote.status)
    if status in OPEN_STATUSES:
        return "open"
    if status in (QuoteStatus.ACCEPTED, QuoteStatus.DECLINED, QuoteStatus.EXPIRED):
        return status.value
    return "closed"


def _closed_message(status: QuoteStatus) -> str:
    if status in (QuoteStatus.ACCEPTED, QuoteStatus.DECLINED):
        return MSG_ALREADY_RESPONDED
    if status == QuoteStatus.EXPIRED:
        return MSG_EXPIRED
    return MSG_NOT_OPEN


def mark_quote_viewed(db: Session, quote: Quote) -> bool:
    """
    sent -> viewed on first public view.

    Returns False (without error) when the quote is not exactly sent,
    so repeated views never re-fire.
    """
    if quote.status != QuoteStatus.SENT.value:
        return False
    try:
        _compare_and_set(db, quote, QuoteEvent.VIEW, viewed_at=_now())
    except QuoteStateError:
        return False
    activity_service.log_quote_viewed(db, quote)
    return True


def respond_to_quote(db: Session, token: str, decision: QuoteDecision) -> Quote:
    """
    Client accepts or declines through the public link.

    The token is the only credential. The job is assigned to the quote's
    creator.

    Raises:
        QuoteNotFoundError: unknown token
        QuoteStateError: quote not open, with a message for the client
    """
    quote = get_quote_by_token(db, token)
    if not quote:
        raise QuoteNotFoundError()

    status = QuoteStatus(quote.status)
    if status not in OPEN_STATUSES:
        raise QuoteStateError(_closed_message(status), current_status=status)

    try:
        return _record_response(
            db,
            quote,
            decision,
            actor_user_id=None,
            assignee_user_id=quote.created_by_user_id,
            via_public_link=True,
        )
    except QuoteStateError as exc:
        current = exc.current_status or QuoteStatus(quote.status)
        raise QuoteStateError(_closed_message(current), current_status=current) from exc
