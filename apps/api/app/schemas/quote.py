"""Pydantic schemas for quotes."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.db.enums import PricingType, QuoteDecision, QuoteStatus


# =============================================================================
# Requests
# =============================================================================


class QuoteWrite(BaseModel):
    """
    Create or full-edit payload.

    client_id and title are checked by the service so the caller gets the
    same short messages the dashboard form shows. line_items is accepted
    loosely (a list of objects, or the JSON string the form posts) and
    cleaned server-side.
    """

    client_id: UUID | None = None
    property_id: UUID | None = None
    title: str = ""
    pricing_type: PricingType = PricingType.FIXED
    fixed_price: Decimal | None = None
    line_items: Any = None
    notes: str | None = None
    internal_notes: str | None = None
    valid_until: date | None = None


class LineItemsWrite(BaseModel):
    """Standalone line item save for an itemised draft."""

    items: Any = Field(default_factory=list)


class QuoteStatusUpdate(BaseModel):
    """Staff status change."""

    status: Literal["accepted", "declined", "expired"]


class QuoteRespond(BaseModel):
    """Public accept/decline."""

    decision: QuoteDecision


# =============================================================================
# Responses
# =============================================================================


class LineItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    is_addon: bool
    sort_order: int


class QuoteListItem(BaseModel):
    """Quote list item (minimal)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    quote_number: str
    title: str
    client_id: UUID
    status: QuoteStatus
    pricing_type: PricingType
    total: Decimal
    valid_until: date | None
    created_at: datetime


class QuoteListResponse(BaseModel):
    items: list[QuoteListItem]
    total: int
    page: int
    per_page: int
    pages: int


class QuoteRead(BaseModel):
    """Staff view of a quote."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    client_id: UUID
    property_id: UUID | None
    created_by_user_id: UUID | None
    job_id: UUID | None
    quote_number: str
    accept_token: str
    title: str
    pricing_type: PricingType
    fixed_price: Decimal | None
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: str | None
    internal_notes: str | None
    valid_until: date | None
    status: QuoteStatus
    sent_at: datetime | None
    viewed_at: datetime | None
    responded_at: datetime | None
    created_at: datetime
    updated_at: datetime
    core_items: list[LineItemRead]
    addon_items: list[LineItemRead]


class QuoteSendResponse(BaseModel):
    """Result of sending: the quote plus what happened to the email."""

    quote: QuoteRead
    email_sent: bool
    email_skipped: bool
    email_error: str | None = None


# =============================================================================
# Public (token) views
# =============================================================================


class PublicLetterhead(BaseModel):
    name: str
    email: str | None
    phone: str | None
    address: str | None


class PublicQuoteRead(BaseModel):
    """What the client sees at /q/{token}. Never carries internal notes."""

    quote_number: str
    title: str
    status: QuoteStatus
    response_state: Literal["open", "accepted", "declined", "expired", "closed"]
    pricing_type: PricingType
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    vat_registered: bool
    notes: str | None
    valid_until: date | None
    responded_at: datetime | None
    client_name: str
    property_address: str | None
    organization: PublicLetterhead
    core_items: list[LineItemRead]
    addon_items: list[LineItemRead]


class PublicRespondResponse(BaseModel):
    status: QuoteStatus
    responded_at: datetime | None
