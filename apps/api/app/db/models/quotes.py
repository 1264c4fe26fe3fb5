"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_PRICING_TYPE, DEFAULT_QUOTE_STATUS

if TYPE_CHECKING:
    from app.db.models import Client, Job, Organization, Property, User


class Quote(Base):
    """
    A price quote sent to a client.

    Totals and the tax rate are stored as computed at write time. The tax
    rate is a snapshot of the organisation's VAT settings, so later
    settings changes never alter an existing quote.

    Status only moves along the transitions in app.services.quote_state.
    """

    __tablename__ = "quotes"
    __table_args__ = (
        UniqueConstraint("organization_id", "quote_number", name="uq_quotes_org_number"),
        Index("idx_quotes_org_status", "organization_id", "status"),
        Index("idx_quotes_org_created", "organization_id", "created_at"),
        Index("idx_quotes_client", "client_id"),
        Index(
            "idx_quotes_open_valid_until",
            "valid_until",
            postgresql_where=text("status IN ('sent', 'viewed')"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    property_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # Set when the quote is accepted; jobs.quote_id holds the enforced link
    job_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    quote_number: Mapped[str] = mapped_column(String(20), nullable=False)
    accept_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    pricing_type: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_PRICING_TYPE.value, nullable=False
    )
    fixed_price: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Totals
    subtotal: Mapped[Decimal] = mapped_column(default=Decimal("0.00"), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(default=Decimal("0.00"), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(default=Decimal("0.00"), nullable=False)
    total: Mapped[Decimal] = mapped_column(default=Decimal("0.00"), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)  # Client-visible
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)  # Staff only
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_QUOTE_STATUS.value, nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)
    viewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    organization: Mapped["Organization"] = relationship()
    client: Mapped["Client"] = relationship()
    service_property: Mapped["Property | None"] = relationship()
    created_by: Mapped["User | None"] = relationship()
    line_items: Mapped[list["QuoteLineItem"]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteLineItem.sort_order",
    )
    job: Mapped["Job | None"] = relationship(back_populates="quote", uselist=False)

    @property
    def core_items(self) -> list["QuoteLineItem"]:
        return [item for item in self.line_items if not item.is_addon]

    @property
    def addon_items(self) -> list["QuoteLineItem"]:
        return [item for item in self.line_items if item.is_addon]


class QuoteLineItem(Base):
    """
    One priced line of an itemised quote.

    amount is always quantity x unit_price rounded to 2dp at write time.
    sort_order is dense within core items and, separately, within add-ons.
    """

    __tablename__ = "quote_line_items"
    __table_args__ = (Index("idx_quote_line_items_quote", "quote_id", "sort_order"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quote_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    is_addon: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    quote: Mapped["Quote"] = relationship(back_populates="line_items")
