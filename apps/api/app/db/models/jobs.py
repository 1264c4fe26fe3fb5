"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_JOB_STATUS, DEFAULT_SERVICE_TYPE

if TYPE_CHECKING:
    from app.db.models import Client, Property, Quote, User


class Job(Base):
    """
    A scheduled cleaning visit.

    Jobs created from an accepted quote keep a back-reference to it.
    quote_id is unique, so one quote can never produce two jobs.
    """

    __tablename__ = "jobs"
    __table_args__ = (
        Index("idx_jobs_org_scheduled", "organization_id", "scheduled_date"),
        Index("idx_jobs_client", "client_id"),
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
    quote_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("quotes.id", ondelete="SET NULL"), unique=True, nullable=True
    )
    assigned_to_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    service_type: Mapped[str] = mapped_column(
        String(30), default=DEFAULT_SERVICE_TYPE.value, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_JOB_STATUS.value, nullable=False
    )
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    client: Mapped["Client"] = relationship()
    service_property: Mapped["Property | None"] = relationship()
    assigned_to: Mapped["User | None"] = relationship()
    quote: Mapped["Quote | None"] = relationship(back_populates="job")
