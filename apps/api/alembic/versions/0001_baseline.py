"""Baseline migration - tenants, clients, quotes, jobs and activity timeline

Revision ID: 0001_baseline
Revises:
Create Date: 2026-02-02

Creates every table the quotes API needs. Quote numbers come from
organizations.quote_sequence; jobs.quote_id is unique so an accepted quote
can only ever produce one job.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _fk(name: str, target: str, ondelete: str, nullable: bool = False, **kwargs) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
        **kwargs,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")
    )


def upgrade() -> None:
    """Create all tables."""
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")  # For gen_random_uuid()

    # ==========================================================================
    # Tenants & identity
    # ==========================================================================
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=True),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("town", sa.String(100), nullable=True),
        sa.Column("postcode", sa.String(20), nullable=True),
        sa.Column("vat_registered", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("vat_rate", sa.Numeric(12, 2), nullable=False, server_default=sa.text("20.00")),
        sa.Column("vat_number", sa.String(20), nullable=True),
        sa.Column("quote_sequence", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")
        ),
        sa.CheckConstraint("vat_rate >= 0 AND vat_rate <= 100", name="ck_organizations_vat_rate"),
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("token_version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )

    op.create_table(
        "memberships",
        _id(),
        _fk("user_id", "users.id", "CASCADE", unique=True),  # ONE ORG PER USER
        _fk("organization_id", "organizations.id", "CASCADE"),
        sa.Column("role", sa.String(50), nullable=False),
        _created_at(),
    )
    op.create_index("idx_memberships_org_id", "memberships", ["organization_id"])

    # ==========================================================================
    # Clients & properties
    # ==========================================================================
    op.create_table(
        "clients",
        _id(),
        _fk("organization_id", "organizations.id", "CASCADE"),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        _created_at(),
    )
    op.create_index("idx_clients_org_created", "clients", ["organization_id", "created_at"])

    op.create_table(
        "properties",
        _id(),
        _fk("organization_id", "organizations.id", "CASCADE"),
        _fk("client_id", "clients.id", "CASCADE"),
        sa.Column("address_line1", sa.String(255), nullable=False),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("town", sa.String(100), nullable=False),
        sa.Column("postcode", sa.String(20), nullable=False),
        _created_at(),
    )
    op.create_index("idx_properties_client", "properties", ["client_id"])

    # ==========================================================================
    # Quotes
    # ==========================================================================
    op.create_table(
        "quotes",
        _id(),
        _fk("organization_id", "organizations.id", "CASCADE"),
        _fk("client_id", "clients.id", "CASCADE"),
        _fk("property_id", "properties.id", "SET NULL", nullable=True),
        _fk("created_by_user_id", "users.id", "SET NULL", nullable=True),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("quote_number", sa.String(20), nullable=False),
        sa.Column("accept_token", sa.String(64), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("pricing_type", sa.String(20), nullable=False, server_default="fixed"),
        sa.Column("fixed_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_rate", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")
        ),
        sa.UniqueConstraint("organization_id", "quote_number", name="uq_quotes_org_number"),
        sa.CheckConstraint(
            "status IN ('draft', 'sent', 'viewed', 'accepted', 'declined', 'expired')",
            name="ck_quotes_status",
        ),
        sa.CheckConstraint("pricing_type IN ('fixed', 'itemised')", name="ck_quotes_pricing_type"),
        sa.CheckConstraint("total = subtotal + tax_amount", name="ck_quotes_total"),
    )
    op.create_index("idx_quotes_org_status", "quotes", ["organization_id", "status"])
    op.create_index("idx_quotes_org_created", "quotes", ["organization_id", "created_at"])
    op.create_index("idx_quotes_client", "quotes", ["client_id"])
    # Expiry sweep only scans open quotes
    op.create_index(
        "idx_quotes_open_valid_until",
        "quotes",
        ["valid_until"],
        postgresql_where=sa.text("status IN ('sent', 'viewed')"),
    )

    op.create_table(
        "quote_line_items",
        _id(),
        _fk("quote_id", "quotes.id", "CASCADE"),
        _fk("organization_id", "organizations.id", "CASCADE"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_addon", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
    )
    op.create_index("idx_quote_line_items_quote", "quote_line_items", ["quote_id", "sort_order"])

    # ==========================================================================
    # Jobs
    # ==========================================================================
    op.create_table(
        "jobs",
        _id(),
        _fk("organization_id", "organizations.id", "CASCADE"),
        _fk("client_id", "clients.id", "CASCADE"),
        _fk("property_id", "properties.id", "SET NULL", nullable=True),
        _fk("quote_id", "quotes.id", "SET NULL", nullable=True, unique=True),
        _fk("assigned_to_user_id", "users.id", "SET NULL", nullable=True),
        sa.Column("service_type", sa.String(30), nullable=False, server_default="other"),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("scheduled_date", sa.Date(), nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_jobs_org_scheduled", "jobs", ["organization_id", "scheduled_date"])
    op.create_index("idx_jobs_client", "jobs", ["client_id"])

    # ==========================================================================
    # Activity timeline
    # ==========================================================================
    op.create_table(
        "activities",
        _id(),
        _fk("organization_id", "organizations.id", "CASCADE"),
        _fk("client_id", "clients.id", "CASCADE"),
        _fk("quote_id", "quotes.id", "SET NULL", nullable=True),
        _fk("job_id", "jobs.id", "SET NULL", nullable=True),
        _fk("created_by_user_id", "users.id", "SET NULL", nullable=True),
        sa.Column("activity_type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        _created_at(),
    )
    op.create_index("idx_activities_client_created", "activities", ["client_id", "created_at"])
    op.create_index("idx_activities_org_created", "activities", ["organization_id", "created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("activities")
    op.drop_table("jobs")
    op.drop_table("quote_line_items")
    op.drop_table("quotes")
    op.drop_table("properties")
    op.drop_table("clients")
    op.drop_table("memberships")
    op.drop_table("users")
    op.drop_table("organizations")
