"""Tests for quote PDF rendering and download."""
from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.db.enums import PricingType
from app.schemas.quote import QuoteWrite
from app.services import quote_pdf_service, quote_service


def _itemised_quote(db, test_auth, client, prop=None):
    data = QuoteWrite(
        client_id=client.id,
        property_id=prop.id if prop else None,
        title="Move-out clean <deluxe>",
        pricing_type=PricingType.ITEMISED,
        line_items=[
            {"description": "Kitchen & oven", "quantity": 1, "unit_price": 80},
            {"description": "Bathrooms", "quantity": 2, "unit_price": "35.50"},
            {"description": "Fridge", "quantity": 1, "unit_price": 20, "is_addon": True},
        ],
        notes="Keys under the mat",
        internal_notes="Difficult parking",
    )
    quote = quote_service.create_quote(db, test_auth.org.id, test_auth.user.id, data)
    db.commit()
    return quote


def test_view_model_splits_items_and_carries_letterhead(db, test_auth, test_client_record, test_property):
    quote = _itemised_quote(db, test_auth, test_client_record, test_property)

    data = quote_pdf_service.build_quote_pdf_data(quote)

    assert data.quote_number == quote.quote_number
    assert [i.description for i in data.core_items] == ["Kitchen & oven", "Bathrooms"]
    assert [i.description for i in data.addon_items] == ["Fridge"]
    assert data.subtotal == Decimal("171.00")
    assert data.tax_amount == Decimal("34.20")
    assert data.total == Decimal("205.20")
    assert data.vat_registered is True
    assert data.vat_number == "GB123456789"
    assert data.client.name == "Jane Doe"
    assert data.property_lines == ["22 Acacia Avenue", "Bath", "BA2 2BB"]
    assert data.org.name == "Sparkle & Shine"
    assert "BA1 1AA" in data.org.address_lines


def test_render_returns_pdf_bytes(db, test_auth, test_client_record):
    quote = _itemised_quote(db, test_auth, test_client_record)

    pdf = quote_pdf_service.render_quote_pdf(quote_pdf_service.build_quote_pdf_data(quote))

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_render_fixed_quote(db, draft_quote):
    pdf = quote_pdf_service.render_quote_pdf(quote_pdf_service.build_quote_pdf_data(draft_quote))
    assert pdf.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_download_pdf(authed_client: AsyncClient, draft_quote):
    response = await authed_client.get(f"/quotes/{draft_quote.id}/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert (
        response.headers["content-disposition"]
        == f'attachment; filename="{draft_quote.quote_number}.pdf"'
    )
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_download_pdf_requires_session(client: AsyncClient, draft_quote):
    response = await client.get(f"/quotes/{draft_quote.id}/pdf")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_download_pdf_of_other_org_is_not_found(
    authed_client: AsyncClient, db, other_org_auth, client_factory
):
    foreign_client = client_factory(other_org_auth.org)
    foreign = quote_service.create_quote(
        db,
        other_org_auth.org.id,
        other_org_auth.user.id,
        QuoteWrite(client_id=foreign_client.id, title="Theirs", fixed_price=Decimal("10")),
    )
    db.commit()

    response = await authed_client.get(f"/quotes/{foreign.id}/pdf")
    assert response.status_code == 404
