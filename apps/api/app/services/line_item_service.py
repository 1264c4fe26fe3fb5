"""Quote line item normalisation and replace-all persistence."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from app.db.models import Quote, QuoteLineItem
from app.services.totals_service import round2

MAX_QUANTITY = Decimal("9999")
MAX_UNIT_PRICE = Decimal("999999")
DEFAULT_QUANTITY = Decimal("1")
DEFAULT_UNIT_PRICE = Decimal("0")
_ROUNDABLE = Decimal("1e12")


class LineItemPayloadError(ValueError):
    """Line item payload is not a list of objects."""

    pass


@dataclass(frozen=True)
class LineItemInput:
    """A cleaned line item, ready to persist."""

    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    is_addon: bool
    sort_order: int


def _finite_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    # Stored at 2dp, so clamp what will actually be persisted
    if abs(number) <= _ROUNDABLE:
        number = round2(number)
    return number


def clamp_quantity(value: Any) -> Decimal:
    """Finite and 0 < q <= 9999 after rounding to 2dp, otherwise 1."""
    qty = _finite_decimal(value)
    if qty is None or qty <= 0 or qty > MAX_QUANTITY:
        return DEFAULT_QUANTITY
    return qty


def clamp_unit_price(value: Any) -> Decimal:
    """Finite and 0 <= p <= 999999 after rounding to 2dp, otherwise 0."""
    price = _finite_decimal(value)
    if price is None or price < 0 or price > MAX_UNIT_PRICE:
        return DEFAULT_UNIT_PRICE
    return price


def normalize_line_items(raw_items: Any) -> list[LineItemInput]:
    """
    Clean a loosely typed line item payload.

    Entries with a blank description are dropped. Quantities and prices
    are clamped, never rejected. sort_order is reassigned 0..n-1 separately
    for core items and add-ons, keeping input order within each group.

    Raises:
        LineItemPayloadError: payload is not a list, or holds a non-object entry
    """
    if raw_items is None:
        return []
    if not isinstance(raw_items, (list, tuple)):
        raise LineItemPayloadError("Line items must be a list.")

    cleaned: list[LineItemInput] = []
    next_order = {False: 0, True: 0}
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise LineItemPayloadError("Line item entries must be objects.")

        description = raw.get("description")
        if not isinstance(description, str) or not description.strip():
            continue

        is_addon = bool(raw.get("is_addon") or False)
        quantity = clamp_quantity(raw.get("quantity"))
        unit_price = clamp_unit_price(raw.get("unit_price"))
        cleaned.append(
            LineItemInput(
                description=description.strip(),
                quantity=quantity,
                unit_price=unit_price,
                amount=round2(quantity * unit_price),
                is_addon=is_addon,
                sort_order=next_order[is_addon],
            )
        )
        next_order[is_addon] += 1
    return cleaned


def replace_line_items(quote: Quote, items: list[LineItemInput]) -> list[QuoteLineItem]:
    """
    Swap the quote's line items for a new set.

    Old rows are removed through the delete-orphan cascade when the session
    flushes, so the replacement shares the caller's transaction.
    """
    rows = [
        QuoteLineItem(
            organization_id=quote.organization_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=item.amount,
            is_addon=item.is_addon,
            sort_order=item.sort_order,
        )
        for item in items
    ]
    quote.line_items = rows
    return rows
