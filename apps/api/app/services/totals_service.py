"""VAT-aware quote totals.

Two pricing modes with opposite tax directions:

- fixed: the entered price is VAT-inclusive; subtotal and tax are backed out.
- itemised: unit prices are VAT-exclusive; tax is added on top of the
  sum of per-line amounts (each already rounded to 2dp).

Not being VAT-registered, or a zero rate, always means no tax.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
# Largest value a Numeric(12, 2) money column holds
MAX_STORED_AMOUNT = Decimal("9999999999.99")
_CENT = Decimal("0.01")


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def round2(value: Decimal | int | float | str) -> Decimal:
    """Round to 2dp, half away from zero."""
    if not isinstance(value, Decimal):
        # str() keeps the shortest repr of a float, so 2.675 stays 2.675
        value = Decimal(str(value))
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _charges_tax(tax_rate_percent: Decimal, vat_registered: bool) -> bool:
    return vat_registered and tax_rate_percent != 0


def compute_totals(
    amount_including_tax: Decimal,
    tax_rate_percent: Decimal,
    vat_registered: bool,
) -> QuoteTotals:
    """Break a VAT-inclusive price into subtotal, tax and total."""
    amount = round2(amount_including_tax)
    if not _charges_tax(tax_rate_percent, vat_registered):
        return QuoteTotals(subtotal=amount, tax_amount=ZERO, total=amount)

    subtotal = round2(amount / (1 + Decimal(tax_rate_percent) / HUNDRED))
    tax_amount = round2(amount - subtotal)
    return QuoteTotals(subtotal=subtotal, tax_amount=tax_amount, total=amount)


def compute_itemised_totals(
    line_amounts: Iterable[Decimal],
    tax_rate_percent: Decimal,
    vat_registered: bool,
) -> QuoteTotals:
    """Sum VAT-exclusive line amounts and add tax on top."""
    subtotal = round2(sum((round2(a) for a in line_amounts), ZERO))
    if not _charges_tax(tax_rate_percent, vat_registered):
        return QuoteTotals(subtotal=subtotal, tax_amount=ZERO, total=subtotal)

    tax_amount = round2(subtotal * Decimal(tax_rate_percent) / HUNDRED)
    return QuoteTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def effective_tax_rate(vat_rate: Decimal | None, vat_registered: bool) -> Decimal:
    """Rate to snapshot onto a quote for the organisation's current settings."""
    if not vat_registered or vat_rate is None:
        return ZERO
    return round2(vat_rate)
