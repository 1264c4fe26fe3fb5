"""Tests for VAT-aware quote totals."""
from decimal import Decimal

import pytest

from app.services.totals_service import (
    compute_itemised_totals,
    compute_totals,
    effective_tax_rate,
    round2,
)


D = Decimal


def test_fixed_price_backs_vat_out_of_inclusive_amount():
    totals = compute_totals(D("120.00"), D("20"), True)

    assert totals.subtotal == D("100.00")
    assert totals.tax_amount == D("20.00")
    assert totals.total == D("120.00")


def test_fixed_price_total_is_entered_price_exactly():
    totals = compute_totals(D("99.99"), D("20"), True)

    # 99.99 / 1.2 = 83.325 -> 83.33
    assert totals.subtotal == D("83.33")
    assert totals.tax_amount == D("16.66")
    assert totals.total == D("99.99")
    assert totals.subtotal + totals.tax_amount == totals.total


@pytest.mark.parametrize("rate,registered", [(D("20"), False), (D("0"), True), (D("0"), False)])
def test_no_tax_when_not_registered_or_zero_rate(rate, registered):
    totals = compute_totals(D("250.00"), rate, registered)

    assert totals.tax_amount == D("0.00")
    assert totals.subtotal == totals.total == D("250.00")


def test_itemised_adds_tax_on_top():
    totals = compute_itemised_totals([D("100.00")], D("20"), True)

    assert totals.subtotal == D("100.00")
    assert totals.tax_amount == D("20.00")
    assert totals.total == D("120.00")


def test_itemised_rounds_each_line_before_summing():
    # Each 0.005 rounds up to 0.01; rounding the sum would give 0.02
    totals = compute_itemised_totals([D("0.005"), D("0.005"), D("0.005")], D("0"), False)

    assert totals.subtotal == D("0.03")


def test_itemised_not_registered_has_no_tax():
    totals = compute_itemised_totals([D("40.00"), D("15.50")], D("20"), False)

    assert totals.subtotal == D("55.50")
    assert totals.tax_amount == D("0.00")
    assert totals.total == D("55.50")


def test_itemised_empty_is_zero():
    totals = compute_itemised_totals([], D("20"), True)

    assert totals.subtotal == totals.tax_amount == totals.total == D("0.00")


def test_round2_is_half_up():
    assert round2(D("2.675")) == D("2.68")
    assert round2(D("-2.675")) == D("-2.68")
    assert round2(2.675) == D("2.68")
    assert round2("10") == D("10.00")


def test_effective_tax_rate_snapshot():
    assert effective_tax_rate(D("20"), True) == D("20.00")
    assert effective_tax_rate(D("20"), False) == D("0.00")
    assert effective_tax_rate(None, True) == D("0.00")
    assert effective_tax_rate(D("17.5"), True) == D("17.50")
