from decimal import Decimal

import pytest

from pos.app.tax.gst_engine import (
    GSTLogic,
    apply_round_off,
    calculate_invoice_total,
    compute_forward,
    compute_reverse,
    round_half_away,
    select_rate,
)


@pytest.mark.parametrize(
    "value, logic, expected",
    [
        (Decimal("1000"), GSTLogic.AUTO_5_18, 5),
        (Decimal("2499.99"), GSTLogic.AUTO_5_18, 5),
        (Decimal("2500"), GSTLogic.AUTO_5_18, 18),
        (Decimal("9999"), GSTLogic.AUTO_5_18, 18),
        (Decimal("9999"), GSTLogic.FLAT_5, 5),
        (Decimal("9999"), "FLAT_5", 5),
    ],
)
def test_select_rate(value, logic, expected):
    assert select_rate(value, logic) == expected


def test_select_rate_custom_threshold():
    assert select_rate(Decimal("1500"), GSTLogic.AUTO_5_18, threshold=1000) == 18


def test_select_rate_unknown_logic():
    with pytest.raises(ValueError):
        select_rate(100, "FLAT_12")


def test_forward_low_rate():
    gst = compute_forward(Decimal("1000"), GSTLogic.AUTO_5_18)
    assert gst.gst_percentage == 5
    assert gst.cgst_percentage == Decimal("2.5")
    assert gst.cgst_amount == Decimal("25.00")
    assert gst.sgst_amount == Decimal("25.00")
    assert gst.total_gst == Decimal("50.00")


def test_forward_threshold_is_high_rate():
    gst = compute_forward(Decimal("2500"), GSTLogic.AUTO_5_18)
    assert gst.gst_percentage == 18
    assert gst.cgst_percentage == Decimal("9")
    assert gst.total_gst == Decimal("450.00")


def test_forward_flat_ignores_value():
    gst = compute_forward(Decimal("3000"), GSTLogic.FLAT_5)
    assert gst.gst_percentage == 5
    assert gst.total_gst == Decimal("150.00")


def test_reverse_low_rate():
    gst = compute_reverse(Decimal("1000"), GSTLogic.AUTO_5_18)
    assert gst.gst_percentage == 5
    assert gst.base_price == Decimal("952.38")
    assert gst.gst_amount == Decimal("47.62")


def test_reverse_rate_from_inclusive_value():
    gst = compute_reverse(Decimal("2500"), GSTLogic.AUTO_5_18)
    assert gst.gst_percentage == 18
    assert gst.base_price == Decimal("2118.64")
    assert gst.gst_amount == Decimal("381.36")


def test_reverse_just_below_threshold():
    gst = compute_reverse(Decimal("2499"), GSTLogic.AUTO_5_18)
    assert gst.gst_percentage == 5
    assert gst.base_price == Decimal("2380.00")
    assert gst.gst_amount == Decimal("119.00")


def test_reverse_zero_value():
    gst = compute_reverse(Decimal("0"), GSTLogic.AUTO_5_18)
    assert gst.base_price == Decimal("0.00")
    assert gst.gst_amount == Decimal("0.00")


def test_reverse_accepts_floats():
    assert compute_reverse(1050.0, "FLAT_5").base_price == Decimal("1000.00")


@pytest.mark.parametrize(
    "amount, rounded, round_off",
    [
        (Decimal("1299.50"), Decimal("1300"), Decimal("0.50")),
        (Decimal("1234.49"), Decimal("1234"), Decimal("-0.49")),
        (Decimal("1000"), Decimal("1000"), Decimal("0.00")),
        (Decimal("0.50"), Decimal("1"), Decimal("0.50")),
    ],
)
def test_apply_round_off(amount, rounded, round_off):
    assert apply_round_off(amount) == (rounded, round_off)


def test_round_half_away_from_zero():
    assert round_half_away(Decimal("2.5")) == Decimal("3")
    assert round_half_away(Decimal("-2.5")) == Decimal("-3")


def test_calculate_invoice_total_buckets():
    items = [
        {"mrp": 1000, "discount": 0, "gst_logic": "AUTO_5_18"},
        {"mrp": 3000, "discount": 0, "gst_logic": "AUTO_5_18"},
    ]
    total = calculate_invoice_total(items)
    assert total.taxable_value == Decimal("4000.00")
    assert total.cgst_5 == Decimal("25.00")
    assert total.sgst_5 == Decimal("25.00")
    assert total.cgst_18 == Decimal("270.00")
    assert total.sgst_18 == Decimal("270.00")
    assert total.total_gst == Decimal("590.00")
    assert total.net_payable == Decimal("4590")
    assert total.round_off == Decimal("0.00")


def test_calculate_invoice_total_discount_and_loyalty():
    items = [{"mrp": 3000, "discount": 600, "gst_logic": "AUTO_5_18"}]
    total = calculate_invoice_total(items, loyalty_redemption=Decimal("10.40"))
    # 2400 after discount falls into the 5% slab
    assert total.total_discount == Decimal("600.00")
    assert total.total_gst == Decimal("120.00")
    assert total.subtotal == Decimal("2509.60")
    assert total.net_payable == Decimal("2510")
    assert total.round_off == Decimal("0.40")


def test_calculate_invoice_total_empty():
    total = calculate_invoice_total([])
    assert total.net_payable == Decimal("0")
    assert total.total_gst == Decimal("0.00")


def test_round_trip_across_slab_threshold():
    # 2400 taxed forward at 5% becomes 2520 inclusive, which reverses at 18%
    forward = compute_forward(Decimal("2400"), GSTLogic.AUTO_5_18)
    reverse = compute_reverse(Decimal("2400") + forward.total_gst, GSTLogic.AUTO_5_18)
    assert forward.gst_percentage == 5
    assert reverse.gst_percentage == 18
    assert reverse.base_price == Decimal("2135.59")


def test_round_trip_below_straddle():
    forward = compute_forward(Decimal("2380.94"), GSTLogic.AUTO_5_18)
    reverse = compute_reverse(Decimal("2380.94") + forward.total_gst, GSTLogic.AUTO_5_18)
    assert forward.total_gst == Decimal("119.05")
    assert reverse.gst_percentage == 5
    assert reverse.base_price == Decimal("2380.94")
