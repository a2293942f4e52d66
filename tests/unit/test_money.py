from decimal import Decimal

import pytest

from finedu.domain.money import (
    format_rupiah,
    money,
    percent,
    price,
    ratio_percent,
    to_decimal,
    units,
    units_floor,
)


def test_to_decimal_avoids_float_noise():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("12.50") == Decimal("12.50")


def test_to_decimal_rejects_bool():
    with pytest.raises(TypeError):
        to_decimal(True)


def test_quantizers():
    assert money("10.005") == Decimal("10.01")
    assert units("1.23455") == Decimal("1.2346")
    assert price("1058.82352") == Decimal("1058.8235")
    assert percent("3.333") == Decimal("3.33")


def test_units_floor_never_rounds_up():
    assert units_floor(Decimal("41.66669")) == Decimal("41.6666")


def test_ratio_percent_zero_denominator():
    assert ratio_percent(Decimal("5"), Decimal("0")) == Decimal("0.00")


def test_format_rupiah():
    assert format_rupiah(Decimal("1234567.891")) == "Rp 1,234,567.89"
