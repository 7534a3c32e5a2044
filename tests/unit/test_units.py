"""Tests for ah_common.units: exact Decimal token arithmetic."""

from decimal import Decimal

import pytest

from src.ah_common.units import (
    fits_amount_column,
    format_amount,
    is_positive_finite,
    parse_raw_amount,
    scale_down,
)


class TestScaleDown:
    def test_six_decimals(self) -> None:
        assert scale_down(1_500_000, 6) == Decimal("1.5")

    def test_eighteen_decimals(self) -> None:
        assert scale_down(10**18, 18) == Decimal(1)

    def test_keeps_every_digit(self) -> None:
        # 2**70 base units is far beyond float precision
        assert scale_down(2**70, 18) == Decimal("1180.591620717411303424")

    def test_beyond_default_context_precision(self) -> None:
        assert scale_down(10**30 + 1, 18) == Decimal("1000000000000.000000000000000001")

    def test_max_uint256(self) -> None:
        raw = 2**256 - 1
        assert scale_down(raw, 18) == Decimal(f"{raw // 10**18}.{raw % 10**18:018d}")

    def test_zero_decimals(self) -> None:
        assert scale_down(42, 0) == Decimal(42)

    def test_negative_decimals_rejected(self) -> None:
        with pytest.raises(ValueError, match="decimals"):
            scale_down(1, -1)


class TestParseRawAmount:
    def test_int_passthrough(self) -> None:
        assert parse_raw_amount(150_000_000) == 150_000_000

    def test_decimal_string(self) -> None:
        assert parse_raw_amount(" 200000000 ") == 200_000_000

    def test_hex_string(self) -> None:
        assert parse_raw_amount("0x0de0b6b3a7640000") == 10**18

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ValueError, match="Invalid raw token amount"):
            parse_raw_amount("12.5")

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            parse_raw_amount(-1)


class TestHelpers:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("0.000001"), True),
            (Decimal(0), False),
            (Decimal(-5), False),
            (Decimal("NaN"), False),
            (Decimal("Infinity"), False),
        ],
    )
    def test_is_positive_finite(self, value: Decimal, expected: bool) -> None:
        assert is_positive_finite(value) is expected

    def test_format_amount_drops_trailing_zeros(self) -> None:
        assert format_amount(Decimal("12.50"), "USDC") == "12.5 USDC"

    def test_format_amount_integer_without_exponent(self) -> None:
        assert format_amount(Decimal("100"), "USDC") == "100 USDC"
        assert format_amount(Decimal("1E+2"), "USDC") == "100 USDC"

    def test_format_amount_keeps_every_digit(self) -> None:
        value = Decimal("1000000000000.000000000000000001")
        assert format_amount(value, "MEME") == "1000000000000.000000000000000001 MEME"

    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("0"), True),
            (Decimal("12.5"), True),
            (Decimal("0.000000000000000001"), True),
            (Decimal("100.000000000000000000000"), True),
            (Decimal("9" * 60 + "." + "9" * 18), True),
            (Decimal("0.0000000000000000001"), False),
            (Decimal("1E+60"), False),
            (Decimal("NaN"), False),
            (Decimal("-Infinity"), False),
        ],
    )
    def test_fits_amount_column(self, value: Decimal, expected: bool) -> None:
        assert fits_amount_column(value) is expected
