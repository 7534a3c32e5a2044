"""Decimal helpers for token amounts.

Amounts are `decimal.Decimal` everywhere: raw on-chain integers are scaled
exactly, never through float. The default 28-digit context would round a
uint256 (up to 78 digits), so scaling and display run under WIDE_CONTEXT.

Stored amounts are NUMERIC(78, 18): at most AMOUNT_INTEGER_DIGITS digits
before the point and AMOUNT_SCALE after it.
"""

from decimal import Context, Decimal, InvalidOperation, localcontext

AMOUNT_SCALE = 18
AMOUNT_INTEGER_DIGITS = 60

WIDE_CONTEXT = Context(prec=160)

_QUANTUM = Decimal(1).scaleb(-AMOUNT_SCALE)


def scale_down(raw_amount: int, decimals: int) -> Decimal:
    """Raw integer token amount -> human units: 1_500_000 @ 6 -> Decimal('1.5')."""
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")
    with localcontext(WIDE_CONTEXT):
        return Decimal(int(raw_amount)).scaleb(-decimals)


def parse_raw_amount(value: str | int) -> int:
    """Parse a uint256 as delivered by a contract call or JSON (str or int)."""
    if isinstance(value, int):
        raw = value
    else:
        text = str(value).strip()
        try:
            raw = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError as exc:
            raise ValueError(f"Invalid raw token amount: {value!r}") from exc
    if raw < 0:
        raise ValueError(f"Raw token amount must be >= 0, got {raw}")
    return raw


def is_positive_finite(value: Decimal) -> bool:
    try:
        return value.is_finite() and value > 0
    except (InvalidOperation, AttributeError):
        return False


def fits_amount_column(value: Decimal) -> bool:
    """True if `value` is stored exactly: no rounding, no overflow."""
    if not isinstance(value, Decimal) or not value.is_finite():
        return False
    if value.is_zero():
        return True
    if value.adjusted() >= AMOUNT_INTEGER_DIGITS:
        return False
    with localcontext(WIDE_CONTEXT):
        return value.quantize(_QUANTUM) == value


def format_amount(value: Decimal, currency: str) -> str:
    """Display form used in business messages: Decimal('12.50') -> '12.5 USDC'."""
    with localcontext(WIDE_CONTEXT):
        text = format(value.normalize(), "f")
    return f"{text} {currency}".strip()
