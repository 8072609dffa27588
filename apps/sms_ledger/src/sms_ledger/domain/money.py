"""Money helpers using Decimal with two-place precision rules."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_PRECISION = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    """Return value rounded to two decimal places with HALF_UP strategy."""

    return value.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def parse_amount(value: str) -> Decimal | None:
    """Parse an extracted amount like ``"2,566.60"`` into a Decimal.

    Returns ``None`` for anything that is not a finite, non-negative number.
    """

    normalized = value.replace(",", "").strip()
    if not normalized:
        return None
    try:
        amount = Decimal(normalized)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def format_money(value: Decimal) -> str:
    """Render money as string with exactly two decimal places."""

    return f"{quantize_money(value):.2f}"
