"""Fixed-point currency and percentage helpers.

Everything inside the core is an integer (cents or basis points). These
functions are the only place where display decimals are parsed or rendered,
and where integer division is rounded (half away from zero, like round2).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fundflow.domain.models import FULL_PERCENTAGE, BasisPoints, Money

_HUNDREDTHS = Decimal("0.01")


def divide_half_up(numerator: int, denominator: int) -> int:
    """Divide two integers, rounding half away from zero.

    Args:
        numerator: Dividend.
        denominator: Divisor (must be non-zero).

    Returns:
        Rounded integer quotient.

    Raises:
        ZeroDivisionError: If denominator is zero.
    """
    if denominator == 0:
        raise ZeroDivisionError("division by zero")
    quotient, remainder = divmod(abs(numerator), abs(denominator))
    if remainder * 2 >= abs(denominator):
        quotient += 1
    negative = (numerator < 0) != (denominator < 0)
    return -quotient if negative else quotient


def percent_of(amount: Money, percentage: BasisPoints) -> Money:
    """Apply a percentage to an amount, rounded to the cent."""
    return Money(divide_half_up(amount * percentage, FULL_PERCENTAGE))


def ratio_as_percentage(part: Money, whole: Money) -> BasisPoints:
    """Express part/whole as basis points, rounded to 0.01%.

    A zero whole yields 0 rather than raising.
    """
    if whole == 0:
        return BasisPoints(0)
    return BasisPoints(divide_half_up(part * FULL_PERCENTAGE, whole))


def _parse_hundredths(text: str | float | int | Decimal) -> int:
    cleaned = str(text).strip().replace(",", "").replace("$", "").replace("%", "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {text!r}") from e
    if not value.is_finite():
        raise ValueError(f"Not a number: {text!r}")
    return int((value.quantize(_HUNDREDTHS, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def parse_money(text: str | float | int | Decimal) -> Money:
    """Parse a display amount (e.g. "1,234.56" or "$85.32") into cents.

    Raises:
        ValueError: If the text is not a number.
    """
    return Money(_parse_hundredths(text))


def parse_percentage(text: str | float | int | Decimal) -> BasisPoints:
    """Parse a display percentage (e.g. "12.5" or "12.5%") into basis points.

    Raises:
        ValueError: If the text is not a number.
    """
    return BasisPoints(_parse_hundredths(text))


def to_decimal(value: int) -> Decimal:
    """Convert cents or basis points back to a 2-decimal Decimal."""
    return (Decimal(value) / 100).quantize(_HUNDREDTHS)


def format_money(amount: Money, symbol: str = "$") -> str:
    """Format cents for display (e.g. "-$1,234.56")."""
    formatted = f"{symbol}{abs(amount) / 100:,.2f}"
    return f"-{formatted}" if amount < 0 else formatted


def format_percentage(percentage: BasisPoints) -> str:
    """Format basis points for display (e.g. "12.50%")."""
    return f"{percentage / 100:.2f}%"
