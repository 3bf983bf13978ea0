"""
Money and points arithmetic.

Currency amounts are ``Decimal`` values; loyalty points are ``int``.
Floats are converted through ``str`` so 9.99 stays 9.99.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from cafeteria.conf import cafeteria_settings
from cafeteria.exceptions import ValidationError

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce ``value`` to Decimal, raising ValidationError when it is not a number."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValidationError("INVALID_AMOUNT", message=f"Invalid amount: {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("INVALID_AMOUNT", message=f"Invalid amount: {value!r}")


def quantize(amount: Decimal) -> Decimal:
    """Round to cents (half up)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount) -> str:
    """Display format: "EGP 12.50"."""
    return f"{cafeteria_settings.CURRENCY} {quantize(to_decimal(amount))}"


def points_for_amount(amount) -> int:
    """Points earned for ``amount``: floor(amount / earn unit), 0 for None or <= 0."""
    if amount is None:
        return 0
    amount = to_decimal(amount)
    if amount <= 0:
        return 0
    unit = to_decimal(cafeteria_settings.POINTS_EARN_UNIT)
    return int((amount / unit).to_integral_value(rounding=ROUND_DOWN))


def discount_for_points(points: int) -> Decimal:
    """Currency discount bought by ``points``."""
    if points <= 0:
        return ZERO
    rate = to_decimal(cafeteria_settings.DISCOUNT_PER_POINT)
    return quantize(rate * points)


def points_for_discount(discount) -> int:
    """Points needed for ``discount``, rounded down."""
    if discount is None:
        return 0
    discount = to_decimal(discount)
    if discount <= 0:
        return 0
    rate = to_decimal(cafeteria_settings.DISCOUNT_PER_POINT)
    return int((discount / rate).to_integral_value(rounding=ROUND_DOWN))
