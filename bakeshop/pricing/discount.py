"""
Coupon discount calculation.

Pure functions shared by the checkout client (advisory "you save" hints) and
the coupon service (authoritative figure). Nothing here does I/O or keeps state.

Discount types:
  percentage: discount_amount is a percentage of the cart total,
    optionally capped by maximum_discount
  fixed: discount_amount is a currency amount, capped by the cart total

Invalid input (negative, NaN, infinite or non-numeric amounts, unknown
discount types) raises InvalidDiscountInput from every public function.
Results are rounded half-up to the currency precision.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from numbers import Real
from typing import Optional, Union


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class InvalidDiscountInput(ValueError):
    """Raised when a discount calculation receives an amount it cannot price."""


@dataclass(frozen=True)
class CurrencyFormat:
    symbol: str = "₹"
    decimal_places: int = 2


DEFAULT_CURRENCY = CurrencyFormat()


# ─── Input checks ────────────────────────────────────────────────────────────

def _check_amount(name: str, value) -> float:
    # bool is a Real subclass; True/False are never prices
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidDiscountInput(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidDiscountInput(f"{name} must be finite, got {value!r}")
    if value < 0:
        raise InvalidDiscountInput(f"{name} must not be negative, got {value!r}")
    return value


def _check_type(discount_type: Union[str, DiscountType]) -> DiscountType:
    try:
        return DiscountType(discount_type)
    except ValueError:
        raise InvalidDiscountInput(
            f"Unknown discount type: {discount_type!r}. Use 'percentage' or 'fixed'."
        ) from None


def _quantize(value: float, places: int) -> Decimal:
    # Precision grows with the magnitude so huge finite amounts still quantize
    exact = Decimal(str(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _round(value: float, places: int) -> float:
    return float(_quantize(value, places))


def round_money(value: float, currency: Optional[CurrencyFormat] = None) -> float:
    """Round a currency amount half-up to currency.decimal_places, like every discount."""
    return _round(value, (currency or DEFAULT_CURRENCY).decimal_places)


def _plain_number(value: float) -> str:
    """Render without forced decimals: 20.0 -> '20', 12.5 -> '12.5'."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


# ─── Public API ──────────────────────────────────────────────────────────────

def format_discount_label(
    discount_type: Union[str, DiscountType],
    discount_amount: float,
    currency: Optional[CurrencyFormat] = None,
) -> str:
    """
    Human-readable label for a coupon badge, e.g. "20% OFF" or "₹99.50 OFF".

    Percentages keep their natural precision; fixed amounts are shown with the
    currency symbol and currency.decimal_places digits.
    """
    dtype = _check_type(discount_type)
    amount = _check_amount("discount_amount", discount_amount)
    currency = currency or DEFAULT_CURRENCY

    if dtype is DiscountType.PERCENTAGE:
        return f"{_plain_number(amount)}% OFF"
    places = currency.decimal_places
    return f"{currency.symbol}{_quantize(amount, places):f} OFF"


def is_applicable(minimum_purchase: float, cart_total: float) -> bool:
    """True if the cart total reaches the coupon's minimum purchase (inclusive)."""
    minimum = _check_amount("minimum_purchase", minimum_purchase)
    total = _check_amount("cart_total", cart_total)
    return total >= minimum


def calculate_discount(
    discount_type: Union[str, DiscountType],
    discount_amount: float,
    cart_total: float,
    maximum_discount: Optional[float] = None,
    currency: Optional[CurrencyFormat] = None,
) -> float:
    """
    Compute the discount a coupon would give on cart_total.

    Eligibility (minimum purchase) is NOT checked here: callers check
    is_applicable() first, or call this directly to answer "what would the
    discount be if eligible?".

    Args:
        discount_type: "percentage" or "fixed".
        discount_amount: Percentage points, or a currency amount for "fixed".
        cart_total: Pre-discount subtotal.
        maximum_discount: Optional cap for percentage coupons (None = uncapped).
        currency: Precision to round to (default 2 places).

    Returns:
        Discount rounded half-up, always within [0, cart_total].
    """
    dtype = _check_type(discount_type)
    amount = _check_amount("discount_amount", discount_amount)
    total = _check_amount("cart_total", cart_total)
    cap = None if maximum_discount is None else _check_amount("maximum_discount", maximum_discount)
    currency = currency or DEFAULT_CURRENCY

    if dtype is DiscountType.PERCENTAGE:
        discount = total * amount / 100
        if cap is not None and discount > cap:
            discount = cap
    else:
        discount = amount

    # Percentages above 100 and oversized fixed amounts both stop at the cart total
    if discount > total:
        discount = total

    return min(_round(discount, currency.decimal_places), total)


def coupon_discount(coupon, cart_total: float, currency: Optional[CurrencyFormat] = None) -> float:
    """calculate_discount() for anything shaped like a CouponSpec."""
    return calculate_discount(
        coupon.discount_type,
        coupon.discount_amount,
        cart_total,
        coupon.maximum_discount,
        currency,
    )


def coupon_label(coupon, currency: Optional[CurrencyFormat] = None) -> str:
    """format_discount_label() for anything shaped like a CouponSpec."""
    return format_discount_label(coupon.discount_type, coupon.discount_amount, currency)
