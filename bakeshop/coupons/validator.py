"""
Server-side coupon validation.

Decides whether a coupon may be used on a cart and computes the
authoritative discount with the same engine the checkout client uses for
its previews. Checks run in a fixed order and the first failure wins:

  1. code present
  2. coupon exists, is active and inside its validity window
  3. minimum purchase reached
  4. global usage limit not reached
  5. per-user limit / user targeting (needs a user for user-targeted coupons)
  6. product targeting (when the cart lines are supplied)

redeem_coupon() runs the same checks for a signed-in shopper and then
records the use, so usage limits apply to later validations.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from bakeshop.coupons.models import ApplicableTo, CartProduct, CouponSpec, CouponValidation
from bakeshop.data.coupon_store import CouponDirectory, CouponStoreError
from bakeshop.pricing.discount import CurrencyFormat, DEFAULT_CURRENCY, coupon_discount, is_applicable
from bakeshop.utils.logger import get_logger

logger = get_logger("coupons.validator")


class CouponRejected(Exception):
    """A coupon cannot be used. message is shown to the shopper as-is."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _money(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def validate_coupon(
    directory: CouponDirectory,
    code: Optional[str],
    cart_total: float,
    products: Optional[Sequence[CartProduct]] = None,
    user_id: Optional[str] = None,
    currency: CurrencyFormat = DEFAULT_CURRENCY,
    now: Optional[datetime] = None,
) -> CouponValidation:
    """
    Validate a coupon code against a cart.

    Raises:
        CouponRejected: with the shopper-facing reason and HTTP status.
    """
    if not code or not code.strip():
        raise CouponRejected("Coupon code is required", 400)

    coupon = directory.get_live(code, now)
    if coupon is None:
        raise CouponRejected("Invalid or expired coupon code", 404)

    if coupon.minimum_purchase > 0 and not is_applicable(coupon.minimum_purchase, cart_total):
        raise CouponRejected(
            f"Minimum purchase of {currency.symbol}{_money(coupon.minimum_purchase)} required for this coupon",
            400,
        )

    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise CouponRejected("Coupon usage limit has been reached", 400)

    _check_user(coupon, user_id)
    _check_products(coupon, products)

    discount = coupon_discount(coupon, cart_total, currency)
    logger.info("coupon %s valid for total %s: discount %s", coupon.code, cart_total, discount)

    return CouponValidation(
        valid=True,
        code=coupon.code,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_amount,
        discount_amount=discount,
        message=f"Coupon applied: {coupon.description}",
    )


def redeem_coupon(
    directory: CouponDirectory,
    code: Optional[str],
    cart_total: float,
    products: Optional[Sequence[CartProduct]] = None,
    user_id: Optional[str] = None,
    order_id: Optional[str] = None,
    currency: CurrencyFormat = DEFAULT_CURRENCY,
    now: Optional[datetime] = None,
) -> CouponValidation:
    """
    Validate a coupon and count the redemption against its usage limits.

    Raises:
        CouponRejected: when no user is given, for any validate_coupon() failure,
            or when the last permitted use was taken in the meantime.
    """
    if user_id is None:
        raise CouponRejected("Login required to redeem a coupon", 401)

    validation = validate_coupon(directory, code, cart_total, products, user_id, currency, now)
    try:
        directory.record_usage(validation.code, user_id, order_id, now)
    except CouponStoreError as e:
        raise CouponRejected(str(e), 400) from None

    return validation.model_copy(update={
        "message": f"Coupon applied: {validation.discount_amount:.{currency.decimal_places}f} discount",
    })


def _check_user(coupon: CouponSpec, user_id: Optional[str]) -> None:
    if user_id is None:
        if coupon.applicable_to is ApplicableTo.USER:
            raise CouponRejected("Login required to use this coupon", 401)
        return

    if coupon.per_user_limit is not None:
        used = sum(1 for usage in coupon.used_by if usage.user == user_id)
        if used >= coupon.per_user_limit:
            raise CouponRejected(
                f"You've already used this coupon {used} times (limit: {coupon.per_user_limit})",
                400,
            )

    if (
        coupon.applicable_to is ApplicableTo.USER
        and coupon.applicable_users
        and user_id not in coupon.applicable_users
    ):
        raise CouponRejected("This coupon is not applicable to your account", 400)


def _check_products(coupon: CouponSpec, products: Optional[Sequence[CartProduct]]) -> None:
    if coupon.applicable_to is not ApplicableTo.PRODUCT or products is None:
        return
    if not any(line.product in coupon.applicable_products for line in products):
        raise CouponRejected("Coupon is not applicable to any of the products in your cart", 400)


def list_active_coupons(
    directory: CouponDirectory,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[CouponSpec]:
    """Live coupons; anonymous shoppers do not see coupons targeted at specific users."""
    coupons = directory.live(now)
    if user_id is not None:
        return coupons
    return [
        c for c in coupons
        if c.applicable_to is not ApplicableTo.USER or not c.applicable_users
    ]


def list_product_coupons(
    directory: CouponDirectory,
    product_id: Optional[str] = None,
    category_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[CouponSpec]:
    """Live coupons usable on a product: site-wide ones plus those targeting the product or its category."""
    if not product_id and not category_id:
        raise CouponRejected("Product ID or Category ID is required", 400)

    def matches(coupon: CouponSpec) -> bool:
        if coupon.applicable_to is ApplicableTo.ALL:
            return True
        if coupon.applicable_to is ApplicableTo.PRODUCT:
            return bool(product_id) and product_id in coupon.applicable_products
        if coupon.applicable_to is ApplicableTo.CATEGORY:
            return bool(category_id) and category_id in coupon.applicable_categories
        return False

    return [c for c in directory.live(now) if matches(c)]
