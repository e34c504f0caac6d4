"""
Coupons module for bakeshop.

Coupon schemas, the storefront API client, per-cart coupon state and the
server-side validation rules.
"""
from bakeshop.coupons.client import CouponApiClient, CouponValidationError
from bakeshop.coupons.models import (
    ApplicableTo,
    CartProduct,
    CouponSpec,
    CouponValidation,
    ValidateCouponRequest,
)
from bakeshop.coupons.session import CouponSession, DiscountPreview, preview_coupon

__all__ = [
    "ApplicableTo",
    "CartProduct",
    "CouponApiClient",
    "CouponSession",
    "CouponSpec",
    "CouponValidation",
    "CouponValidationError",
    "DiscountPreview",
    "ValidateCouponRequest",
    "preview_coupon",
]
