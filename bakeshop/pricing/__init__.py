"""
Pricing module for bakeshop.

Discount calculation shared by the checkout client and the coupon service.
"""
from bakeshop.pricing.discount import (
    CurrencyFormat,
    DiscountType,
    InvalidDiscountInput,
    calculate_discount,
    coupon_discount,
    coupon_label,
    format_discount_label,
    is_applicable,
    round_money,
)

__all__ = [
    "CurrencyFormat",
    "DiscountType",
    "InvalidDiscountInput",
    "calculate_discount",
    "coupon_discount",
    "coupon_label",
    "format_discount_label",
    "is_applicable",
    "round_money",
]
