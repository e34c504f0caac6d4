"""
bakeshop - coupon pricing for the bakery storefront

- Discount engine shared by checkout previews and the coupon service
- Coupon API client and per-cart coupon session
- Reference coupon validation service
"""

from bakeshop.core.config import BakeshopConfig, get_config, set_config
from bakeshop.pricing.discount import (
    CurrencyFormat,
    DiscountType,
    InvalidDiscountInput,
    calculate_discount,
    format_discount_label,
    is_applicable,
)

__all__ = [
    'BakeshopConfig',
    'get_config',
    'set_config',
    'CurrencyFormat',
    'DiscountType',
    'InvalidDiscountInput',
    'calculate_discount',
    'format_discount_label',
    'is_applicable',
]

__version__ = '0.1.0'
