"""
API module for bakeshop.

FastAPI coupon service (see bakeshop.api.server).
"""
from bakeshop.api.models import HealthResponse, RedeemCouponBody, ValidateCouponBody

__all__ = [
    "HealthResponse",
    "RedeemCouponBody",
    "ValidateCouponBody",
]
