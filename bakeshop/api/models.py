"""
Pydantic models for coupon service requests and responses.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional

from bakeshop.coupons.models import CartProduct


class ValidateCouponBody(BaseModel):
    """
    Lenient body for POST /api/coupons/validate.

    Fields are checked by the route so that missing or malformed values answer
    with the storefront's {message} payload instead of a schema error.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: Optional[str] = Field(default=None, description="Coupon code as typed")
    cart_total: Any = Field(default=None, alias="cartTotal", description="Pre-discount subtotal")
    products: Optional[List[CartProduct]] = Field(default=None, description="Cart lines")


class RedeemCouponBody(ValidateCouponBody):
    """Body for POST /api/coupons/apply: a validation body plus the order being paid."""
    order_id: Optional[str] = Field(default=None, alias="orderId", description="Order the coupon is redeemed on")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""
    status: str
    coupons_loaded: int
