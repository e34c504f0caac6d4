"""
Coupon schemas shared by the coupon client and the coupon service.

Wire format is the storefront backend's camelCase JSON; attributes are
snake_case with camelCase aliases. Records may be built from either form.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bakeshop.pricing.discount import DiscountType


def normalize_code(code: str) -> str:
    """Coupon codes compare case-insensitively and are stored upper-case."""
    return code.strip().upper()


class ApplicableTo(str, Enum):
    ALL = "all"
    CATEGORY = "category"
    PRODUCT = "product"
    USER = "user"


class CouponUsage(BaseModel):
    """One redemption of a coupon."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user: str = Field(..., description="User ID that redeemed the coupon")
    used_at: Optional[datetime] = Field(None, alias="usedAt")
    order_id: Optional[str] = Field(None, alias="orderId")


class CouponSpec(BaseModel):
    """A coupon as published by the backend. Read-only to the discount engine."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(None, alias="_id", description="Backend record ID")
    code: str = Field(..., min_length=1, description="Coupon code (upper-case)")
    description: str = Field("", description="Human-readable description")
    discount_type: DiscountType = Field(DiscountType.PERCENTAGE, alias="discountType")
    discount_amount: float = Field(..., alias="discountAmount", ge=0,
                                   description="Percentage points or currency amount")
    maximum_discount: Optional[float] = Field(None, alias="maximumDiscount", ge=0,
                                              description="Cap for percentage coupons")
    minimum_purchase: float = Field(0, alias="minimumPurchase", ge=0)

    valid_from: Optional[datetime] = Field(None, alias="validFrom")
    valid_until: Optional[datetime] = Field(None, alias="validUntil")
    is_active: bool = Field(True, alias="isActive")

    applicable_to: ApplicableTo = Field(ApplicableTo.ALL, alias="applicableTo")
    applicable_products: List[str] = Field(default_factory=list, alias="applicableProducts")
    applicable_categories: List[str] = Field(default_factory=list, alias="applicableCategories")
    applicable_users: List[str] = Field(default_factory=list, alias="applicableUsers")

    usage_limit: Optional[int] = Field(None, alias="usageLimit", ge=0)
    usage_count: int = Field(0, alias="usageCount", ge=0)
    per_user_limit: Optional[int] = Field(None, alias="perUserLimit", ge=0)
    used_by: List[CouponUsage] = Field(default_factory=list, alias="usedBy")

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v: str) -> str:
        return normalize_code(v)


class CartProduct(BaseModel):
    """Cart line sent with a validation request (for product-specific coupons)."""
    model_config = ConfigDict(extra="allow")

    product: str = Field(..., description="Product ID")
    quantity: int = Field(1, ge=1)


class ValidateCouponRequest(BaseModel):
    """Body of POST /api/coupons/validate."""
    model_config = ConfigDict(populate_by_name=True)

    code: str
    cart_total: float = Field(..., alias="cartTotal", ge=0)
    products: Optional[List[CartProduct]] = None


class CouponValidation(BaseModel):
    """Authoritative validation result. The only discount allowed to price an order."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    valid: bool = True
    code: str
    discount_type: DiscountType = Field(..., alias="discountType")
    discount_value: float = Field(..., alias="discountValue",
                                  description="The coupon's configured amount")
    discount_amount: float = Field(..., alias="discountAmount",
                                   description="Discount computed for this cart")
    message: str = ""


class CouponErrorResponse(BaseModel):
    """Error payload; message is shown to the shopper verbatim."""
    message: str
