"""
FastAPI coupon service.

Serves the public coupon endpoints the checkout client talks to, pricing
every validation with bakeshop.pricing so client previews and server figures
come from one implementation.

Usage:
    python -m bakeshop.api.server
    # or
    uvicorn bakeshop.api.server:app --reload --port 5000
"""
import math
from typing import List, Optional

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bakeshop.api.models import HealthResponse, RedeemCouponBody, ValidateCouponBody
from bakeshop.core.config import BakeshopConfig, get_config
from bakeshop.coupons.models import CouponSpec, CouponValidation
from bakeshop.coupons.validator import (
    CouponRejected,
    list_active_coupons,
    list_product_coupons,
    redeem_coupon,
    validate_coupon,
)
from bakeshop.data.coupon_store import CouponDirectory
from bakeshop.pricing.discount import CurrencyFormat
from bakeshop.utils.logger import get_logger, set_module_levels

logger = get_logger("api.server")


def _parse_cart_total(value) -> float:
    """Accept numbers and numeric strings, like the storefront's isNumeric check."""
    if value is None or value == "":
        raise CouponRejected("Cart total is required", 400)
    if isinstance(value, bool):
        raise CouponRejected("Cart total must be a number", 400)
    try:
        total = float(value)
    except (TypeError, ValueError):
        raise CouponRejected("Cart total must be a number", 400) from None
    if not math.isfinite(total) or total < 0:
        raise CouponRejected("Cart total must be a number", 400)
    return total


def create_app(
    config: Optional[BakeshopConfig] = None,
    directory: Optional[CouponDirectory] = None,
) -> FastAPI:
    """Build the coupon service. The directory defaults to the coupons listed in config."""
    config = config or get_config()
    set_module_levels(config.log_levels)
    if directory is None:
        directory = CouponDirectory.from_records(config.coupons)
    currency = CurrencyFormat(symbol=config.currency_symbol, decimal_places=config.currency_decimal_places)

    app = FastAPI(
        title="Bakeshop Coupon Service",
        description="Coupon listing and authoritative coupon validation",
        version="1.0.0",
    )
    app.state.directory = directory

    @app.exception_handler(CouponRejected)
    async def coupon_rejected_handler(request: Request, exc: CouponRejected):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("rejected malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        return HealthResponse(status="healthy", coupons_loaded=len(directory))

    @app.get("/api/coupons/active", response_model=List[CouponSpec], response_model_by_alias=True)
    def active_coupons(x_user_id: Optional[str] = Header(default=None)):
        """Live coupons, without user-targeted ones for anonymous shoppers."""
        return list_active_coupons(directory, user_id=x_user_id)

    @app.post("/api/coupons/validate", response_model=CouponValidation, response_model_by_alias=True)
    def validate(body: ValidateCouponBody, x_user_id: Optional[str] = Header(default=None)):
        """Validate a coupon for a cart and return the authoritative discount."""
        if not body.code:
            raise CouponRejected("Coupon code is required", 400)
        cart_total = _parse_cart_total(body.cart_total)
        return validate_coupon(
            directory,
            body.code,
            cart_total,
            products=body.products,
            user_id=x_user_id,
            currency=currency,
        )

    @app.post("/api/coupons/apply", response_model=CouponValidation, response_model_by_alias=True)
    def apply_coupon(body: RedeemCouponBody, x_user_id: Optional[str] = Header(default=None)):
        """Redeem a coupon on an order; counts toward the coupon's usage limits."""
        if not body.code:
            raise CouponRejected("Coupon code is required", 400)
        cart_total = _parse_cart_total(body.cart_total)
        return redeem_coupon(
            directory,
            body.code,
            cart_total,
            products=body.products,
            user_id=x_user_id,
            order_id=body.order_id,
            currency=currency,
        )

    @app.get("/api/coupons/product-coupons", response_model=List[CouponSpec], response_model_by_alias=True)
    def product_coupons(productId: Optional[str] = None, categoryId: Optional[str] = None):
        """Coupons usable on a product page."""
        return list_product_coupons(directory, product_id=productId, category_id=categoryId)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bakeshop.api.server:app", host="0.0.0.0", port=5000, reload=True)
