"""
Coupon HTTP client: checkout flow → storefront API.

Wraps the public coupon endpoints. Listing calls degrade to an empty list so
the coupon drawer never breaks the page; validation failures always reach the
caller, carrying the server's message unchanged.

Token storage and refresh belong to the caller; pass the current token in.
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from bakeshop.core.config import get_config
from bakeshop.coupons.models import (
    CartProduct,
    CouponSpec,
    CouponValidation,
    ValidateCouponRequest,
)
from bakeshop.utils.logger import get_logger

logger = get_logger("coupons.client")

ACTIVE_COUPONS_PATH = "/api/coupons/active"
VALIDATE_COUPON_PATH = "/api/coupons/validate"
APPLY_COUPON_PATH = "/api/coupons/apply"
PRODUCT_COUPONS_PATH = "/api/coupons/product-coupons"

GENERIC_VALIDATION_ERROR = "Failed to validate coupon. Please try again."


class CouponValidationError(Exception):
    """Coupon rejected (or validation unreachable). str(exc) is safe to show the shopper."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
        return data["message"]
    return None


class CouponApiClient:
    """Async client for /api/coupons/*. A fresh httpx.AsyncClient is opened per call."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        user_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = get_config()
        self.base_url = (base_url or config.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.api_timeout
        self.token = token
        self.user_id = user_id
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self._headers(),
            transport=self._transport,
        ) as client:
            resp = await client.request(method, path, **kwargs)
        if resp.status_code == 401:
            logger.warning("coupon_client: %s %s unauthorized; token missing or expired", method, path)
        return resp

    async def _get_coupon_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[CouponSpec]:
        try:
            resp = await self._request("GET", path, params=params)
            resp.raise_for_status()
            records = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("coupon_client: GET %s failed: %s", path, e)
            return []

        if not isinstance(records, list):
            logger.error("coupon_client: GET %s returned %s, expected a list", path, type(records).__name__)
            return []

        coupons: List[CouponSpec] = []
        for record in records:
            try:
                coupons.append(CouponSpec.model_validate(record))
            except ValidationError as e:
                logger.warning("coupon_client: skipping malformed coupon %r: %s",
                               record.get("code") if isinstance(record, dict) else record, e)
        return coupons

    async def fetch_active_coupons(self) -> List[CouponSpec]:
        """Coupons currently offered to shoppers. Empty list on any failure."""
        return await self._get_coupon_list(ACTIVE_COUPONS_PATH)

    async def get_product_coupons(self, product_id: str, category_id: Optional[str] = None) -> List[CouponSpec]:
        """Coupons usable on a product page. Empty list on any failure."""
        params = {"productId": product_id}
        if category_id:
            params["categoryId"] = category_id
        return await self._get_coupon_list(PRODUCT_COUPONS_PATH, params=params)

    async def validate_coupon(
        self,
        code: str,
        cart_total: float,
        products: Optional[Sequence[Any]] = None,
    ) -> CouponValidation:
        """
        Ask the server for the authoritative discount on this cart.

        Args:
            code: Coupon code as typed by the shopper.
            cart_total: Pre-discount subtotal.
            products: Optional cart lines ({"product": id, "quantity": n} or CartProduct).

        Raises:
            CouponValidationError: with the server's message, or a generic one when
                the server gave none (timeouts, network errors, unparseable replies).
        """
        payload = self._validation_payload(code, cart_total, products)
        return await self._post_validation(VALIDATE_COUPON_PATH, code, payload)

    async def redeem_coupon(
        self,
        code: str,
        cart_total: float,
        products: Optional[Sequence[Any]] = None,
        order_id: Optional[str] = None,
    ) -> CouponValidation:
        """
        Redeem a coupon on an order. Same errors as validate_coupon(); the
        service also requires a signed-in shopper (user_id).
        """
        payload = self._validation_payload(code, cart_total, products)
        if order_id is not None:
            payload["orderId"] = order_id
        return await self._post_validation(APPLY_COUPON_PATH, code, payload)

    @staticmethod
    def _validation_payload(code: str, cart_total: float, products: Optional[Sequence[Any]]) -> Dict[str, Any]:
        lines = None
        if products is not None:
            lines = [p if isinstance(p, CartProduct) else CartProduct.model_validate(p) for p in products]
        body = ValidateCouponRequest(code=code, cart_total=cart_total, products=lines)
        return body.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def _post_validation(self, path: str, code: str, payload: Dict[str, Any]) -> CouponValidation:
        try:
            resp = await self._request("POST", path, json=payload)
        except httpx.RequestError as e:
            logger.error("coupon_client: POST %s for %s failed: %s", path, code, e)
            raise CouponValidationError(GENERIC_VALIDATION_ERROR) from e

        if resp.is_error:
            message = _server_message(resp)
            logger.info("coupon_client: %s rejected at %s, HTTP %s: %s", code, path, resp.status_code, message)
            raise CouponValidationError(message or GENERIC_VALIDATION_ERROR, status_code=resp.status_code)

        try:
            return CouponValidation.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            logger.error("coupon_client: %s unexpected body from %s: %s", code, path, resp.text[:500])
            raise CouponValidationError(GENERIC_VALIDATION_ERROR, status_code=resp.status_code) from e
