"""
Coupon state for one shopper's cart.

Two figures are kept strictly apart:
  preview: computed locally from a CouponSpec, shown as a hint while the
    shopper browses coupons or before validation returns
  validation: returned by POST /api/coupons/validate; the only discount that
    may be used to price an order

When both exist for the same code and cart total and disagree, the server
figure wins. redeem() spends the validated coupon on an order.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bakeshop.core.config import get_config
from bakeshop.coupons.client import CouponApiClient, CouponValidationError
from bakeshop.coupons.models import CouponSpec, CouponValidation, normalize_code
from bakeshop.pricing.discount import (
    CurrencyFormat,
    InvalidDiscountInput,
    coupon_discount,
    coupon_label,
    is_applicable,
    round_money,
)
from bakeshop.utils.logger import get_logger

logger = get_logger("coupons.session")


@dataclass
class DiscountPreview:
    """Advisory view of a coupon against the current cart. Never used for pricing."""
    code: str
    description: str
    label: Optional[str]
    applicable: bool
    amount_needed: float                  # how much more to spend to qualify
    estimated_discount: Optional[float]   # None when the local calculation failed


def currency_from_config() -> CurrencyFormat:
    config = get_config()
    return CurrencyFormat(symbol=config.currency_symbol, decimal_places=config.currency_decimal_places)


def preview_coupon(
    coupon: CouponSpec,
    cart_total: float,
    currency: Optional[CurrencyFormat] = None,
) -> DiscountPreview:
    """Local estimate for one coupon. Errors are logged and reported as an empty estimate."""
    currency = currency or currency_from_config()
    try:
        applicable = is_applicable(coupon.minimum_purchase, cart_total)
        estimated = coupon_discount(coupon, cart_total, currency)
        label = coupon_label(coupon, currency)
    except (InvalidDiscountInput, ArithmeticError) as e:
        logger.warning("preview for %s unavailable: %s", coupon.code, e)
        return DiscountPreview(
            code=coupon.code,
            description=coupon.description,
            label=None,
            applicable=False,
            amount_needed=0.0,
            estimated_discount=None,
        )

    needed = 0.0 if applicable else round_money(coupon.minimum_purchase - cart_total, currency)
    return DiscountPreview(
        code=coupon.code,
        description=coupon.description,
        label=label,
        applicable=applicable,
        amount_needed=needed,
        estimated_discount=estimated,
    )


def rank_previews(previews: Iterable[DiscountPreview]) -> List[DiscountPreview]:
    """Applicable coupons first, then by estimated savings (largest first)."""
    return sorted(
        previews,
        key=lambda p: (not p.applicable, -(p.estimated_discount or 0.0), p.code),
    )


class CouponSession:
    """
    Applied-coupon state for a cart, mirroring the storefront's coupon slice.

    The session holds at most one authoritative validation. It is invalidated
    whenever the cart total it was computed for changes.
    """

    def __init__(self, client: Optional[CouponApiClient] = None, currency: Optional[CurrencyFormat] = None):
        self.client = client or CouponApiClient()
        self.currency = currency or currency_from_config()
        self.validation: Optional[CouponValidation] = None
        self.validated_total: Optional[float] = None
        self.error: Optional[str] = None
        self.loading = False
        # code -> (cart total the preview was computed for, preview)
        self._previews: Dict[str, Tuple[float, DiscountPreview]] = {}

    # ─── Advisory ────────────────────────────────────────────────────────────

    def preview(self, coupon: CouponSpec, cart_total: float) -> DiscountPreview:
        result = preview_coupon(coupon, cart_total, self.currency)
        self._previews[result.code] = (cart_total, result)
        return result

    def available_coupons(self, coupons: Iterable[CouponSpec], cart_total: float) -> List[DiscountPreview]:
        """Previews for the coupon drawer, best usable coupons first."""
        return rank_previews(self.preview(c, cart_total) for c in coupons)

    async def load_available_coupons(self, cart_total: float) -> List[DiscountPreview]:
        coupons = await self.client.fetch_active_coupons()
        return self.available_coupons(coupons, cart_total)

    # ─── Authoritative ───────────────────────────────────────────────────────

    async def apply(
        self,
        code: str,
        cart_total: float,
        products: Optional[Sequence[Any]] = None,
    ) -> CouponValidation:
        """
        Validate a code with the server and keep its result.

        On rejection the server's message is stored in self.error and the
        CouponValidationError is re-raised; any previously applied coupon is dropped.
        """
        self.loading = True
        self.error = None
        try:
            validation = await self.client.validate_coupon(code, cart_total, products)
        except CouponValidationError as e:
            self.validation = None
            self.validated_total = None
            self.error = e.message
            raise
        finally:
            self.loading = False

        self._check_drift(validation, cart_total)
        self.validation = validation
        self.validated_total = cart_total
        return validation

    async def redeem(
        self,
        order_id: Optional[str] = None,
        products: Optional[Sequence[Any]] = None,
    ) -> CouponValidation:
        """
        Redeem the applied coupon on an order, for the total it was validated on.

        The service re-checks the coupon and counts the use. On rejection the
        coupon is dropped, the message kept in self.error and the error re-raised.
        """
        if self.validation is None:
            raise CouponValidationError("No coupon applied")
        code, total = self.validation.code, self.validated_total
        self.loading = True
        self.error = None
        try:
            redeemed = await self.client.redeem_coupon(code, total, products, order_id)
        except CouponValidationError as e:
            self.remove()
            self.error = e.message
            raise
        finally:
            self.loading = False

        self.validation = redeemed
        return redeemed

    def _check_drift(self, validation: CouponValidation, cart_total: float) -> None:
        entry = self._previews.get(normalize_code(validation.code))
        if entry is None:
            return
        previewed_total, local = entry
        if previewed_total != cart_total or local.estimated_discount is None:
            return
        if abs(local.estimated_discount - validation.discount_amount) >= 10 ** -self.currency.decimal_places:
            logger.warning(
                "discount drift for %s on total %s: local %.2f, server %.2f; using server value",
                validation.code, cart_total, local.estimated_discount, validation.discount_amount,
            )

    def remove(self) -> None:
        self.validation = None
        self.validated_total = None
        self.error = None

    def cart_changed(self, cart_total: float) -> bool:
        """
        Drop the applied coupon if it was validated for a different total.

        Returns True if the coupon was dropped and must be re-validated.
        """
        if self.validation is None or self.validated_total == cart_total:
            return False
        logger.info("cart total changed %s -> %s; coupon %s needs re-validation",
                    self.validated_total, cart_total, self.validation.code)
        self.remove()
        return True

    @property
    def coupon_code(self) -> Optional[str]:
        return self.validation.code if self.validation else None

    @property
    def discount(self) -> float:
        """Authoritative discount, or 0.0 when no coupon is applied."""
        return self.validation.discount_amount if self.validation else 0.0

    def order_total(self, subtotal: float, tax: float = 0.0, shipping: float = 0.0) -> float:
        return round_money(subtotal + tax + shipping - self.discount, self.currency)
