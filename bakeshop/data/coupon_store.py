"""
In-memory coupon directory backing the coupon service.

Coupons are keyed by their upper-case code. Records are seeded from the
`coupons:` list in the YAML config; there is no persistence. Redemptions
update usageCount and usedBy on the stored record.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bakeshop.coupons.models import CouponSpec, CouponUsage, normalize_code
from bakeshop.utils.logger import get_logger

logger = get_logger("data.coupon_store")


class CouponStoreError(RuntimeError):
    """Raised when a coupon cannot be stored or redeemed."""


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_live(coupon: CouponSpec, now: Optional[datetime] = None) -> bool:
    """Active and inside its validity window (bounds inclusive, open when unset)."""
    if not coupon.is_active:
        return False
    now = _as_utc(now or datetime.now(timezone.utc))
    if coupon.valid_from is not None and _as_utc(coupon.valid_from) > now:
        return False
    if coupon.valid_until is not None and _as_utc(coupon.valid_until) < now:
        return False
    return True


class CouponDirectory:
    """Dictionary of CouponSpec by code."""

    def __init__(self, coupons: Optional[Iterable[CouponSpec]] = None):
        self._coupons: Dict[str, CouponSpec] = {}
        self._lock = threading.Lock()
        for coupon in coupons or []:
            self.add(coupon)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "CouponDirectory":
        """Build a directory from backend-shaped dicts (camelCase keys)."""
        directory = cls()
        for record in records:
            directory.add(CouponSpec.model_validate(record))
        logger.info("Loaded %d coupons", len(directory))
        return directory

    def __len__(self) -> int:
        return len(self._coupons)

    def __contains__(self, code: str) -> bool:
        return normalize_code(code) in self._coupons

    def add(self, coupon: CouponSpec) -> CouponSpec:
        if coupon.code in self._coupons:
            raise CouponStoreError("Coupon code already exists")
        self._coupons[coupon.code] = coupon
        return coupon

    def get(self, code: str) -> Optional[CouponSpec]:
        return self._coupons.get(normalize_code(code))

    def get_live(self, code: str, now: Optional[datetime] = None) -> Optional[CouponSpec]:
        """Coupon for code if it is active and currently valid, else None."""
        coupon = self.get(code)
        if coupon is None or not is_live(coupon, now):
            return None
        return coupon

    def live(self, now: Optional[datetime] = None) -> List[CouponSpec]:
        return [c for c in self._coupons.values() if is_live(c, now)]

    def record_usage(
        self,
        code: str,
        user_id: str,
        order_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CouponSpec:
        """
        Count one redemption of a coupon by a user.

        Limits are re-checked under the directory lock so two concurrent
        redemptions cannot both take the last use.

        Raises:
            CouponStoreError: unknown code, or a usage limit already reached.
        """
        with self._lock:
            coupon = self.get(code)
            if coupon is None:
                raise CouponStoreError("Coupon not found")
            if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
                raise CouponStoreError("Coupon usage limit has been reached")
            if coupon.per_user_limit is not None:
                used = sum(1 for usage in coupon.used_by if usage.user == user_id)
                if used >= coupon.per_user_limit:
                    raise CouponStoreError(
                        f"You've already used this coupon {used} times (limit: {coupon.per_user_limit})"
                    )

            coupon.usage_count += 1
            coupon.used_by.append(CouponUsage(
                user=user_id,
                used_at=_as_utc(now or datetime.now(timezone.utc)),
                order_id=order_id,
            ))
        logger.info("Coupon %s redeemed by %s (%d uses)", coupon.code, user_id, coupon.usage_count)
        return coupon

    def clear(self) -> None:
        self._coupons.clear()
