"""Pytest configuration for bakeshop tests."""

import logging
from datetime import datetime, timezone

import pytest

from bakeshop.core import config as config_module
from bakeshop.core.config import BakeshopConfig
from bakeshop.coupons.models import CouponSpec
from bakeshop.data.coupon_store import CouponDirectory


# ---------------------------------------------------------------------------
# Config isolation: get_config() caches a module-level instance loaded from
# config/default.yaml and the environment.  Every test starts from plain
# defaults so BAKESHOP_* variables on the machine never leak in.
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function", autouse=True)
def _default_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", BakeshopConfig())
    yield


@pytest.fixture
def bakeshop_log(caplog):
    """caplog wired to the 'bakeshop' logger (which does not propagate to root)."""
    logger = logging.getLogger("bakeshop")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="bakeshop")
    yield caplog
    logger.removeHandler(caplog.handler)


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

WIDE_WINDOW = {
    "validFrom": "2000-01-01T00:00:00Z",
    "validUntil": "2100-01-01T00:00:00Z",
}


def make_coupon(**fields) -> CouponSpec:
    record = {
        "code": "SWEET10",
        "description": "10% off cakes",
        "discountType": "percentage",
        "discountAmount": 10,
        **WIDE_WINDOW,
    }
    record.update(fields)
    return CouponSpec.model_validate(record)


@pytest.fixture
def directory():
    """A small directory covering every targeting mode."""
    return CouponDirectory([
        make_coupon(code="SWEET10", discountAmount=10, maximumDiscount=200),
        make_coupon(code="FLAT150", description="Flat 150 off",
                    discountType="fixed", discountAmount=150, minimumPurchase=999),
        make_coupon(code="CUPCAKE20", description="20% off cupcakes", discountAmount=20,
                    applicableTo="product", applicableProducts=["cupcake-1", "cupcake-2"]),
        make_coupon(code="BDAY25", description="Birthday treat", discountAmount=25,
                    applicableTo="category", applicableCategories=["birthday"]),
        make_coupon(code="VIP50", description="VIP only", discountType="fixed", discountAmount=50,
                    applicableTo="user", applicableUsers=["user-vip"]),
        make_coupon(code="LIMITED", description="Almost gone", usageLimit=3, usageCount=3),
        make_coupon(code="ONCE", description="One per customer", perUserLimit=1,
                    usedBy=[{"user": "user-1", "orderId": "order-9"}]),
        make_coupon(code="OLD5", description="Expired", discountAmount=5,
                    validFrom="2020-01-01T00:00:00Z", validUntil="2020-12-31T00:00:00Z"),
        make_coupon(code="PAUSED", description="Switched off", isActive=False),
    ])
