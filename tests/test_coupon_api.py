"""
Coupon service HTTP routes via FastAPI TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from bakeshop.api.server import create_app
from bakeshop.core.config import BakeshopConfig

from conftest import make_coupon


@pytest.fixture
def client(directory):
    app = create_app(config=BakeshopConfig(), directory=directory)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


class TestHealth:
    def test_health(self, client, directory):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "coupons_loaded": len(directory)}


class TestActiveCoupons:
    def test_returns_camel_case_records(self, client):
        resp = client.get("/api/coupons/active")
        assert resp.status_code == 200
        records = {c["code"]: c for c in resp.json()}
        assert records["SWEET10"]["discountType"] == "percentage"
        assert records["SWEET10"]["maximumDiscount"] == 200
        assert "VIP50" not in records
        assert "OLD5" not in records

    def test_user_header_shows_targeted_coupons(self, client):
        resp = client.get("/api/coupons/active", headers={"X-User-Id": "user-vip"})
        assert "VIP50" in {c["code"] for c in resp.json()}


class TestValidateRoute:
    def test_success(self, client):
        resp = client.post("/api/coupons/validate", json={"code": "sweet10", "cartTotal": 500})
        assert resp.status_code == 200
        assert resp.json() == {
            "valid": True,
            "code": "SWEET10",
            "discountType": "percentage",
            "discountValue": 10.0,
            "discountAmount": 50.0,
            "message": "Coupon applied: 10% off cakes",
        }

    def test_numeric_string_total(self, client):
        resp = client.post("/api/coupons/validate", json={"code": "SWEET10", "cartTotal": "250"})
        assert resp.json()["discountAmount"] == 25.0

    def test_missing_code(self, client):
        resp = client.post("/api/coupons/validate", json={"cartTotal": 500})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Coupon code is required"}

    def test_missing_total(self, client):
        resp = client.post("/api/coupons/validate", json={"code": "SWEET10"})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Cart total is required"}

    @pytest.mark.parametrize("total", ["lots", -1, True])
    def test_bad_total(self, client, total):
        resp = client.post("/api/coupons/validate", json={"code": "SWEET10", "cartTotal": total})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Cart total must be a number"}

    def test_unknown_code_404(self, client):
        resp = client.post("/api/coupons/validate", json={"code": "NOPE", "cartTotal": 500})
        assert resp.status_code == 404
        assert resp.json() == {"message": "Invalid or expired coupon code"}

    def test_user_coupon_needs_login(self, client):
        resp = client.post("/api/coupons/validate", json={"code": "VIP50", "cartTotal": 500})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Login required to use this coupon"

    def test_user_coupon_with_header(self, client):
        resp = client.post(
            "/api/coupons/validate",
            json={"code": "VIP50", "cartTotal": 500},
            headers={"X-User-Id": "user-vip"},
        )
        assert resp.status_code == 200
        assert resp.json()["discountAmount"] == 50.0

    def test_products_checked(self, client):
        resp = client.post("/api/coupons/validate", json={
            "code": "CUPCAKE20",
            "cartTotal": 300,
            "products": [{"product": "cupcake-2", "quantity": 3, "price": 100}],
        })
        assert resp.status_code == 200
        assert resp.json()["discountAmount"] == 60.0

    def test_malformed_products(self, client):
        resp = client.post("/api/coupons/validate", json={
            "code": "CUPCAKE20", "cartTotal": 300, "products": [{"quantity": 0}],
        })
        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid request body"}


class TestApplyRoute:
    def test_redeem_counts_use(self, client, directory):
        resp = client.post(
            "/api/coupons/apply",
            json={"code": "sweet10", "cartTotal": 500, "orderId": "order-42"},
            headers={"X-User-Id": "user-1"},
        )
        assert resp.status_code == 200
        assert resp.json()["discountAmount"] == 50.0
        assert resp.json()["message"] == "Coupon applied: 50.00 discount"
        coupon = directory.get("SWEET10")
        assert coupon.usage_count == 1
        assert coupon.used_by[0].order_id == "order-42"

    def test_last_use_then_limit_reached(self, client, directory):
        directory.add(make_coupon(code="LASTONE", usageLimit=1))
        first = client.post("/api/coupons/apply", json={"code": "LASTONE", "cartTotal": 500},
                            headers={"X-User-Id": "user-1"})
        assert first.status_code == 200
        second = client.post("/api/coupons/apply", json={"code": "LASTONE", "cartTotal": 500},
                             headers={"X-User-Id": "user-2"})
        assert second.status_code == 400
        assert second.json() == {"message": "Coupon usage limit has been reached"}

    def test_requires_user(self, client):
        resp = client.post("/api/coupons/apply", json={"code": "SWEET10", "cartTotal": 500})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Login required to redeem a coupon"}

    def test_missing_total(self, client):
        resp = client.post("/api/coupons/apply", json={"code": "SWEET10"}, headers={"X-User-Id": "user-1"})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Cart total is required"}


class TestProductCouponsRoute:

    def test_requires_id(self, client):
        resp = client.get("/api/coupons/product-coupons")
        assert resp.status_code == 400
        assert resp.json() == {"message": "Product ID or Category ID is required"}

    def test_by_category(self, client):
        resp = client.get("/api/coupons/product-coupons", params={"categoryId": "birthday"})
        codes = {c["code"] for c in resp.json()}
        assert "BDAY25" in codes
        assert "SWEET10" in codes
        assert "CUPCAKE20" not in codes
