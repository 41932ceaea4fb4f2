import re
import unittest

from storefront.extensions import db
from storefront.models import Order, OrderItem
from storefront.services import order_service
from tests.base import StorefrontTestCase


class TestOrderCreation(StorefrontTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.category, self.product, self.variant = self.make_catalog(price=100)

    def test_games_x_100_order(self):
        data = self.place_order(self.user, self.product, self.variant)

        self.assertEqual(data["total_amount"], 100)
        self.assertEqual(data["status"], "PENDING")
        self.assertEqual(data["payment_status"], "PENDING")
        self.assertEqual(data["payment_provider"], "uddoktapay")
        self.assertTrue(data["payment_created"])
        self.assertEqual(data["payment_url"], "https://sandbox.uddoktapay.com/pay/abc123")
        self.assertRegex(data["order_number"], r"^ORD-[0-9A-Z]+-[0-9A-F]{8}$")

        order = db.session.get(Order, data["order_id"])
        self.assertEqual(order.email, "player@example.com")
        self.assertEqual(len(order.items), 1)
        self.assertEqual(order.items[0].price, 100)
        self.assertEqual(order.items[0].variant_name, "100")

        sent = self.gateway.created[0]
        self.assertEqual(sent["order_id"], order.id)
        self.assertEqual(sent["amount"], 100)
        self.assertEqual(sent["customer_email"], "player@example.com")

        confirmations = self.sender.of_kind("order_confirmation")
        self.assertEqual(len(confirmations), 1)
        self.assertIn(order.order_number, confirmations[0].subject)

    def test_unauthenticated_order_writes_nothing(self):
        resp = self.client.post("/api/orders", json={
            "product_id": self.product.id,
            "variant_id": self.variant.id,
        })
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()["error"], order_service.LOGIN_REQUIRED)
        self.assertEqual(Order.query.count(), 0)
        self.assertEqual(OrderItem.query.count(), 0)

    def test_form_data_is_sanitized(self):
        data = self.place_order(self.user, self.product, self.variant, form_data={
            "player-id!": "<script>123</script>",
            "server": "  asia  ",
        })
        order = db.session.get(Order, data["order_id"])
        self.assertEqual(order.user_form_data, {"player_id_": "script123/script", "server": "asia"})

    def test_form_data_limits(self):
        too_many = {f"field{i}": "x" for i in range(21)}
        resp = self.client.post("/api/orders", json={
            "product_id": self.product.id,
            "variant_id": self.variant.id,
            "user_form_data": too_many,
        }, headers=self.headers_for(self.user))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(Order.query.count(), 0)

    def test_price_is_snapshotted(self):
        data = self.place_order(self.user, self.product, self.variant)

        self.variant.price = 250
        db.session.commit()

        order = db.session.get(Order, data["order_id"])
        self.assertEqual(order.total_amount, 100)
        self.assertEqual(order.items[0].price, 100)

    def test_payment_failure_keeps_order(self):
        self.gateway.create_result = {"success": False, "error": "Gateway down"}

        data = self.place_order(self.user, self.product, self.variant)

        self.assertFalse(data["payment_created"])
        self.assertIsNone(data["payment_url"])
        self.assertEqual(Order.query.count(), 1)
        self.assertEqual(len(self.sender.of_kind("order_confirmation")), 1)

    def test_missing_gateway_keeps_order(self):
        self.app.extensions["payment_gateway"] = None
        data = self.place_order(self.user, self.product, self.variant)
        self.assertFalse(data["payment_created"])
        self.assertEqual(Order.query.count(), 1)

    def test_inactive_variant_is_rejected(self):
        self.variant.is_active = False
        db.session.commit()
        resp = self.client.post("/api/orders", json={
            "product_id": self.product.id,
            "variant_id": self.variant.id,
        }, headers=self.headers_for(self.user))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(Order.query.count(), 0)

    def test_inactive_product_is_rejected(self):
        self.product.is_active = False
        db.session.commit()
        resp = self.client.post("/api/orders", json={
            "product_id": self.product.id,
            "variant_id": self.variant.id,
        }, headers=self.headers_for(self.user))
        self.assertEqual(resp.status_code, 404)

    def test_order_numbers_are_unique(self):
        numbers = {order_service.generate_order_number() for _ in range(200)}
        self.assertEqual(len(numbers), 200)
        for number in numbers:
            self.assertTrue(re.match(r"^ORD-[0-9A-Z]+-[0-9A-F]{8}$", number))


class TestOrderHistory(StorefrontTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.other = self.make_user(email="other@example.com")
        _, self.product, self.variant = self.make_catalog()
        self.order = self.place_order(self.user, self.product, self.variant)

    def test_my_orders(self):
        resp = self.client.get("/api/orders", headers=self.headers_for(self.user))
        self.assertEqual(resp.status_code, 200)
        orders = resp.get_json()["data"]
        self.assertEqual(len(orders), 1)
        self.assertEqual(orders[0]["order_number"], self.order["order_number"])

        resp = self.client.get("/api/orders", headers=self.headers_for(self.other))
        self.assertEqual(resp.get_json()["data"], [])

    def test_order_by_number_owner_only(self):
        url = f"/api/orders/{self.order['order_number']}"

        resp = self.client.get(url, headers=self.headers_for(self.user))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["data"]["total_amount"], 100)

        resp = self.client.get(url, headers=self.headers_for(self.other))
        self.assertEqual(resp.status_code, 403)

        resp = self.client.get("/api/orders/ORD-NOPE-00000000", headers=self.headers_for(self.user))
        self.assertEqual(resp.status_code, 404)

    def test_recreate_payment_for_own_order(self):
        resp = self.client.post(
            "/api/payments/create",
            json={"order_id": self.order["order_id"]},
            headers=self.headers_for(self.other),
        )
        self.assertEqual(resp.status_code, 403)

        resp = self.client.post(
            "/api/payments/create",
            json={"order_id": self.order["order_id"]},
            headers=self.headers_for(self.user),
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["payment_url"], "https://sandbox.uddoktapay.com/pay/abc123")
        self.assertEqual(len(self.gateway.created), 2)


if __name__ == "__main__":
    unittest.main()
