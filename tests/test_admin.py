import unittest
from datetime import datetime, timedelta, timezone

from storefront.extensions import db
from storefront.models import Order, User
from storefront.services import analytics_service
from tests.base import StorefrontTestCase


class TestAdminOrders(StorefrontTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.headers = self.headers_for(self.admin)
        self.user = self.make_user()
        _, self.product, self.variant = self.make_catalog()
        self.order = self.place_order(self.user, self.product, self.variant)

    def test_list_and_filter(self):
        resp = self.client.get("/api/admin/orders", headers=self.headers)
        self.assertEqual(len(resp.get_json()["data"]), 1)

        resp = self.client.get("/api/admin/orders?payment_status=PAID", headers=self.headers)
        self.assertEqual(resp.get_json()["data"], [])

        resp = self.client.get("/api/admin/orders?search=player@", headers=self.headers)
        self.assertEqual(len(resp.get_json()["data"]), 1)

    def test_status_updates(self):
        url = f"/api/admin/orders/{self.order['order_id']}"
        resp = self.client.patch(f"{url}/status", json={"status": "COMPLETED"}, headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["data"]["status"], "COMPLETED")

        resp = self.client.patch(f"{url}/status", json={"status": "SHIPPED"}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)

        resp = self.client.patch(f"{url}/payment-status", json={"payment_status": "REFUNDED"}, headers=self.headers)
        self.assertEqual(resp.get_json()["data"]["payment_status"], "REFUNDED")

        resp = self.client.patch(f"{url}/notes", json={"notes": "  delivered manually "}, headers=self.headers)
        self.assertEqual(resp.get_json()["data"]["notes"], "delivered manually")

    def test_unknown_order(self):
        resp = self.client.patch(
            "/api/admin/orders/missing/status", json={"status": "COMPLETED"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 404)

    def test_csv_export(self):
        resp = self.client.get("/api/admin/orders/export", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.content_type.startswith("text/csv"))
        lines = resp.get_data(as_text=True).splitlines()
        self.assertTrue(lines[0].startswith('"Order Number","Date","Customer Email"'))
        self.assertIn(self.order["order_number"], lines[1])
        self.assertIn('"৳100"', lines[1])
        self.assertIn('"Player One"', lines[1])

    def test_non_admin_forbidden(self):
        resp = self.client.get("/api/admin/orders", headers=self.headers_for(self.user))
        self.assertEqual(resp.status_code, 403)


class TestAdminUsers(StorefrontTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.headers = self.headers_for(self.admin)

    def test_pagination(self):
        for i in range(12):
            self.make_user(email=f"player{i}@example.com", verified=i % 2 == 0)

        resp = self.client.get("/api/admin/users?page=2&limit=5", headers=self.headers)
        body = resp.get_json()
        self.assertEqual(len(body["users"]), 5)
        self.assertEqual(body["pagination"]["total"], 13)
        self.assertEqual(body["pagination"]["total_pages"], 3)
        self.assertTrue(body["pagination"]["has_more"])

        resp = self.client.get("/api/admin/users?role=admin", headers=self.headers)
        self.assertEqual([u["email"] for u in resp.get_json()["users"]], ["admin@example.com"])

        resp = self.client.get("/api/admin/users?email_verified=false", headers=self.headers)
        self.assertEqual(resp.get_json()["pagination"]["total"], 6)

    def test_set_admin_by_email(self):
        user = self.make_user()
        resp = self.client.post(
            "/api/admin/set-admin", json={"email": "player@example.com"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(db.session.get(User, user.id).is_admin)

        resp = self.client.post("/api/admin/set-admin", json={}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_role_and_verification(self):
        user = self.make_user(verified=False)
        resp = self.client.patch(f"/api/admin/users/{user.id}/role", json={"role": "root"}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)

        resp = self.client.patch(
            f"/api/admin/users/{user.id}/email-verified", json={"email_verified": True}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.get_json()["data"]["email_verified"])

    def test_ban_and_unban(self):
        user = self.make_user()
        resp = self.client.post(
            f"/api/admin/users/{user.id}/ban",
            json={"ban_reason": "fraud", "ban_expires_in": 3600},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        banned = db.session.get(User, user.id)
        self.assertTrue(banned.banned)
        self.assertIsNotNone(banned.ban_expires)

        resp = self.client.post(f"/api/admin/users/{user.id}/unban", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(db.session.get(User, user.id).banned)

    def test_cannot_ban_or_delete_self(self):
        resp = self.client.post(f"/api/admin/users/{self.admin.id}/ban", json={}, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        resp = self.client.delete(f"/api/admin/users/{self.admin.id}", headers=self.headers)
        self.assertEqual(resp.status_code, 400)

    def test_delete_user(self):
        user = self.make_user()
        _, product, variant = self.make_catalog()
        self.place_order(user, product, variant)

        resp = self.client.delete(f"/api/admin/users/{user.id}", headers=self.headers)
        self.assertEqual(resp.status_code, 400)

        other = self.make_user(email="other@example.com")
        resp = self.client.delete(f"/api/admin/users/{other.id}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(db.session.get(User, other.id))


class TestAnalytics(StorefrontTestCase):
    def test_revenue_counts_paid_orders_only(self):
        user = self.make_user()
        _, product, variant = self.make_catalog(price=100)
        paid = self.place_order(user, product, variant)
        self.place_order(user, product, variant)
        db.session.get(Order, paid["order_id"]).payment_status = "PAID"
        db.session.commit()

        data = analytics_service.get_analytics()
        self.assertEqual(data["revenue"]["total"], 100)
        self.assertEqual(data["revenue"]["this_month"], 100)
        self.assertEqual(data["orders"]["total"], 2)
        self.assertEqual(data["orders"]["paid"], 1)
        self.assertEqual(data["top_products"][0]["order_count"], 2)

    def test_growth_against_last_month(self):
        user = self.make_user()
        _, product, variant = self.make_catalog(price=100)
        now = datetime.now(timezone.utc)
        last_month = now.replace(day=1) - timedelta(days=2)
        for created_at in (now, now, last_month):
            order = db.session.get(Order, self.place_order(user, product, variant)["order_id"])
            order.payment_status = "PAID"
            order.created_at = created_at
        db.session.commit()

        revenue = analytics_service.get_analytics(now=now)["revenue"]
        self.assertEqual(revenue["this_month"], 200)
        self.assertEqual(revenue["last_month"], 100)
        self.assertEqual(revenue["growth"], 100)

    def test_dashboard_routes(self):
        admin = self.make_admin()
        resp = self.client.get("/api/admin/stats", headers=self.headers_for(admin))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["stats"]["total_users"], 1)

        resp = self.client.get("/api/admin/analytics", headers=self.headers_for(admin))
        self.assertEqual(resp.get_json()["data"]["revenue"]["total"], 0)


if __name__ == "__main__":
    unittest.main()
