import unittest

from storefront.extensions import db
from storefront.models import Category, Product
from tests.base import StorefrontTestCase


def product_body(category_id, slug="mobile-legends", variants=None, **extra):
    body = {
        "name": "Mobile Legends",
        "slug": slug,
        "category_id": category_id,
        "image": "https://ik.imagekit.io/shop/ml.png",
        "user_form_fields": [
            {"type": "text", "name": "player_id", "label": "Player ID"},
            {"type": "select", "name": "server", "label": "Server", "options": ["asia", "eu"]},
        ],
        "variants": variants if variants is not None else [
            {"name": "86 Diamonds", "price": 120},
            {"name": "172 Diamonds", "price": 230},
        ],
    }
    body.update(extra)
    return body


class TestAdminCatalog(StorefrontTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.headers = self.headers_for(self.admin)

    def create_category(self, slug="games"):
        resp = self.client.post(
            "/api/admin/categories", json={"name": "Games", "slug": slug}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 201, resp.get_json())
        return resp.get_json()["data"]

    def test_category_slug_conflict(self):
        self.create_category()
        resp = self.client.post(
            "/api/admin/categories", json={"name": "Other", "slug": "games"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["error"], "Category with this slug already exists")
        self.assertEqual(Category.query.count(), 1)

    def test_category_slug_format(self):
        resp = self.client.post(
            "/api/admin/categories", json={"name": "Games", "slug": "Games!"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)

    def test_update_category_into_taken_slug(self):
        self.create_category("games")
        other = self.create_category("apps")
        resp = self.client.put(
            f"/api/admin/categories/{other['id']}",
            json={"name": "Apps", "slug": "games"},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(db.session.get(Category, other["id"]).slug, "apps")

    def test_create_product_with_variants(self):
        category = self.create_category()
        resp = self.client.post(
            "/api/admin/products", json=product_body(category["id"]), headers=self.headers
        )
        self.assertEqual(resp.status_code, 201, resp.get_json())
        data = resp.get_json()["data"]
        self.assertEqual([v["name"] for v in data["variants"]], ["86 Diamonds", "172 Diamonds"])
        self.assertEqual([v["sort_order"] for v in data["variants"]], [0, 1])
        self.assertEqual(data["user_form_fields"][1]["options"], ["asia", "eu"])

    def test_product_requires_variants(self):
        category = self.create_category()
        resp = self.client.post(
            "/api/admin/products", json=product_body(category["id"], variants=[]), headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(Product.query.count(), 0)

    def test_variant_price_must_be_positive_integer(self):
        category = self.create_category()
        for price in (0, -5, 10.5, "100"):
            resp = self.client.post(
                "/api/admin/products",
                json=product_body(category["id"], variants=[{"name": "x", "price": price}]),
                headers=self.headers,
            )
            self.assertEqual(resp.status_code, 400, price)

    def test_product_slug_conflict(self):
        category = self.create_category()
        self.client.post("/api/admin/products", json=product_body(category["id"]), headers=self.headers)
        resp = self.client.post(
            "/api/admin/products", json=product_body(category["id"]), headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["error"], "Product with this slug already exists")

    def test_update_product_replaces_variants(self):
        category = self.create_category()
        created = self.client.post(
            "/api/admin/products", json=product_body(category["id"]), headers=self.headers
        ).get_json()["data"]

        resp = self.client.put(
            f"/api/admin/products/{created['id']}",
            json=product_body(category["id"], variants=[{"name": "Weekly Pass", "price": 200}]),
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        variants = resp.get_json()["data"]["variants"]
        self.assertEqual(len(variants), 1)
        self.assertEqual(variants[0]["price"], 200)

    def test_delete_category_with_products(self):
        category, _, _ = self.make_catalog()
        resp = self.client.delete(f"/api/admin/categories/{category.id}", headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["error"], "Cannot delete category with 1 products")

    def test_delete_product_with_orders(self):
        _, product, variant = self.make_catalog()
        self.place_order(self.make_user(), product, variant)
        resp = self.client.delete(f"/api/admin/products/{product.id}", headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["error"], "Cannot delete product with 1 orders")

    def test_delete_empty_category(self):
        category = self.create_category()
        resp = self.client.delete(f"/api/admin/categories/{category['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Category.query.count(), 0)

    def test_admin_only(self):
        resp = self.client.get("/api/admin/categories")
        self.assertEqual(resp.status_code, 401)

        user = self.make_user()
        resp = self.client.get("/api/admin/categories", headers=self.headers_for(user))
        self.assertEqual(resp.status_code, 403)


class TestPublicCatalog(StorefrontTestCase):
    def test_inactive_products_are_hidden(self):
        category, product, _ = self.make_catalog(product_active=False)

        resp = self.client.get("/api/products")
        self.assertEqual(resp.get_json()["data"], [])

        resp = self.client.get(f"/api/products/{product.slug}")
        self.assertEqual(resp.status_code, 404)

    def test_inactive_variants_are_hidden(self):
        _, product, variant = self.make_catalog()
        variant.is_active = False
        product.variants.append(type(variant)(name="200", price=190, sort_order=1))
        db.session.commit()

        resp = self.client.get(f"/api/products/{product.slug}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([v["name"] for v in resp.get_json()["data"]["variants"]], ["200"])

    def test_category_page(self):
        category, product, _ = self.make_catalog()
        resp = self.client.get("/api/categories/games")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["data"]["products"][0]["slug"], "x")

        resp = self.client.get("/api/categories/nope")
        self.assertEqual(resp.status_code, 404)

    def test_products_filtered_by_category(self):
        category, _, _ = self.make_catalog()
        resp = self.client.get(f"/api/products?category_id={category.id}")
        self.assertEqual(len(resp.get_json()["data"]), 1)
        resp = self.client.get("/api/products?category_id=other")
        self.assertEqual(resp.get_json()["data"], [])


if __name__ == "__main__":
    unittest.main()
