import uuid
from datetime import datetime, timezone

from storefront.extensions import db


def _now():
    return datetime.now(timezone.utc)


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    products = db.relationship("Product", backref="category", lazy=True)

    def to_dict(self, product_count=None):
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if product_count is not None:
            data["product_count"] = product_count
        return data


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    image = db.Column(db.Text)
    category_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    # [{type, name, label, placeholder, required, options}]
    user_form_fields = db.Column(db.JSON)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    variants = db.relationship(
        "ProductVariant",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProductVariant.sort_order",
    )

    def to_dict(self, active_variants_only=False, order_count=None):
        variants = [v for v in self.variants if v.is_active] if active_variants_only else self.variants
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "image": self.image,
            "category_id": self.category_id,
            "category": {
                "id": self.category.id,
                "name": self.category.name,
                "slug": self.category.slug,
            } if self.category else None,
            "is_active": self.is_active,
            "user_form_fields": self.user_form_fields or [],
            "variants": [v.to_dict() for v in variants],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if order_count is not None:
            data["order_count"] = order_count
        return data


class ProductVariant(db.Model):
    __tablename__ = "product_variants"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = db.Column(
        db.String(36), db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Integer, nullable=False)  # whole BDT
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
        }
