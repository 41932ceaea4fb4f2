"""
Order Model: orders, their line items, and payment reconciliation claims.
payment_status: PENDING | PAID | FAILED | REFUNDED
status:         PENDING | PROCESSING | COMPLETED | FAILED | CANCELLED
"""

import uuid
from datetime import datetime, timezone

from storefront.extensions import db

PAYMENT_STATUSES = ("PENDING", "PAID", "FAILED", "REFUNDED")
ORDER_STATUSES = ("PENDING", "PROCESSING", "COMPLETED", "FAILED", "CANCELLED")


def _now():
    return datetime.now(timezone.utc)


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = db.Column(db.String(40), unique=True, nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)
    user_form_data = db.Column(db.JSON, nullable=False, default=dict)
    payment_provider = db.Column(db.String(50), nullable=False, default="uddoktapay")
    payment_status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name="payment_status"), nullable=False, default="PENDING"
    )
    status = db.Column(db.Enum(*ORDER_STATUSES, name="order_status"), nullable=False, default="PENDING")
    total_amount = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    product = db.relationship("Product", backref=db.backref("orders", lazy=True))
    items = db.relationship("OrderItem", backref="order", lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "email": self.email,
            "product": {
                "id": self.product.id,
                "name": self.product.name,
                "slug": self.product.slug,
                "image": self.product.image,
            } if self.product else None,
            "user_form_data": self.user_form_data or {},
            "payment_provider": self.payment_provider,
            "payment_status": self.payment_status,
            "status": self.status,
            "total_amount": self.total_amount,
            "notes": self.notes,
            "items": [item.to_dict() for item in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    # No FK: variants are replaced wholesale on product update, the snapshot stays.
    variant_id = db.Column(db.String(36), nullable=False)
    variant_name = db.Column(db.String(255))
    quantity = db.Column(db.Integer, nullable=False, default=1)
    price = db.Column(db.Integer, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "variant_id": self.variant_id,
            "variant_name": self.variant_name,
            "quantity": self.quantity,
            "price": self.price,
        }


class PaymentClaim(db.Model):
    """One row per (invoice, terminal status) transition; the insert is the claim."""

    __tablename__ = "payment_claims"
    __table_args__ = (db.UniqueConstraint("invoice_id", "status", name="uq_payment_claim"),)

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    invoice_id = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
