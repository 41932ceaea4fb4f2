"""
Order Service: order creation, admin management and customer history.
"""

import csv
import io
import logging
import re
import secrets
import time

from flask import current_app
from sqlalchemy import or_

from storefront.errors import Forbidden, NotFound, Unauthorized
from storefront.extensions import db
from storefront.models import Order, OrderItem, Product, ProductVariant, User
from storefront.services import notification_service, payment_service

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_PROVIDER = "uddoktapay"
LOGIN_REQUIRED = "You must be logged in to place an order. Please log in and try again."
BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(number):
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36[rem])
    return "".join(reversed(digits))


def generate_order_number():
    """ORD-<base36 ms timestamp>-<8 hex>. Not rechecked for collisions."""
    timestamp = _base36(int(time.time() * 1000))
    return f"ORD-{timestamp}-{secrets.token_hex(4).upper()}"


def sanitize_form_data(form_data):
    if not form_data:
        return {}
    return {
        re.sub(r"[^a-zA-Z0-9_]", "_", key): str(value).replace("<", "").replace(">", "").strip()[:500]
        for key, value in form_data.items()
    }


def create_order(data, user_id):
    """
    Create an order plus its single item, then request a payment URL and
    queue the confirmation email. A failed payment request does not undo
    the order.
    """
    if not user_id:
        raise Unauthorized(LOGIN_REQUIRED)

    user = db.session.get(User, user_id)
    if not user:
        raise Unauthorized("User not found")

    product = db.session.get(Product, data.product_id)
    if not product or not product.is_active:
        raise NotFound("Product not found or inactive")

    variant = ProductVariant.query.filter_by(
        id=data.variant_id, product_id=product.id, is_active=True
    ).first()
    if not variant:
        raise NotFound("Variant not found or inactive")

    order = Order(
        order_number=generate_order_number(),
        user_id=user.id,
        # the account email wins over whatever the form sent
        email=user.email,
        product_id=product.id,
        user_form_data=sanitize_form_data(data.user_form_data),
        payment_provider=data.payment_provider or DEFAULT_PAYMENT_PROVIDER,
        payment_status="PENDING",
        status="PENDING",
        total_amount=variant.price,
        items=[OrderItem(variant_id=variant.id, variant_name=variant.name, quantity=1, price=variant.price)],
    )
    db.session.add(order)
    db.session.commit()
    logger.info("Created order %s for user %s (%s BDT)", order.order_number, user.id, order.total_amount)

    payment = payment_service.create_payment_for_order(order.id)
    payment_url = payment.get("payment_url") if payment["success"] else None
    if not payment["success"]:
        logger.warning("Order %s created without payment URL: %s", order.order_number, payment.get("error"))

    notification_service.send_order_confirmation(order, customer_name=user.name, payment_url=payment_url)

    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "total_amount": order.total_amount,
        "payment_provider": order.payment_provider,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_url": payment_url,
        "payment_created": payment["success"],
    }


def get_orders(status=None, payment_status=None, search=None):
    query = Order.query
    if status and status != "all":
        query = query.filter(Order.status == status)
    if payment_status and payment_status != "all":
        query = query.filter(Order.payment_status == payment_status)
    if search:
        pattern = f"%{search}%"
        query = query.join(Product, Order.product_id == Product.id).filter(
            or_(
                Order.order_number.ilike(pattern),
                Order.email.ilike(pattern),
                Product.name.ilike(pattern),
            )
        )
    return query.order_by(Order.created_at.desc()).all()


def get_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFound("Order not found")
    return order


def update_order_status(order_id, status):
    """Admin override; no transition rules apply here."""
    order = get_order(order_id)
    order.status = status
    db.session.commit()
    logger.info("Order %s status set to %s", order.order_number, status)
    return order


def update_payment_status(order_id, payment_status):
    order = get_order(order_id)
    order.payment_status = payment_status
    db.session.commit()
    logger.info("Order %s payment status set to %s", order.order_number, payment_status)
    return order


def update_order_notes(order_id, notes):
    order = get_order(order_id)
    order.notes = (notes or "").strip() or None
    db.session.commit()
    return order


def get_user_orders(user_id):
    if not user_id:
        raise Unauthorized("Not authenticated")
    return Order.query.filter_by(user_id=user_id).order_by(Order.created_at.desc()).all()


def get_order_by_number(order_number, user_id):
    order = Order.query.filter_by(order_number=order_number).first()
    if not order:
        raise NotFound("Order not found")
    if not user_id:
        raise Unauthorized("You must be logged in to view orders. Please log in and try again.")
    if order.user_id != user_id:
        raise Forbidden("Unauthorized - This order does not belong to you")
    return order


CSV_HEADERS = [
    "Order Number",
    "Date",
    "Customer Email",
    "Customer Name",
    "Product",
    "Variant",
    "Quantity",
    "Total Amount",
    "Payment Provider",
    "Payment Status",
    "Order Status",
    "Notes",
]


def export_orders_csv(status=None, payment_status=None, search=None):
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for order in get_orders(status, payment_status, search):
        item = order.items[0] if order.items else None
        writer.writerow([
            order.order_number,
            order.created_at.strftime("%Y-%m-%d %H:%M:%S") if order.created_at else "",
            order.email,
            order.user.name if order.user and order.user.name else "Guest",
            order.product.name if order.product else "",
            item.variant_name if item and item.variant_name else "N/A",
            item.quantity if item else 1,
            f"{current_app.config.get('CURRENCY_SYMBOL', '৳')}{order.total_amount}",
            order.payment_provider,
            order.payment_status,
            order.status,
            order.notes or "",
        ])
    return output.getvalue()
