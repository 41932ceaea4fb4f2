"""
Payment Service: payment creation and reconciliation.

Reconciliation is reached from three places (redirect-back, the verify
endpoint and the provider webhook) and may run concurrently for the same
invoice. A PaymentClaim row keyed on (invoice_id, status) is inserted in the
same transaction as the status change, so only the caller whose insert
succeeds writes the order and queues the email.

    verified COMPLETED -> payment PAID,   order PROCESSING
    verified FAILED    -> payment FAILED, order FAILED
    verified PENDING   -> nothing written
"""

import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from storefront.errors import NotFound, UpstreamError, ValidationError
from storefront.extensions import db
from storefront.models import Order, PaymentClaim
from storefront.services import notification_service

logger = logging.getLogger(__name__)

TRANSITIONS = {
    "COMPLETED": ("PAID", "PROCESSING"),
    "FAILED": ("FAILED", "FAILED"),
}


def get_gateway(provider="uddoktapay"):
    gateway = current_app.extensions.get("payment_gateway")
    if gateway is None or gateway.name != provider:
        return None
    return gateway


def create_payment_for_order(order_id):
    """Returns {success, payment_url} or {success: False, error}; never raises."""
    order = db.session.get(Order, order_id)
    if not order:
        return {"success": False, "error": "Order not found"}

    if order.payment_status != "PENDING":
        return {"success": False, "error": "Order payment status is not pending"}

    gateway = get_gateway(order.payment_provider)
    if gateway is None:
        return {"success": False, "error": "Payment gateway not configured"}

    try:
        result = gateway.create_payment(
            order_id=order.id,
            order_number=order.order_number,
            amount=order.total_amount,
            customer_name=(order.user.name if order.user else None) or "Guest Customer",
            customer_email=order.email,
            metadata={"product_name": order.product.name if order.product else ""},
        )
    except Exception as e:
        logger.exception("Create payment error for order %s", order.order_number)
        return {"success": False, "error": str(e) or "Failed to create payment"}

    if not result.get("success") or not result.get("payment_url"):
        return {"success": False, "error": result.get("error") or "Failed to create payment"}

    return {"success": True, "payment_url": result["payment_url"]}


def reconcile_payment(invoice_id, provider="uddoktapay"):
    """
    Verify an invoice with the provider and apply the result to its order.

    Returns a dict with the order's resulting state and whether this call
    performed the transition. Raises ValidationError, UpstreamError or
    NotFound when the invoice cannot be reconciled.
    """
    if not invoice_id:
        raise ValidationError("Invoice ID is required")

    gateway = get_gateway(provider)
    if gateway is None:
        raise NotFound("Payment gateway not found")

    verified = gateway.verify_payment(invoice_id)
    if not verified.get("success"):
        raise UpstreamError(verified.get("error") or "Failed to verify payment")

    order_id = (verified.get("metadata") or {}).get("order_id")
    order = db.session.get(Order, order_id) if order_id else None
    if not order:
        raise NotFound("Order not found for this payment")

    status = verified.get("status", "PENDING")
    transition = TRANSITIONS.get(status)
    transitioned = False

    if transition:
        payment_status, order_status = transition
        try:
            db.session.add(PaymentClaim(invoice_id=invoice_id, status=status, order_id=order.id))
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            order = db.session.get(Order, order.id)
            logger.info("Invoice %s already reconciled as %s", invoice_id, status)
        else:
            order.payment_status = payment_status
            order.status = order_status
            db.session.commit()
            transitioned = True
            logger.info(
                "Order %s reconciled from invoice %s: payment=%s status=%s",
                order.order_number, invoice_id, payment_status, order_status,
            )

    if transitioned and order.payment_status != "PENDING":
        notification_service.send_payment_status(order)

    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "payment_status": order.payment_status,
        "order_status": order.status,
        "verified_status": status,
        "transitioned": transitioned,
    }
