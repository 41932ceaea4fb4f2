import hmac
import logging

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from storefront.errors import AppError
from storefront.services import order_service, payment_service
from storefront.services.payment_gateway import API_KEY_HEADER

logger = logging.getLogger(__name__)

payments_bp = Blueprint("payments", __name__)
payment_pages_bp = Blueprint("payment_pages", __name__)


@payments_bp.route("/create", methods=["POST"])
@jwt_required()
def create_payment():
    """
    Create (or re-create) a payment URL for an order you own
    ---
    tags:
      - Payments
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - order_id
          properties:
            order_id:
              type: string
    responses:
      200:
        description: Payment URL
      400:
        description: Payment could not be created
    """
    data = request.get_json(silent=True) or {}
    order_id = data.get("order_id")
    if not order_id:
        return jsonify({"success": False, "error": "Order ID is required"}), 400

    order = order_service.get_order(order_id)
    if order.user_id != get_jwt_identity():
        return jsonify({"success": False, "error": "Unauthorized - This order does not belong to you"}), 403

    result = payment_service.create_payment_for_order(order_id)
    if not result["success"]:
        return jsonify({"success": False, "error": result["error"]}), 400
    return jsonify({"success": True, "payment_url": result["payment_url"]}), 200


@payments_bp.route("/verify", methods=["POST"])
def verify_payment():
    """
    Verify a payment by invoice id and reconcile its order
    ---
    tags:
      - Payments
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - invoice_id
          properties:
            invoice_id:
              type: string
            provider:
              type: string
              default: uddoktapay
    responses:
      200:
        description: Reconciled order state
      400:
        description: Missing invoice id
      404:
        description: No order for this invoice
      502:
        description: Provider verification failed
    """
    data = request.get_json(silent=True) or {}
    result = payment_service.reconcile_payment(data.get("invoice_id"), data.get("provider", "uddoktapay"))
    return jsonify({"success": True, **result}), 200


@payments_bp.route("/webhook/uddoktapay", methods=["POST"])
def uddoktapay_webhook():
    """
    UddoktaPay payment notification
    ---
    tags:
      - Webhooks
    parameters:
      - in: header
        name: RT-UDDOKTAPAY-API-KEY
        type: string
        required: true
    responses:
      200:
        description: Payment re-verified and processed
      400:
        description: Invalid payload
      401:
        description: Wrong API key
      500:
        description: Webhook not configured
    """
    expected_key = current_app.config.get("UDDOKTAPAY_API_KEY")
    if not expected_key:
        logger.error("UDDOKTAPAY_API_KEY not configured")
        return jsonify({"success": False, "error": "Webhook not configured"}), 500

    # werkzeug headers are case-insensitive by name; the value must match exactly
    provided_key = request.headers.get(API_KEY_HEADER, "")
    if not hmac.compare_digest(provided_key.encode("utf-8"), expected_key.encode("utf-8")):
        logger.warning("Invalid API key in webhook request")
        return jsonify({"success": False, "error": "Unauthorized"}), 401

    payload = request.get_json(silent=True) or {}
    invoice_id = payload.get("invoice_id")
    if not invoice_id:
        return jsonify({"success": False, "error": "Invoice ID is required"}), 400

    # The payload is not trusted; the provider is asked again.
    try:
        result = payment_service.reconcile_payment(invoice_id, "uddoktapay")
    except AppError as e:
        logger.error("Payment verification failed for invoice %s: %s", invoice_id, e.message)
        return jsonify({"success": False, "error": e.message}), 400

    logger.info(
        "Payment webhook processed: invoice=%s order=%s payment=%s",
        invoice_id, result["order_number"], result["payment_status"],
    )
    return jsonify({"success": True, "message": "Webhook processed successfully"}), 200


@payment_pages_bp.route("/success", methods=["GET"])
def payment_success():
    """
    Redirect target after checkout; reconciles the invoice in the query string
    ---
    tags:
      - Payments
    parameters:
      - name: invoice_id
        in: query
        type: string
    responses:
      200:
        description: Reconciled order state
      400:
        description: Payment information missing or verification failed
    """
    invoice_id = request.args.get("invoice_id")
    if not invoice_id:
        return jsonify({
            "success": False,
            "error": "No payment information was found. Please contact support if you completed a payment.",
        }), 400
    try:
        result = payment_service.reconcile_payment(invoice_id)
    except AppError as e:
        return jsonify({"success": False, "error": e.message or "Unable to verify payment. Please contact support."}), 400
    return jsonify({"success": True, **result}), 200


@payment_pages_bp.route("/cancel", methods=["GET"])
def payment_cancel():
    """
    Redirect target when the customer abandons checkout
    ---
    tags:
      - Payments
    responses:
      200:
        description: Acknowledgement
    """
    return jsonify({
        "success": False,
        "message": "Payment was cancelled. Your order is still pending; you can retry payment from your orders.",
    }), 200
