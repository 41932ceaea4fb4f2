from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from storefront.errors import Unauthorized
from storefront.schemas import CreateOrderIn
from storefront.security import current_user_id, parse
from storefront.services import order_service

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("", methods=["POST"])
def create_order():
    """
    Place an order for one product variant
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - product_id
            - variant_id
          properties:
            product_id:
              type: string
            variant_id:
              type: string
            user_form_data:
              type: object
            payment_provider:
              type: string
    responses:
      201:
        description: Order created (payment_url is null when the gateway call failed)
      401:
        description: Not logged in
      404:
        description: Product or variant not found
    """
    user_id = current_user_id(optional=True)
    if not user_id:
        raise Unauthorized(order_service.LOGIN_REQUIRED)
    data = parse(CreateOrderIn)
    result = order_service.create_order(data, user_id)
    return jsonify({"success": True, "data": result}), 201


@orders_bp.route("", methods=["GET"])
@jwt_required()
def my_orders():
    """
    Orders of the current user
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    responses:
      200:
        description: Newest first
    """
    orders = order_service.get_user_orders(get_jwt_identity())
    return jsonify({"success": True, "data": [o.to_dict() for o in orders]}), 200


@orders_bp.route("/<order_number>", methods=["GET"])
def get_order(order_number):
    """
    Look up one of your orders by its number
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - name: order_number
        in: path
        type: string
        required: true
    responses:
      200:
        description: Order details
      401:
        description: Not logged in
      403:
        description: Order belongs to someone else
      404:
        description: Order not found
    """
    order = order_service.get_order_by_number(order_number, current_user_id(optional=True))
    return jsonify({"success": True, "data": order.to_dict()}), 200
