"""
Admin Routes: catalog, orders and users. Every endpoint needs role=admin.
"""

from flask import Blueprint, Response, jsonify, request
from flask_jwt_extended import get_jwt_identity

from storefront.schemas import (
    BanIn,
    CategoryIn,
    EmailVerifiedIn,
    OrderNotesIn,
    OrderStatusIn,
    PaymentStatusIn,
    ProductIn,
    SetAdminIn,
    SetRoleIn,
)
from storefront.security import admin_required, parse
from storefront.services import analytics_service, catalog_service, order_service, user_service

admin_bp = Blueprint("admin", __name__)


def _order_filters():
    return {
        "status": request.args.get("status"),
        "payment_status": request.args.get("payment_status"),
        "search": request.args.get("search"),
    }


# --- Categories -----------------------------------------------------

@admin_bp.route("/categories", methods=["GET"])
@admin_required
def list_categories():
    """
    All categories with product counts
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200:
        description: Categories, newest first
    """
    return jsonify({"success": True, "data": catalog_service.get_categories()}), 200


@admin_bp.route("/categories", methods=["POST"])
@admin_required
def create_category():
    """
    Create a category
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - slug
          properties:
            name:
              type: string
            slug:
              type: string
            is_active:
              type: boolean
    responses:
      201:
        description: Created
      400:
        description: Invalid data or slug already taken
    """
    category = catalog_service.create_category(parse(CategoryIn))
    return jsonify({"success": True, "data": category.to_dict()}), 201


@admin_bp.route("/categories/<category_id>", methods=["GET"])
@admin_required
def get_category(category_id):
    category = catalog_service.get_category(category_id)
    return jsonify({"success": True, "data": category.to_dict()}), 200


@admin_bp.route("/categories/<category_id>", methods=["PUT"])
@admin_required
def update_category(category_id):
    category = catalog_service.update_category(category_id, parse(CategoryIn))
    return jsonify({"success": True, "data": category.to_dict()}), 200


@admin_bp.route("/categories/<category_id>", methods=["DELETE"])
@admin_required
def delete_category(category_id):
    """
    Delete a category with no products
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200:
        description: Deleted
      400:
        description: Category still has products
      404:
        description: Category not found
    """
    catalog_service.delete_category(category_id)
    return jsonify({"success": True}), 200


# --- Products -------------------------------------------------------

@admin_bp.route("/products", methods=["GET"])
@admin_required
def list_products():
    """
    All products, including inactive ones
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: category_id
        in: query
        type: string
    responses:
      200:
        description: Products with variants and order counts
    """
    products = catalog_service.get_products(request.args.get("category_id"))
    return jsonify({"success": True, "data": products}), 200


@admin_bp.route("/products", methods=["POST"])
@admin_required
def create_product():
    """
    Create a product with its variants
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
            - slug
            - category_id
            - variants
          properties:
            name:
              type: string
            slug:
              type: string
            description:
              type: string
            image:
              type: string
            category_id:
              type: string
            is_active:
              type: boolean
            user_form_fields:
              type: array
              items:
                type: object
            variants:
              type: array
              items:
                type: object
                properties:
                  name:
                    type: string
                  price:
                    type: integer
    responses:
      201:
        description: Created
      400:
        description: Invalid data or slug already taken
    """
    product = catalog_service.create_product(parse(ProductIn))
    return jsonify({"success": True, "data": product.to_dict()}), 201


@admin_bp.route("/products/<product_id>", methods=["GET"])
@admin_required
def get_product(product_id):
    product = catalog_service.get_product(product_id)
    return jsonify({"success": True, "data": product.to_dict()}), 200


@admin_bp.route("/products/<product_id>", methods=["PUT"])
@admin_required
def update_product(product_id):
    """
    Update a product; the variant list replaces the existing one
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200:
        description: Updated
      400:
        description: Invalid data or slug already taken
      404:
        description: Product not found
    """
    product = catalog_service.update_product(product_id, parse(ProductIn))
    return jsonify({"success": True, "data": product.to_dict()}), 200


@admin_bp.route("/products/<product_id>", methods=["DELETE"])
@admin_required
def delete_product(product_id):
    catalog_service.delete_product(product_id)
    return jsonify({"success": True}), 200


# --- Orders ---------------------------------------------------------

@admin_bp.route("/orders", methods=["GET"])
@admin_required
def list_orders():
    """
    Orders with optional filters
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: status
        in: query
        type: string
      - name: payment_status
        in: query
        type: string
      - name: search
        in: query
        type: string
        description: Order number, email or product name
    responses:
      200:
        description: Orders, newest first
    """
    orders = order_service.get_orders(**_order_filters())
    return jsonify({"success": True, "data": [o.to_dict() for o in orders]}), 200


@admin_bp.route("/orders/export", methods=["GET"])
@admin_required
def export_orders():
    csv_content = order_service.export_orders_csv(**_order_filters())
    return Response(
        csv_content,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=orders.csv"},
    )


@admin_bp.route("/orders/<order_id>", methods=["GET"])
@admin_required
def get_order(order_id):
    order = order_service.get_order(order_id)
    return jsonify({"success": True, "data": order.to_dict()}), 200


@admin_bp.route("/orders/<order_id>/status", methods=["PATCH"])
@admin_required
def update_order_status(order_id):
    """
    Set the fulfilment status of an order
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            status:
              type: string
              enum: [PENDING, PROCESSING, COMPLETED, FAILED, CANCELLED]
    responses:
      200:
        description: Updated order
    """
    order = order_service.update_order_status(order_id, parse(OrderStatusIn).status)
    return jsonify({"success": True, "data": order.to_dict()}), 200


@admin_bp.route("/orders/<order_id>/payment-status", methods=["PATCH"])
@admin_required
def update_payment_status(order_id):
    order = order_service.update_payment_status(order_id, parse(PaymentStatusIn).payment_status)
    return jsonify({"success": True, "data": order.to_dict()}), 200


@admin_bp.route("/orders/<order_id>/notes", methods=["PATCH"])
@admin_required
def update_order_notes(order_id):
    order = order_service.update_order_notes(order_id, parse(OrderNotesIn).notes)
    return jsonify({"success": True, "data": order.to_dict()}), 200


# --- Users ----------------------------------------------------------

@admin_bp.route("/users", methods=["GET"])
@admin_required
def list_users():
    """
    Paginated user list
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        default: 10
      - name: search
        in: query
        type: string
      - name: role
        in: query
        type: string
      - name: email_verified
        in: query
        type: boolean
    responses:
      200:
        description: Users and pagination
    """
    email_verified = request.args.get("email_verified")
    result = user_service.list_users(
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", 10, type=int),
        search=request.args.get("search"),
        role=request.args.get("role"),
        email_verified=None if email_verified is None else email_verified.lower() == "true",
    )
    return jsonify({"success": True, **result}), 200


@admin_bp.route("/users/<user_id>", methods=["GET"])
@admin_required
def get_user(user_id):
    return jsonify({"success": True, "data": user_service.get_user(user_id).to_dict()}), 200


@admin_bp.route("/users/<user_id>/role", methods=["PATCH"])
@admin_required
def set_role(user_id):
    role = parse(SetRoleIn).role
    user = user_service.set_role(user_id, role)
    return jsonify({"success": True, "message": f"User role updated to {role}", "data": user.to_dict()}), 200


@admin_bp.route("/set-admin", methods=["POST"])
@admin_required
def set_admin():
    """
    Promote a user to admin by id or email
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200:
        description: User is now admin
      404:
        description: User not found
    """
    data = parse(SetAdminIn)
    user = user_service.find_user(user_id=data.user_id, email=data.email)
    user = user_service.set_role(user.id, "admin")
    return jsonify({"success": True, "message": "User set as admin successfully", "user": user.to_dict()}), 200


@admin_bp.route("/users/<user_id>/email-verified", methods=["PATCH"])
@admin_required
def set_email_verified(user_id):
    verified = parse(EmailVerifiedIn).email_verified
    user = user_service.set_email_verified(user_id, verified)
    message = f"Email verification {'enabled' if verified else 'disabled'}"
    return jsonify({"success": True, "message": message, "data": user.to_dict()}), 200


@admin_bp.route("/users/<user_id>/ban", methods=["POST"])
@admin_required
def ban_user(user_id):
    data = parse(BanIn)
    user_service.ban_user(user_id, data.ban_reason, data.ban_expires_in, acting_user_id=get_jwt_identity())
    return jsonify({"success": True, "message": "User banned successfully"}), 200


@admin_bp.route("/users/<user_id>/unban", methods=["POST"])
@admin_required
def unban_user(user_id):
    user_service.unban_user(user_id)
    return jsonify({"success": True, "message": "User unbanned successfully"}), 200


@admin_bp.route("/users/<user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    user_service.delete_user(user_id, acting_user_id=get_jwt_identity())
    return jsonify({"success": True, "message": "User deleted successfully"}), 200


# --- Dashboard ------------------------------------------------------

@admin_bp.route("/stats", methods=["GET"])
@admin_required
def stats():
    """
    Headline dashboard numbers
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200:
        description: Counts, revenue and recent activity
    """
    return jsonify({"stats": analytics_service.get_stats()}), 200


@admin_bp.route("/analytics", methods=["GET"])
@admin_required
def analytics():
    return jsonify({"success": True, "data": analytics_service.get_analytics()}), 200
