from flask import Blueprint, jsonify, request

from storefront.services import catalog_service

catalog_bp = Blueprint("catalog", __name__)


@catalog_bp.route("/categories", methods=["GET"])
def list_categories():
    """
    List active categories
    ---
    tags:
      - Catalog
    responses:
      200:
        description: Active categories with product counts
    """
    return jsonify({"success": True, "data": catalog_service.get_active_categories()}), 200


@catalog_bp.route("/categories/<slug>", methods=["GET"])
def get_category(slug):
    """
    A category and its active products
    ---
    tags:
      - Catalog
    parameters:
      - name: slug
        in: path
        type: string
        required: true
    responses:
      200:
        description: Category details
      404:
        description: Category not found
    """
    category = catalog_service.get_category_by_slug(slug)
    if not category.is_active:
        return jsonify({"success": False, "error": "Category not found"}), 404
    return jsonify({
        "success": True,
        "data": {
            **category.to_dict(),
            "products": catalog_service.get_active_products(category.id),
        },
    }), 200


@catalog_bp.route("/products", methods=["GET"])
def list_products():
    """
    List active products
    ---
    tags:
      - Catalog
    parameters:
      - name: category_id
        in: query
        type: string
    responses:
      200:
        description: Active products with active variants
    """
    category_id = request.args.get("category_id")
    return jsonify({"success": True, "data": catalog_service.get_active_products(category_id)}), 200


@catalog_bp.route("/products/<slug>", methods=["GET"])
def get_product(slug):
    """
    A single active product by slug
    ---
    tags:
      - Catalog
    parameters:
      - name: slug
        in: path
        type: string
        required: true
    responses:
      200:
        description: Product details
      404:
        description: Product not found
    """
    product = catalog_service.get_product_by_slug(slug)
    return jsonify({"success": True, "data": product.to_dict(active_variants_only=True)}), 200
