"""
Catalog Service: categories, products and their variants.
Slug uniqueness is enforced by the unique constraints on the tables.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from storefront.errors import ConflictError, NotFound
from storefront.extensions import db
from storefront.models import Category, Order, Product, ProductVariant

logger = logging.getLogger(__name__)


def _commit_or_conflict(message):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(message)


# ---------- Categories ----------

def _categories_with_counts(query):
    counts = dict(
        db.session.query(Product.category_id, func.count(Product.id))
        .group_by(Product.category_id)
        .all()
    )
    return [c.to_dict(product_count=counts.get(c.id, 0)) for c in query.all()]


def get_categories():
    return _categories_with_counts(Category.query.order_by(Category.created_at.desc()))


def get_active_categories():
    return _categories_with_counts(
        Category.query.filter_by(is_active=True).order_by(Category.name.asc())
    )


def get_category(category_id):
    category = db.session.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


def get_category_by_slug(slug):
    category = Category.query.filter_by(slug=slug).first()
    if not category:
        raise NotFound("Category not found")
    return category


def create_category(data):
    category = Category(name=data.name, slug=data.slug, is_active=data.is_active)
    db.session.add(category)
    _commit_or_conflict("Category with this slug already exists")
    logger.info("Created category %s (%s)", category.slug, category.id)
    return category


def update_category(category_id, data):
    category = get_category(category_id)
    category.name = data.name
    category.slug = data.slug
    category.is_active = data.is_active
    _commit_or_conflict("Category with this slug already exists")
    return category


def delete_category(category_id):
    """Refuses while products still reference the category."""
    category = get_category(category_id)
    product_count = Product.query.filter_by(category_id=category.id).count()
    if product_count > 0:
        raise ConflictError(f"Cannot delete category with {product_count} products")

    db.session.delete(category)
    db.session.commit()
    logger.info("Deleted category %s", category_id)


# ---------- Products ----------

def _build_variants(variants):
    return [
        ProductVariant(
            name=v.name,
            price=v.price,
            is_active=v.is_active,
            sort_order=v.sort_order if v.sort_order is not None else index,
        )
        for index, v in enumerate(variants)
    ]


def _form_fields(data):
    if not data.user_form_fields:
        return None
    return [f.model_dump(exclude_none=True) for f in data.user_form_fields]


def _require_category(category_id):
    if not db.session.get(Category, category_id):
        raise NotFound("Category not found")


def get_products(category_id=None):
    """All products for the admin list, with their order counts."""
    query = Product.query
    if category_id:
        query = query.filter_by(category_id=category_id)
    counts = dict(
        db.session.query(Order.product_id, func.count(Order.id)).group_by(Order.product_id).all()
    )
    return [
        p.to_dict(order_count=counts.get(p.id, 0))
        for p in query.order_by(Product.created_at.desc()).all()
    ]


def get_active_products(category_id=None):
    query = Product.query.filter_by(is_active=True)
    if category_id:
        query = query.filter_by(category_id=category_id)
    return [
        p.to_dict(active_variants_only=True)
        for p in query.order_by(Product.created_at.desc()).all()
    ]


def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    return product


def get_product_by_slug(slug):
    """Public lookup; inactive products are hidden."""
    product = Product.query.filter_by(slug=slug).first()
    if not product or not product.is_active:
        raise NotFound("Product not found")
    return product


def create_product(data):
    _require_category(data.category_id)
    product = Product(
        name=data.name,
        slug=data.slug,
        description=data.description or None,
        image=data.image or None,
        category_id=data.category_id,
        is_active=data.is_active,
        user_form_fields=_form_fields(data),
        variants=_build_variants(data.variants),
    )
    db.session.add(product)
    _commit_or_conflict("Product with this slug already exists")
    logger.info("Created product %s with %d variants", product.slug, len(product.variants))
    return product


def update_product(product_id, data):
    """Variants are replaced wholesale; existing orders keep their price snapshot."""
    product = get_product(product_id)
    _require_category(data.category_id)

    product.name = data.name
    product.slug = data.slug
    product.description = data.description or None
    product.image = data.image or None
    product.category_id = data.category_id
    product.is_active = data.is_active
    if data.user_form_fields is not None:
        product.user_form_fields = _form_fields(data)

    product.variants.clear()
    product.variants.extend(_build_variants(data.variants))

    _commit_or_conflict("Product with this slug already exists")
    return product


def delete_product(product_id):
    """Refuses while orders still reference the product."""
    product = get_product(product_id)
    order_count = Order.query.filter_by(product_id=product.id).count()
    if order_count > 0:
        raise ConflictError(f"Cannot delete product with {order_count} orders")

    db.session.delete(product)
    db.session.commit()
    logger.info("Deleted product %s", product_id)
