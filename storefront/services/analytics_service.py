"""
Analytics Service: dashboard numbers. Revenue counts PAID orders only.
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import func

from storefront.extensions import db
from storefront.models import Order, Product, User


def _revenue(*filters):
    return (
        db.session.query(func.coalesce(func.sum(Order.total_amount), 0))
        .filter(Order.payment_status == "PAID", *filters)
        .scalar()
    )


def _month_start(day):
    return day.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def get_analytics(now=None):
    now = now or datetime.now(timezone.utc)
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    this_month_start = _month_start(now)
    last_month_start = _month_start(this_month_start - timedelta(days=1))

    this_month = _revenue(Order.created_at >= this_month_start)
    last_month = _revenue(Order.created_at >= last_month_start, Order.created_at < this_month_start)
    growth = round((this_month - last_month) / last_month * 100) if last_month else 0

    order_count = func.count(Order.id)
    top_products = (
        db.session.query(Product, order_count)
        .outerjoin(Order, Order.product_id == Product.id)
        .group_by(Product.id)
        .order_by(order_count.desc())
        .limit(5)
        .all()
    )
    recent_orders = Order.query.order_by(Order.created_at.desc()).limit(10).all()

    return {
        "revenue": {
            "total": _revenue(),
            "today": _revenue(Order.created_at >= today_start),
            "this_month": this_month,
            "last_month": last_month,
            "growth": growth,
        },
        "orders": {
            "total": Order.query.count(),
            "pending": Order.query.filter_by(status="PENDING").count(),
            "completed": Order.query.filter_by(status="COMPLETED").count(),
            "paid": Order.query.filter_by(payment_status="PAID").count(),
            "today": Order.query.filter(Order.created_at >= today_start).count(),
            "this_month": Order.query.filter(Order.created_at >= this_month_start).count(),
        },
        "products": {
            "total": Product.query.count(),
            "active": Product.query.filter_by(is_active=True).count(),
        },
        "top_products": [
            {"id": p.id, "name": p.name, "slug": p.slug, "order_count": count}
            for p, count in top_products
        ],
        "recent_orders": [o.to_dict() for o in recent_orders],
    }


def get_stats():
    recent_users = User.query.order_by(User.created_at.desc()).limit(5).all()
    recent_orders = Order.query.order_by(Order.created_at.desc()).limit(5).all()
    return {
        "total_users": User.query.count(),
        "total_products": Product.query.count(),
        "total_orders": Order.query.count(),
        "total_revenue": _revenue(),
        "recent_users": [
            {"id": u.id, "name": u.name, "email": u.email, "image": u.image,
             "created_at": u.created_at.isoformat() if u.created_at else None}
            for u in recent_users
        ],
        "recent_orders": [o.to_dict() for o in recent_orders],
    }
