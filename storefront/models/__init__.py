from storefront.models.user import User
from storefront.models.verification import Verification
from storefront.models.catalog import Category, Product, ProductVariant
from storefront.models.order import Order, OrderItem, PaymentClaim

__all__ = [
    "User",
    "Verification",
    "Category",
    "Product",
    "ProductVariant",
    "Order",
    "OrderItem",
    "PaymentClaim",
]
