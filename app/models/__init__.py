# Import all models to register them with SQLModel
from app.models.user import User
from app.models.product import Product
from app.models.order import Order, OrderItem, OrderStatus

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
]
