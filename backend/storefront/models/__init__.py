"""
Database models (SQLAlchemy schema)
"""
from .user import User
from .product import Product, CartItem
from .order import Order, OrderItem, OrderStatusHistory
from .coupon import Coupon, CouponUsage
from .newsletter import NewsletterSubscriber
from .chat import Chat, ChatMessage, ChatSettings
from .media import MediaAsset
from .review import Review

__all__ = [
    "User",
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "Coupon",
    "CouponUsage",
    "NewsletterSubscriber",
    "Chat",
    "ChatMessage",
    "ChatSettings",
    "MediaAsset",
    "Review",
]
