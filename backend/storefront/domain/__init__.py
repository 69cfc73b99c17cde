"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
Date: 2025-10-17
"""
from storefront.domain.product import Product
from storefront.domain.order import Order, OrderItem, ShippingAddress
from storefront.domain.cart import Cart, CartItem
from storefront.domain.coupon import Coupon
from storefront.domain.newsletter import Subscriber
from storefront.domain.chat import Chat, ChatMessage, ChatSettings
from storefront.domain.media import MediaAsset
from storefront.domain.user import User
from storefront.domain.review import Review

__all__ = [
    'Product',
    'Order',
    'OrderItem',
    'ShippingAddress',
    'Cart',
    'CartItem',
    'Coupon',
    'Subscriber',
    'Chat',
    'ChatMessage',
    'ChatSettings',
    'MediaAsset',
    'User',
    'Review',
]
