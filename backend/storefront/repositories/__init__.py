"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: TM3
Date: 2025-10-17
"""
from storefront.repositories.user_repository import UserRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.cart_repository import CartRepository
from storefront.repositories.coupon_repository import CouponRepository
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.newsletter_repository import NewsletterRepository
from storefront.repositories.chat_repository import ChatRepository
from storefront.repositories.media_repository import MediaRepository
from storefront.repositories.report_repository import ReportRepository
from storefront.repositories.review_repository import ReviewRepository

__all__ = [
    'UserRepository',
    'ProductRepository',
    'CartRepository',
    'CouponRepository',
    'OrderRepository',
    'NewsletterRepository',
    'ChatRepository',
    'MediaRepository',
    'ReportRepository',
    'ReviewRepository'
]
