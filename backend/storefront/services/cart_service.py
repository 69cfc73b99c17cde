"""
Cart Service - per-user shopping cart

Every read revalidates the cart against the live catalog: lines whose
product disappeared or sold out are dropped, quantities are clamped to
what is in stock and prices are refreshed.

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional, List

from storefront.domain.cart import Cart, CartItem, RemovedCartItem, MAX_QUANTITY_PER_LINE
from storefront.domain.product import Product
from storefront.repositories.cart_repository import CartRepository
from storefront.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class CartService:
    """
    Cart operations for signed-in customers
    """

    def __init__(self, cart_repo: Optional[CartRepository] = None,
                 product_repo: Optional[ProductRepository] = None):
        self.cart_repo = cart_repo or CartRepository()
        self.product_repo = product_repo or ProductRepository()

    def _removal_reason(self, product: Optional[Product], size: Optional[str]) -> Optional[str]:
        if product is None:
            return "Product no longer available"
        if product.status != "active":
            return "Product is no longer available"
        if product.available_stock(size) <= 0:
            return "Out of stock"
        return None

    def get_cart(self, user_id: int) -> Cart:
        """Load the cart and bring every line in line with the catalog"""
        items = self.cart_repo.find_items(user_id)
        if not items:
            return Cart()

        products = self.product_repo.find_by_ids([item.product_id for item in items])

        kept: List[CartItem] = []
        removed: List[RemovedCartItem] = []
        stale_ids: List[int] = []

        for item in items:
            product = products.get(item.product_id)
            reason = self._removal_reason(product, item.size)
            if reason:
                removed.append(RemovedCartItem(title=item.title, size=item.size, color=item.color, reason=reason))
                stale_ids.append(item.id)
                continue

            quantity = min(item.quantity, product.available_stock(item.size), MAX_QUANTITY_PER_LINE)
            refreshed = {
                "quantity": quantity,
                "price": product.effective_price,
                "regular_price": product.regular_price,
                "title": product.title,
                "image": product.main_image,
            }
            changed = {k: v for k, v in refreshed.items() if getattr(item, k) != v}
            if changed:
                item = self.cart_repo.update_item(item.id, changed) or item.model_copy(update=changed)

            kept.append(item.model_copy(update={"slug": product.slug, "stock": product.available_stock(item.size)}))

        if stale_ids:
            self.cart_repo.remove_items(user_id, stale_ids)
            logger.info(f"Removed {len(stale_ids)} unavailable line(s) from cart of user {user_id}")

        return Cart(items=kept, removed_items=removed)

    def add_item(self, user_id: int, product_id: int, quantity: int = 1,
                 size: Optional[str] = None, color: Optional[str] = None) -> Cart:
        """
        Add a product variant; repeated adds merge into one line

        Raises:
            ValueError: unknown/inactive product, bad size or not enough stock
        """
        product = self.product_repo.find_by_id(product_id)
        if not product or product.status != "active":
            raise ValueError("Product not found or unavailable")

        if product.sizes:
            found = product.find_size(size)
            if not found:
                raise ValueError(f"Size {size or '(none)'} is not available for {product.title}")
            size = found.name
        else:
            size = None

        color = color.strip() if color and color.strip() else None

        existing = self.cart_repo.find_line(user_id, product_id, size, color)
        new_quantity = quantity + (existing.quantity if existing else 0)

        available = product.available_stock(size)
        if new_quantity > available:
            raise ValueError(f"Only {available} item(s) available")
        if new_quantity > MAX_QUANTITY_PER_LINE:
            raise ValueError(f"Maximum {MAX_QUANTITY_PER_LINE} items per product")

        if existing:
            self.cart_repo.update_item(existing.id, {
                "quantity": new_quantity,
                "price": product.effective_price,
                "regular_price": product.regular_price,
            })
        else:
            self.cart_repo.add_item(user_id, {
                "product_id": product.id,
                "title": product.title,
                "image": product.main_image,
                "size": size,
                "color": color,
                "price": product.effective_price,
                "regular_price": product.regular_price,
                "quantity": new_quantity,
            })

        return self.get_cart(user_id)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Optional[Cart]:
        """Set a line's quantity; None when the line does not belong to the user"""
        item = self.cart_repo.find_item(user_id, item_id)
        if not item:
            return None

        product = self.product_repo.find_by_id(item.product_id)
        available = product.available_stock(item.size) if product and product.status == "active" else 0
        if quantity > available:
            raise ValueError(f"Only {available} item(s) available")

        self.cart_repo.update_item(item_id, {"quantity": quantity})
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Optional[Cart]:
        if not self.cart_repo.remove_items(user_id, [item_id]):
            return None
        return self.get_cart(user_id)

    def clear(self, user_id: int) -> Cart:
        self.cart_repo.clear(user_id)
        return Cart()


# Singleton instance for easy import
_cart_service: Optional[CartService] = None

def get_cart_service() -> CartService:
    """Get the singleton cart service instance"""
    global _cart_service
    if _cart_service is None:
        _cart_service = CartService()
    return _cart_service
