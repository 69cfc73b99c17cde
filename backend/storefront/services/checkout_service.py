"""
Checkout Service - turns a cart or an item list into an order

Flow:
1. Resolve lines (request items or the user's cart)
2. Price every line at the product's effective price and check stock
3. Apply the coupon against the subtotal
4. Generate the order number
5. Persist order, items, stock, coupon usage and cart in one transaction
6. Send the confirmation email (best-effort)

Author: TM3
Date: 2025-10-17
"""
import logging
import random
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Tuple

from storefront.core.auth import TokenUser
from storefront.core.config import settings
from storefront.domain.order import Order, PlaceOrderRequest, ShippingAddress
from storefront.domain.order_status import CARD_METHODS
from storefront.domain.product import ORDERABLE_STATUSES
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.cart_repository import CartRepository
from storefront.services.coupon_service import CouponService
from storefront.services.email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)

SEQUENCE_DIGITS = 5


class CheckoutError(ValueError):
    """Checkout rejected; carries every problem found"""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def order_number_prefix(now: Optional[datetime] = None, prefix: Optional[str] = None) -> str:
    """LF + YY + MM, e.g. LF2510"""
    now = now or datetime.now()
    return f"{prefix or settings.ORDER_NUMBER_PREFIX}{now.strftime('%y%m')}"


def next_order_number(last_number: Optional[str], date_prefix: str) -> Tuple[str, int]:
    """Number following the highest existing one for this month"""
    sequence = 1
    if last_number:
        tail = last_number[-SEQUENCE_DIGITS:]
        if tail.isdigit():
            sequence = int(tail) + 1
    return f"{date_prefix}{sequence:0{SEQUENCE_DIGITS}d}", sequence


class CheckoutService:
    """
    Places orders for signed-in customers
    """

    def __init__(
        self,
        order_repo: Optional[OrderRepository] = None,
        product_repo: Optional[ProductRepository] = None,
        cart_repo: Optional[CartRepository] = None,
        coupon_service: Optional[CouponService] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.product_repo = product_repo or ProductRepository()
        self.cart_repo = cart_repo or CartRepository()
        self.coupon_service = coupon_service or CouponService()
        self.email_service = email_service or get_email_service()

    def generate_order_number(self, now: Optional[datetime] = None) -> str:
        date_prefix = order_number_prefix(now)
        order_number, sequence = next_order_number(self.order_repo.find_last_number(date_prefix), date_prefix)

        if self.order_repo.number_exists(order_number):
            sequence += random.randint(100, 999)
            order_number = f"{date_prefix}{sequence:0{SEQUENCE_DIGITS}d}"

        return order_number

    def _requested_lines(self, user_id: int, request: PlaceOrderRequest) -> List[Dict[str, Any]]:
        if request.items is not None:
            return [item.model_dump() for item in request.items]

        return [
            {"product_id": item.product_id, "quantity": item.quantity, "size": item.size, "color": item.color}
            for item in self.cart_repo.find_items(user_id)
        ]

    def price_lines(self, requested: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], Decimal]:
        """
        Build order lines at current prices

        Raises:
            CheckoutError: with every product/size/stock problem found
        """
        if not requested:
            raise CheckoutError(["No items in order"])

        products = self.product_repo.find_by_ids([line["product_id"] for line in requested])

        errors: List[str] = []
        lines: List[Dict[str, Any]] = []
        subtotal = Decimal("0")
        reserved: Dict[Tuple[int, str], int] = {}

        for line in requested:
            product = products.get(line["product_id"])
            if not product or product.status not in ORDERABLE_STATUSES:
                errors.append(f"Product {line['product_id']} is not available")
                continue

            size = line.get("size")
            if product.sizes:
                found = product.find_size(size)
                if not found:
                    errors.append(f"Size {size or '(none)'} not available for {product.title}")
                    continue
                size = found.name
            else:
                size = None

            key = (product.id, (size or "").lower())
            reserved[key] = reserved.get(key, 0) + line["quantity"]
            available = product.available_stock(size)
            if reserved[key] > available:
                errors.append(f"Only {available} item(s) available for {product.title}")
                continue

            price = product.effective_price
            total = price * line["quantity"]
            subtotal += total
            lines.append({
                "product_id": product.id,
                "title": product.title,
                "image": product.main_image,
                "size": size,
                "color": line.get("color"),
                "price": price,
                "quantity": line["quantity"],
                "total": total,
            })

        if errors:
            raise CheckoutError(errors)

        return lines, subtotal

    def place_order(self, user: TokenUser, request: PlaceOrderRequest) -> Order:
        address = ShippingAddress(**{
            k: (v.strip() if isinstance(v, str) else v)
            for k, v in request.shipping_address.model_dump().items()
            if v is not None
        })
        missing = address.missing_fields()
        if missing:
            raise CheckoutError([f"Missing shipping address fields: {', '.join(missing)}"])

        address.email = address.email or user.email
        if not (request.shipping_address.country or "").strip():
            address.country = settings.DEFAULT_COUNTRY

        if request.payment_method in CARD_METHODS and not request.card_last4:
            raise CheckoutError(["Card payments require the last 4 digits of the card"])

        requested = self._requested_lines(user.id, request)
        lines, subtotal = self.price_lines(requested)

        discount = Decimal("0")
        coupon = None
        if request.coupon_code and request.coupon_code.strip():
            coupon = self.coupon_service.get_usable(request.coupon_code, user.id, subtotal)
            discount = coupon.calculate_discount(subtotal)

        shipping_cost = Decimal(str(request.shipping_cost or 0))
        total = max(Decimal("0"), subtotal - discount + shipping_cost)

        order_number = self.generate_order_number()
        order = self.order_repo.place_order(
            {
                "order_number": order_number,
                "user_id": user.id,
                "shipping_address": address.model_dump(),
                "payment_method": request.payment_method,
                "payment_status": "pending",
                "card_last4": request.card_last4 if request.payment_method in CARD_METHODS else None,
                "subtotal": subtotal,
                "coupon_code": coupon.code if coupon else None,
                "discount": discount,
                "shipping_cost": shipping_cost,
                "tax": Decimal("0"),
                "total": total,
                "notes": request.notes.strip() if request.notes else None,
            },
            lines,
            clear_cart=True,
        )
        logger.info(f"Order {order.order_number} placed by user {user.id}: total {total}")

        sent, error = self.email_service.send_order_confirmation(order)
        if not sent:
            logger.warning(f"Confirmation email for {order.order_number} not sent: {error}")

        return order


# Singleton instance for easy import
_checkout_service: Optional[CheckoutService] = None

def get_checkout_service() -> CheckoutService:
    """Get the singleton checkout service instance"""
    global _checkout_service
    if _checkout_service is None:
        _checkout_service = CheckoutService()
    return _checkout_service
