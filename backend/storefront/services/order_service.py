"""
Order Service - customer order tracking and admin order management

Author: TM3
Date: 2025-10-17
"""
import logging
import re
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union

from storefront.domain.order import Order, OrderStatusUpdate
from storefront.domain.order_status import (
    CUSTOMER_CANCELLABLE,
    STATUS_TABLE,
    check_transition,
    normalize_status,
)
from storefront.domain.pagination import normalize_paging, build_pagination
from storefront.repositories.order_repository import OrderRepository
from storefront.services.email_service import EmailService, NOTIFY_STATUSES, get_email_service

logger = logging.getLogger(__name__)

MY_ORDERS_DEFAULT_LIMIT = 10
MY_ORDERS_MAX_LIMIT = 50
ADMIN_DEFAULT_LIMIT = 20
ADMIN_MAX_LIMIT = 100


def _digits(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def contact_matches(order: Order, contact: str) -> bool:
    """Guest tracking: the contact must be the checkout email or phone"""
    contact = (contact or "").strip()
    if not contact:
        return False

    if "@" in contact:
        emails = {e.lower() for e in (order.shipping_address.email, order.customer_email) if e}
        return contact.lower() in emails

    wanted = _digits(contact)
    if len(wanted) < 6:
        return False
    phones = [_digits(p) for p in (order.shipping_address.phone, order.customer_phone) if p]
    return any(phone and (phone.endswith(wanted) or wanted.endswith(phone)) for phone in phones)


class OrderService:
    """
    Order reads and lifecycle changes after checkout
    """

    def __init__(self, order_repo: Optional[OrderRepository] = None,
                 email_service: Optional[EmailService] = None):
        self.order_repo = order_repo or OrderRepository()
        self.email_service = email_service or get_email_service()

    def _notify(self, order: Order) -> None:
        if order.order_status not in NOTIFY_STATUSES:
            return
        sent, error = self.email_service.send_status_update(order)
        if not sent:
            logger.warning(f"Status email for {order.order_number} not sent: {error}")

    def _find(self, id_or_number: Union[int, str]) -> Optional[Order]:
        if str(id_or_number).isdigit():
            return self.order_repo.find_by_id(int(id_or_number))
        return self.order_repo.find_by_number(str(id_or_number))

    # ------------------------------------------------------------------
    # Customer side
    # ------------------------------------------------------------------

    def my_orders(self, user_id: int, status: Optional[str] = None, sort: str = "newest",
                  page: int = 1, limit: int = MY_ORDERS_DEFAULT_LIMIT) -> Dict[str, Any]:
        status = None if not status or status == "all" else normalize_status(status)
        page, limit, offset = normalize_paging(page, limit, MY_ORDERS_DEFAULT_LIMIT, MY_ORDERS_MAX_LIMIT)

        orders, total = self.order_repo.find_for_user(user_id, status=status, sort=sort, limit=limit, offset=offset)
        return {
            "orders": [order.to_dict() for order in orders],
            "pagination": build_pagination(page, limit, total),
        }

    def get_my_order(self, user_id: int, id_or_number: Union[int, str]) -> Optional[Order]:
        order = self._find(id_or_number)
        if not order or order.user_id != user_id:
            return None
        return order

    def track(self, order_number: str, contact: str) -> Optional[Dict[str, Any]]:
        order = self.order_repo.find_by_number(order_number)
        if not order or order.is_hidden_from_customer or not contact_matches(order, contact):
            return None
        return order.to_tracking_dict()

    def cancel_my_order(self, user_id: int, order_id: int, reason: Optional[str] = None) -> Optional[Order]:
        """
        Customer cancellation before processing starts

        Stock and coupon usage are restored in the same transaction.
        """
        order = self.get_my_order(user_id, order_id)
        if not order:
            return None

        if order.order_status not in CUSTOMER_CANCELLABLE:
            raise ValueError(
                f"Order cannot be cancelled once it is {STATUS_TABLE[order.order_status]['label'].lower()}"
            )

        reason = (reason or "").strip() or "Cancelled by customer"
        updated = self.order_repo.apply_update(
            order.id,
            {
                "order_status": "cancelled",
                "cancelled_at": datetime.now(timezone.utc),
                "cancel_reason": reason,
            },
            history={"status": "cancelled", "note": reason, "changed_by": user_id},
            expected_status=order.order_status,
            restore_stock=True,
        )
        logger.info(f"Order {order.order_number} cancelled by customer {user_id}")
        if updated:
            self._notify(updated)
        return updated

    # ------------------------------------------------------------------
    # Admin side
    # ------------------------------------------------------------------

    def search_orders(self, filters: Optional[Dict[str, Any]] = None, sort: str = "newest",
                      page: int = 1, limit: int = ADMIN_DEFAULT_LIMIT) -> Dict[str, Any]:
        filters = dict(filters or {})
        if filters.get("order_status") in (None, "", "all"):
            filters.pop("order_status", None)
        else:
            filters["order_status"] = normalize_status(filters["order_status"])

        page, limit, offset = normalize_paging(page, limit, ADMIN_DEFAULT_LIMIT, ADMIN_MAX_LIMIT)
        orders, total = self.order_repo.search(sort=sort, limit=limit, offset=offset, **filters)

        return {
            "orders": [order.to_dict() for order in orders],
            "pagination": build_pagination(page, limit, total),
            "status_counts": self.order_repo.status_counts(),
        }

    def get_order(self, order_id: int) -> Optional[Dict[str, Any]]:
        order = self.order_repo.find_by_id(order_id)
        if not order:
            return None

        data = order.to_dict()
        data["customer_stats"] = (
            self.order_repo.customer_stats(order.user_id)
            if order.user_id else {"total_orders": 0, "total_spent": 0.0}
        )
        return data

    def update_status(self, order_id: int, data: OrderStatusUpdate, admin_id: int) -> Optional[Order]:
        """
        Admin update of status, payment status, notes and tracking

        Raises:
            ValueError: on a transition the order may not take
        """
        order = self.order_repo.find_by_id(order_id)
        if not order:
            return None

        now = datetime.now(timezone.utc)
        fields: Dict[str, Any] = {}
        history = None
        restore_stock = False

        new_status = data.order_status
        status_changed = bool(new_status) and new_status != order.order_status

        if status_changed:
            check_transition(order.order_status, new_status)
            fields["order_status"] = new_status
            history = {
                "status": new_status,
                "note": data.note or f"Status changed to {STATUS_TABLE[new_status]['label']}",
                "changed_by": admin_id,
            }

            if new_status == "delivered":
                fields["delivered_at"] = now
                if order.payment_method == "cod" and order.payment_status != "paid":
                    fields["payment_status"] = "paid"
                    fields["paid_at"] = now

            if new_status == "cancelled":
                fields["cancelled_at"] = now
                fields["cancel_reason"] = data.note or "Cancelled by admin"
                restore_stock = True
        elif data.note:
            history = {"status": order.order_status, "note": data.note, "changed_by": admin_id}

        if data.payment_status and data.payment_status != order.payment_status:
            fields["payment_status"] = data.payment_status
            if data.payment_status == "paid" and not order.paid_at:
                fields["paid_at"] = now

        if data.admin_notes is not None:
            fields["admin_notes"] = data.admin_notes
        if data.tracking_number is not None:
            fields["tracking_number"] = data.tracking_number

        if not fields and not history:
            raise ValueError("Nothing to update")

        updated = self.order_repo.apply_update(
            order_id,
            fields,
            history=history,
            expected_status=order.order_status,
            restore_stock=restore_stock,
        )

        if status_changed:
            logger.info(f"Order {order.order_number}: {order.order_status} -> {new_status} by admin {admin_id}")
            if updated:
                self._notify(updated)

        return updated

    def mark_paid(self, order_id: int, transaction_id: Optional[str] = None) -> Optional[Order]:
        """Record payment; order dates and history are left untouched"""
        order = self.order_repo.find_by_id(order_id)
        if not order:
            return None

        if order.payment_status == "paid":
            raise ValueError("Order is already marked as paid")

        fields: Dict[str, Any] = {
            "payment_status": "paid",
            "paid_at": datetime.now(timezone.utc),
        }
        if transaction_id:
            fields["transaction_id"] = transaction_id.strip()

        updated = self.order_repo.apply_update(order_id, fields)
        logger.info(f"Order {order.order_number} marked as paid")
        return updated

    def delete_order(self, order_id: int) -> bool:
        deleted = self.order_repo.delete(order_id)
        if deleted:
            logger.info(f"Order {order_id} deleted")
        return deleted


# Singleton instance for easy import
_order_service: Optional[OrderService] = None

def get_order_service() -> OrderService:
    """Get the singleton order service instance"""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service
