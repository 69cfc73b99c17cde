"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders and returns Order domain models.
Writes that touch stock or coupons run in a single transaction with the
affected product and coupon rows locked FOR UPDATE.

Author: TM3
Date: 2025-10-17
"""
import logging
from datetime import date
from typing import List, Optional, Tuple, Dict, Any
from psycopg2.extras import Json

from storefront.domain.order import Order
from storefront.domain.order_status import ORDER_STATUSES, CARD_METHODS
from storefront.core.database import get_db_connection_dict
from storefront.repositories.coupon_repository import CouponRepository, record_usage, release_usage

logger = logging.getLogger(__name__)


ORDER_COLUMNS = """
    o.id, o.order_number, o.user_id, o.shipping_address,
    o.payment_method, o.payment_status, o.transaction_id, o.card_last4, o.paid_at,
    o.order_status, o.subtotal, o.coupon_code, o.discount, o.shipping_cost, o.tax, o.total,
    o.notes, o.admin_notes, o.tracking_number,
    o.delivered_at, o.cancelled_at, o.cancel_reason,
    o.created_at, o.updated_at,
    u.name as customer_name,
    u.email as customer_email,
    u.phone as customer_phone
"""

SORT_OPTIONS = {
    "newest": "o.created_at DESC",
    "oldest": "o.created_at ASC",
    "total_high": "o.total DESC",
    "total_low": "o.total ASC",
    "status": "o.order_status ASC, o.created_at DESC",
}

UPDATABLE_COLUMNS = (
    "order_status", "payment_status", "transaction_id", "paid_at", "admin_notes",
    "tracking_number", "delivered_at", "cancelled_at", "cancel_reason",
)

# Card orders stay invisible to the customer until paid
VISIBLE_TO_CUSTOMER_SQL = (
    "NOT (o.payment_method IN ({}) AND o.payment_status <> 'paid')"
    .format(", ".join(f"'{method}'" for method in CARD_METHODS))
)


def _load_related(cursor, order_rows: List[dict]) -> List[Order]:
    """
    Attach items and status history to order rows

    Gets ALL items and history for these orders in TWO QUERIES (N+1 fix).
    """
    if not order_rows:
        return []

    order_ids = [row['id'] for row in order_rows]

    cursor.execute("""
        SELECT id, order_id, product_id, title, image, size, color, price, quantity, total
        FROM order_items
        WHERE order_id = ANY(%s)
        ORDER BY order_id, id
    """, (order_ids,))
    items_by_order: Dict[int, list] = {}
    for item in cursor.fetchall():
        items_by_order.setdefault(item['order_id'], []).append(dict(item))

    cursor.execute("""
        SELECT order_id, status, note, changed_by, changed_at
        FROM order_status_history
        WHERE order_id = ANY(%s)
        ORDER BY order_id, changed_at, id
    """, (order_ids,))
    history_by_order: Dict[int, list] = {}
    for entry in cursor.fetchall():
        history_by_order.setdefault(entry['order_id'], []).append({
            'status': entry['status'],
            'note': entry['note'],
            'changed_by': entry['changed_by'],
            'changed_at': entry['changed_at'],
        })

    orders = []
    for row in order_rows:
        data = dict(row)
        data['items'] = items_by_order.get(row['id'], [])
        data['status_history'] = history_by_order.get(row['id'], [])
        orders.append(Order(**data))
    return orders


def _lock_products(cursor, product_ids: List[int]) -> Dict[int, dict]:
    cursor.execute("""
        SELECT id, title, sizes, stock, status
        FROM products
        WHERE id = ANY(%s)
        FOR UPDATE
    """, (list(set(product_ids)),))
    return {row['id']: dict(row) for row in cursor.fetchall()}


def _available(product_row: dict, size: Optional[str]) -> int:
    sizes = product_row.get('sizes') or []
    if sizes:
        wanted = (size or "").strip().lower()
        for entry in sizes:
            if str(entry.get('name', '')).lower() == wanted:
                return int(entry.get('stock') or 0)
        return 0
    return int(product_row.get('stock') or 0)


def _adjust_stock(cursor, product_row: dict, size: Optional[str], delta: int) -> None:
    """
    Apply a stock change to one product row (negative delta = sold).

    Size stock and total stock are kept in sync; status flips between
    active and out_of_stock as the total crosses zero. product_row is
    updated in place so several lines of the same product stay consistent.
    """
    sizes = product_row.get('sizes') or []
    if sizes:
        wanted = (size or "").strip().lower()
        for entry in sizes:
            if str(entry.get('name', '')).lower() == wanted:
                entry['stock'] = max(0, int(entry.get('stock') or 0) + delta)
        stock = sum(int(entry.get('stock') or 0) for entry in sizes)
    else:
        stock = max(0, int(product_row.get('stock') or 0) + delta)

    status = product_row['status']
    if stock == 0 and status == 'active':
        status = 'out_of_stock'
    elif stock > 0 and status == 'out_of_stock':
        status = 'active'

    cursor.execute("""
        UPDATE products
        SET sizes = %s, stock = %s, status = %s,
            total_sold = GREATEST(total_sold + %s, 0),
            updated_at = NOW()
        WHERE id = %s
    """, (Json(sizes), stock, status, -delta, product_row['id']))

    product_row['sizes'] = sizes
    product_row['stock'] = stock
    product_row['status'] = status


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    Returns Order domain models with related data (customer, items, history).
    """

    def __init__(self, coupon_repo: Optional[CouponRepository] = None):
        self.coupon_repo = coupon_repo or CouponRepository()

    def find_by_id(self, order_id: int) -> Optional[Order]:
        """
        Find order by ID with customer, items and status history

        Returns:
            Order with all related data or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                LEFT JOIN users u ON o.user_id = u.id
                WHERE o.id = %s
            """, (order_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return _load_related(cursor, [row])[0]

        finally:
            cursor.close()
            conn.close()

    def find_by_number(self, order_number: str) -> Optional[Order]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                LEFT JOIN users u ON o.user_id = u.id
                WHERE o.order_number = %s
            """, (order_number.strip().upper(),))

            row = cursor.fetchone()
            if not row:
                return None

            return _load_related(cursor, [row])[0]

        finally:
            cursor.close()
            conn.close()

    def find_for_user(
        self,
        user_id: int,
        status: Optional[str] = None,
        sort: str = "newest",
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Orders of one customer, newest first by default

        Unpaid card orders are excluded.
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["o.user_id = %s", VISIBLE_TO_CUSTOMER_SQL]
            params: List[Any] = [user_id]

            if status:
                conditions.append("o.order_status = %s")
                params.append(status)

            where_clause = " AND ".join(conditions)
            order_by = SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"])

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM orders o
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                LEFT JOIN users u ON o.user_id = u.id
                WHERE {where_clause}
                ORDER BY {order_by}, o.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return _load_related(cursor, cursor.fetchall()), total

        finally:
            cursor.close()
            conn.close()

    def search(
        self,
        search: Optional[str] = None,
        order_status: Optional[str] = None,
        payment_status: Optional[str] = None,
        payment_method: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_total: Optional[float] = None,
        max_total: Optional[float] = None,
        sort: str = "newest",
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Admin order search with filters

        Args:
            search: Order number, shipping name/phone, customer name/email/phone
            order_status / payment_status / payment_method: Exact filters
            start_date / end_date: Inclusive date range on created_at
            min_total / max_total: Bounds on order total
            sort: One of SORT_OPTIONS
            limit: Maximum results to return (None for no limit, used by CSV export)
            offset: Number of results to skip

        Returns:
            Tuple of (list of orders, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params: List[Any] = []

            if search:
                conditions.append("""(
                    o.order_number ILIKE %s OR
                    o.shipping_address->>'full_name' ILIKE %s OR
                    o.shipping_address->>'phone' ILIKE %s OR
                    u.name ILIKE %s OR
                    u.email ILIKE %s OR
                    u.phone ILIKE %s
                )""")
                search_param = f"%{search.strip()}%"
                params.extend([search_param] * 6)

            if order_status:
                conditions.append("o.order_status = %s")
                params.append(order_status)

            if payment_status:
                conditions.append("o.payment_status = %s")
                params.append(payment_status)

            if payment_method:
                conditions.append("o.payment_method = %s")
                params.append(payment_method)

            if start_date:
                conditions.append("o.created_at >= %s::date")
                params.append(start_date)

            if end_date:
                # Inclusive: everything before the start of the next day
                conditions.append("o.created_at < (%s::date + INTERVAL '1 day')")
                params.append(end_date)

            if min_total is not None:
                conditions.append("o.total >= %s")
                params.append(min_total)

            if max_total is not None:
                conditions.append("o.total <= %s")
                params.append(max_total)

            where_clause = " AND ".join(conditions) if conditions else "1=1"
            order_by = SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"])

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM orders o
                LEFT JOIN users u ON o.user_id = u.id
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            query = f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                LEFT JOIN users u ON o.user_id = u.id
                WHERE {where_clause}
                ORDER BY {order_by}, o.id DESC
            """
            if limit is not None:
                query += " LIMIT %s OFFSET %s"
                params = params + [limit, offset]

            cursor.execute(query, params)
            return _load_related(cursor, cursor.fetchall()), total

        finally:
            cursor.close()
            conn.close()

    def status_counts(self) -> Dict[str, int]:
        """Count of orders per status, every status present, plus 'all'"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT order_status, COUNT(*) as count
                FROM orders
                GROUP BY order_status
            """)
            counts = {status: 0 for status in ORDER_STATUSES}
            for row in cursor.fetchall():
                counts[row['order_status']] = row['count']
            counts['all'] = sum(counts.values())
            return counts

        finally:
            cursor.close()
            conn.close()

    def customer_stats(self, user_id: int) -> Dict[str, Any]:
        """Order count and lifetime spend of one customer (cancelled/refunded not spent)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) as total_orders,
                    COALESCE(SUM(total) FILTER (
                        WHERE order_status NOT IN ('cancelled', 'refunded')
                    ), 0) as total_spent
                FROM orders
                WHERE user_id = %s
            """, (user_id,))
            row = cursor.fetchone()
            return {
                "total_orders": row['total_orders'],
                "total_spent": float(row['total_spent'] or 0),
            }

        finally:
            cursor.close()
            conn.close()

    def find_last_number(self, prefix: str) -> Optional[str]:
        """Highest order number starting with prefix"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT order_number
                FROM orders
                WHERE order_number LIKE %s
                ORDER BY order_number DESC
                LIMIT 1
            """, (f"{prefix}%",))
            row = cursor.fetchone()
            return row['order_number'] if row else None

        finally:
            cursor.close()
            conn.close()

    def number_exists(self, order_number: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT 1 FROM orders WHERE order_number = %s", (order_number,))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def place_order(
        self,
        order: Dict[str, Any],
        lines: List[Dict[str, Any]],
        clear_cart: bool = False
    ) -> Order:
        """
        Persist a new order in ONE TRANSACTION

        - Locks the ordered products and re-checks stock
        - Locks the coupon (order['coupon_code']) and re-checks its limits
        - Inserts order, items and the first history entry
        - Decrements stock (per size), bumps total_sold
        - Records the coupon redemption
        - Clears the customer's cart

        Args:
            order: Order columns (order_number, user_id, shipping_address, amounts, coupon_code, ...)
            lines: Items with product_id, title, image, size, color, price, quantity, total
            clear_cart: Empty the user's cart after ordering

        Raises:
            ValueError: if stock ran out or the coupon became unusable since the order was priced
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            products = _lock_products(cursor, [line['product_id'] for line in lines])

            # Re-check stock under lock (quantities of repeated lines add up;
            # products without sizes share one bucket whatever size was sent)
            requested: Dict[Tuple[int, str], int] = {}
            errors = []
            for line in lines:
                product = products.get(line['product_id'])
                if not product:
                    errors.append(f"Product {line['product_id']} no longer exists")
                    continue
                size = (line.get('size') or '').lower() if product.get('sizes') else ''
                key = (line['product_id'], size)
                requested[key] = requested.get(key, 0) + line['quantity']

            for (product_id, size), quantity in requested.items():
                product = products[product_id]
                available = _available(product, size)
                if quantity > available:
                    errors.append(f"Only {available} item(s) available for {product['title']}")
            if errors:
                raise ValueError("; ".join(errors))

            coupon = None
            if order.get('coupon_code'):
                coupon = self.coupon_repo.find_by_code(order['coupon_code'], cursor=cursor)
                if not coupon:
                    raise ValueError("Invalid coupon code")
                coupon.check_usable(order.get('user_id'), order['subtotal'])

            cursor.execute("""
                INSERT INTO orders (
                    order_number, user_id, shipping_address,
                    payment_method, payment_status, card_last4,
                    order_status, subtotal, coupon_code, discount, shipping_cost, tax, total,
                    notes
                )
                VALUES (%s, %s, %s, %s, %s, %s, 'pending', %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (
                order['order_number'], order.get('user_id'), Json(order['shipping_address']),
                order['payment_method'], order.get('payment_status', 'pending'), order.get('card_last4'),
                order['subtotal'], order.get('coupon_code'), order.get('discount', 0),
                order.get('shipping_cost', 0), order.get('tax', 0), order['total'],
                order.get('notes'),
            ))
            order_id = cursor.fetchone()['id']

            for line in lines:
                cursor.execute("""
                    INSERT INTO order_items
                        (order_id, product_id, title, image, size, color, price, quantity, total)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """, (
                    order_id, line['product_id'], line['title'], line.get('image'),
                    line.get('size'), line.get('color'), line['price'], line['quantity'], line['total'],
                ))
                _adjust_stock(cursor, products[line['product_id']], line.get('size'), -line['quantity'])

            cursor.execute("""
                INSERT INTO order_status_history (order_id, status, note, changed_by)
                VALUES (%s, 'pending', %s, %s)
            """, (order_id, "Order placed successfully", order.get('user_id')))

            if coupon:
                record_usage(cursor, coupon.id, order.get('user_id'), order['order_number'])

            if clear_cart and order.get('user_id'):
                cursor.execute("DELETE FROM cart_items WHERE user_id = %s", (order['user_id'],))

            conn.commit()
            logger.info(f"Order {order['order_number']} stored with {len(lines)} line(s)")

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(order_id)

    def apply_update(
        self,
        order_id: int,
        fields: Dict[str, Any],
        history: Optional[Dict[str, Any]] = None,
        expected_status: Optional[str] = None,
        restore_stock: bool = False
    ) -> Optional[Order]:
        """
        Update an order in ONE TRANSACTION

        Args:
            fields: Columns to set (see UPDATABLE_COLUMNS)
            history: Optional {status, note, changed_by} entry to append
            expected_status: Abort with ValueError if the locked row has another status
            restore_stock: Put items back in stock and release the coupon (cancellation)

        Returns:
            Updated Order or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, order_number, order_status, coupon_code
                FROM orders
                WHERE id = %s
                FOR UPDATE
            """, (order_id,))
            current = cursor.fetchone()
            if not current:
                conn.rollback()
                return None

            if expected_status and current['order_status'] != expected_status:
                raise ValueError("Order status changed in the meantime, please reload and retry")

            if restore_stock:
                cursor.execute("""
                    SELECT product_id, size, quantity
                    FROM order_items
                    WHERE order_id = %s AND product_id IS NOT NULL
                """, (order_id,))
                items = cursor.fetchall()
                if items:
                    products = _lock_products(cursor, [item['product_id'] for item in items])
                    for item in items:
                        product = products.get(item['product_id'])
                        if product:
                            _adjust_stock(cursor, product, item['size'], item['quantity'])

                if current['coupon_code']:
                    release_usage(cursor, current['coupon_code'], current['order_number'])

            updates = {k: v for k, v in fields.items() if k in UPDATABLE_COLUMNS}
            if updates:
                set_clause = ", ".join(f"{column} = %s" for column in updates)
                cursor.execute(f"""
                    UPDATE orders SET {set_clause}, updated_at = NOW()
                    WHERE id = %s
                """, list(updates.values()) + [order_id])

            if history:
                cursor.execute("""
                    INSERT INTO order_status_history (order_id, status, note, changed_by)
                    VALUES (%s, %s, %s, %s)
                """, (order_id, history['status'], history.get('note'), history.get('changed_by')))

            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(order_id)

    def delete(self, order_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM orders WHERE id = %s", (order_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
