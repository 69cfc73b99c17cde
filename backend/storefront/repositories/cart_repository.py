"""
Cart Repository - Data Access Layer for shopping carts

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Dict, Any
from storefront.domain.cart import CartItem
from storefront.core.database import get_db_connection_dict


CART_COLUMNS = """
    ci.id, ci.user_id, ci.product_id, ci.title, ci.image, ci.size, ci.color,
    ci.price, ci.regular_price, ci.quantity, ci.created_at, ci.updated_at
"""


class CartRepository:
    """
    Repository for cart lines
    """

    def find_items(self, user_id: int) -> List[CartItem]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CART_COLUMNS}
                FROM cart_items ci
                WHERE ci.user_id = %s
                ORDER BY ci.created_at, ci.id
            """, (user_id,))
            return [CartItem(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_item(self, user_id: int, item_id: int) -> Optional[CartItem]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CART_COLUMNS}
                FROM cart_items ci
                WHERE ci.user_id = %s AND ci.id = %s
            """, (user_id, item_id))
            row = cursor.fetchone()
            return CartItem(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_line(self, user_id: int, product_id: int,
                  size: Optional[str], color: Optional[str]) -> Optional[CartItem]:
        """Find the line for (product, size, color); NULL sizes/colors compare equal"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CART_COLUMNS}
                FROM cart_items ci
                WHERE ci.user_id = %s
                  AND ci.product_id = %s
                  AND ci.size IS NOT DISTINCT FROM %s
                  AND ci.color IS NOT DISTINCT FROM %s
            """, (user_id, product_id, size, color))
            row = cursor.fetchone()
            return CartItem(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def add_item(self, user_id: int, item: Dict[str, Any]) -> CartItem:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO cart_items AS ci
                    (user_id, product_id, title, image, size, color, price, regular_price, quantity)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {CART_COLUMNS}
            """, (
                user_id, item['product_id'], item['title'], item.get('image'),
                item.get('size'), item.get('color'), item['price'], item['regular_price'],
                item['quantity'],
            ))
            row = cursor.fetchone()
            conn.commit()
            return CartItem(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update_item(self, item_id: int, fields: Dict[str, Any]) -> Optional[CartItem]:
        allowed = {"quantity", "price", "regular_price", "title", "image"}
        updates = {k: v for k, v in fields.items() if k in allowed}
        if not updates:
            return None

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause = ", ".join(f"{column} = %s" for column in updates)
            cursor.execute(f"""
                UPDATE cart_items ci SET {set_clause}, updated_at = NOW()
                WHERE ci.id = %s
                RETURNING {CART_COLUMNS}
            """, list(updates.values()) + [item_id])
            row = cursor.fetchone()
            conn.commit()
            return CartItem(**row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def remove_items(self, user_id: int, item_ids: List[int]) -> int:
        if not item_ids:
            return 0

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "DELETE FROM cart_items WHERE user_id = %s AND id = ANY(%s)",
                (user_id, list(item_ids))
            )
            removed = cursor.rowcount
            conn.commit()
            return removed

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def clear(self, user_id: int) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM cart_items WHERE user_id = %s", (user_id,))
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
