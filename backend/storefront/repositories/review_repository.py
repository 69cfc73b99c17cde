"""
Review Repository - Data Access Layer for product reviews

Moderation writes (status change, delete) refresh the product's
rating_average and rating_count in the same transaction.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any
from storefront.domain.review import Review
from storefront.core.database import get_db_connection_dict


REVIEW_COLUMNS = """
    r.id, r.product_id, r.user_id, r.rating, r.title, r.comment, r.status,
    r.is_verified_purchase, r.admin_reply, r.replied_at, r.replied_by,
    r.created_at, r.updated_at,
    u.name AS user_name, p.title AS product_title, p.slug AS product_slug
"""

REVIEW_FROM = """
    FROM reviews r
    LEFT JOIN users u ON u.id = r.user_id
    LEFT JOIN products p ON p.id = r.product_id
"""

SORT_OPTIONS = {
    "newest": "r.created_at DESC",
    "oldest": "r.created_at ASC",
    "rating_high": "r.rating DESC, r.created_at DESC",
    "rating_low": "r.rating ASC, r.created_at DESC",
}


def _refresh_product_rating(cursor, product_id: int) -> None:
    """Recompute the product's rating from its approved reviews"""
    cursor.execute("""
        UPDATE products
        SET rating_average = COALESCE((
                SELECT ROUND(AVG(rating)::numeric, 1)
                FROM reviews
                WHERE product_id = %s AND status = 'approved'
            ), 0),
            rating_count = (
                SELECT COUNT(*)
                FROM reviews
                WHERE product_id = %s AND status = 'approved'
            ),
            updated_at = NOW()
        WHERE id = %s
    """, (product_id, product_id, product_id))


class ReviewRepository:
    """
    Repository for Review data access
    """

    def find_by_id(self, review_id: int) -> Optional[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {REVIEW_COLUMNS} {REVIEW_FROM} WHERE r.id = %s", (review_id,))
            row = cursor.fetchone()
            return Review(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def exists_for(self, product_id: int, user_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT 1 FROM reviews WHERE product_id = %s AND user_id = %s",
                (product_id, user_id)
            )
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def has_delivered_purchase(self, user_id: int, product_id: int) -> bool:
        """True when the customer has a delivered order containing the product"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT 1
                FROM orders o
                JOIN order_items oi ON oi.order_id = o.id
                WHERE o.user_id = %s AND oi.product_id = %s AND o.order_status = 'delivered'
                LIMIT 1
            """, (user_id, product_id))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, product_id: int, user_id: int, rating: int, title: Optional[str],
               comment: str, is_verified_purchase: bool) -> Optional[Review]:
        """
        Insert a pending review

        Returns:
            The new Review, or None if the customer already reviewed the product
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO reviews (product_id, user_id, rating, title, comment, status, is_verified_purchase)
                VALUES (%s, %s, %s, %s, %s, 'pending', %s)
                ON CONFLICT (product_id, user_id) DO NOTHING
                RETURNING id
            """, (product_id, user_id, rating, title, comment, is_verified_purchase))
            row = cursor.fetchone()
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(row['id']) if row else None

    def find_for_product(
        self,
        product_id: int,
        sort: str = "newest",
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[Review], int]:
        """Approved reviews of one product"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT COUNT(*) as total
                FROM reviews
                WHERE product_id = %s AND status = 'approved'
            """, (product_id,))
            total = cursor.fetchone()['total']

            order_by = SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"])
            cursor.execute(f"""
                SELECT {REVIEW_COLUMNS}
                {REVIEW_FROM}
                WHERE r.product_id = %s AND r.status = 'approved'
                ORDER BY {order_by}, r.id DESC
                LIMIT %s OFFSET %s
            """, (product_id, limit, offset))
            return [Review(**row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def rating_counts(self, product_id: int) -> Dict[int, int]:
        """{stars: count} over approved reviews"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT rating, COUNT(*) as count
                FROM reviews
                WHERE product_id = %s AND status = 'approved'
                GROUP BY rating
            """, (product_id,))
            return {row['rating']: row['count'] for row in cursor.fetchall()}

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        rating: Optional[int] = None,
        product_id: Optional[int] = None,
        search: Optional[str] = None,
        sort: str = "newest",
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Review], int]:
        """
        Admin review listing

        Args:
            search: Matches review title or comment
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params: List[Any] = []

            if status:
                conditions.append("r.status = %s")
                params.append(status)

            if rating:
                conditions.append("r.rating = %s")
                params.append(rating)

            if product_id:
                conditions.append("r.product_id = %s")
                params.append(product_id)

            if search:
                conditions.append("(r.title ILIKE %s OR r.comment ILIKE %s)")
                search_param = f"%{search.strip()}%"
                params.extend([search_param, search_param])

            where_clause = " AND ".join(conditions) if conditions else "1=1"
            order_by = SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"])

            cursor.execute(f"SELECT COUNT(*) as total FROM reviews r WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {REVIEW_COLUMNS}
                {REVIEW_FROM}
                WHERE {where_clause}
                ORDER BY {order_by}, r.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            return [Review(**row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def status_counts(self) -> Dict[str, int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT status, COUNT(*) as count FROM reviews GROUP BY status")
            return {row['status']: row['count'] for row in cursor.fetchall()}

        finally:
            cursor.close()
            conn.close()

    def update_status(self, review_id: int, status: str) -> Optional[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE reviews SET status = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING product_id
            """, (status, review_id))
            row = cursor.fetchone()
            if not row:
                conn.rollback()
                return None

            _refresh_product_rating(cursor, row['product_id'])
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(review_id)

    def reply(self, review_id: int, comment: str, admin_id: int) -> Optional[Review]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE reviews
                SET admin_reply = %s, replied_at = NOW(), replied_by = %s, updated_at = NOW()
                WHERE id = %s
            """, (comment, admin_id, review_id))
            updated = cursor.rowcount > 0
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(review_id) if updated else None

    def delete(self, review_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM reviews WHERE id = %s RETURNING product_id", (review_id,))
            row = cursor.fetchone()
            if row:
                _refresh_product_rating(cursor, row['product_id'])
            conn.commit()
            return row is not None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
