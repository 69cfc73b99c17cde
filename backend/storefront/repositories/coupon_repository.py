"""
Coupon Repository - Data Access Layer for coupons

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any
from storefront.domain.coupon import Coupon
from storefront.core.database import get_db_connection_dict


COUPON_COLUMNS = """
    c.id, c.code, c.description, c.discount_type, c.discount_value,
    c.min_order_amount, c.max_discount, c.usage_limit, c.used_count,
    c.per_user_limit, c.start_date, c.expiry_date, c.status,
    c.created_at, c.updated_at
"""

WRITABLE_COLUMNS = (
    "code", "description", "discount_type", "discount_value", "min_order_amount",
    "max_discount", "usage_limit", "per_user_limit", "start_date", "expiry_date", "status",
)


def _attach_usages(cursor, rows: List[dict]) -> List[Coupon]:
    """Load redemptions for all coupons in ONE QUERY"""
    if not rows:
        return []

    coupon_ids = [row['id'] for row in rows]
    cursor.execute("""
        SELECT coupon_id, user_id, order_number, used_at
        FROM coupon_usages
        WHERE coupon_id = ANY(%s)
        ORDER BY used_at
    """, (coupon_ids,))

    usages_by_coupon: Dict[int, list] = {}
    for usage in cursor.fetchall():
        usages_by_coupon.setdefault(usage['coupon_id'], []).append({
            'user_id': usage['user_id'],
            'order_number': usage['order_number'],
            'used_at': usage['used_at'],
        })

    coupons = []
    for row in rows:
        data = dict(row)
        data['usages'] = usages_by_coupon.get(row['id'], [])
        coupons.append(Coupon(**data))
    return coupons


def record_usage(cursor, coupon_id: int, user_id: Optional[int], order_number: str) -> None:
    """Register a redemption inside the caller's transaction"""
    cursor.execute("""
        INSERT INTO coupon_usages (coupon_id, user_id, order_number)
        VALUES (%s, %s, %s)
    """, (coupon_id, user_id, order_number))
    cursor.execute(
        "UPDATE coupons SET used_count = used_count + 1, updated_at = NOW() WHERE id = %s",
        (coupon_id,)
    )


def release_usage(cursor, coupon_code: str, order_number: str) -> None:
    """Undo a redemption inside the caller's transaction (order cancelled)"""
    cursor.execute("""
        DELETE FROM coupon_usages cu
        USING coupons c
        WHERE cu.coupon_id = c.id AND c.code = %s AND cu.order_number = %s
        RETURNING c.id
    """, (coupon_code, order_number))
    released = cursor.fetchall()
    if released:
        cursor.execute("""
            UPDATE coupons SET used_count = GREATEST(used_count - %s, 0), updated_at = NOW()
            WHERE code = %s
        """, (len(released), coupon_code))


class CouponRepository:
    """
    Repository for Coupon data access
    """

    def find_by_code(self, code: str, cursor=None) -> Optional[Coupon]:
        """
        Find coupon by code (case-insensitive) with its usages.

        Pass a cursor to read inside an open transaction; the row is then
        locked FOR UPDATE.
        """
        if cursor is not None:
            cursor.execute(
                f"SELECT {COUPON_COLUMNS} FROM coupons c WHERE c.code = %s FOR UPDATE",
                (code.strip().upper(),)
            )
            row = cursor.fetchone()
            return _attach_usages(cursor, [row])[0] if row else None

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {COUPON_COLUMNS} FROM coupons c WHERE c.code = %s",
                (code.strip().upper(),)
            )
            row = cursor.fetchone()
            return _attach_usages(cursor, [row])[0] if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, coupon_id: int) -> Optional[Coupon]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {COUPON_COLUMNS} FROM coupons c WHERE c.id = %s", (coupon_id,))
            row = cursor.fetchone()
            return _attach_usages(cursor, [row])[0] if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Coupon], int]:
        """
        Find coupons with filters

        Args:
            search: Matches code or description
            status: active / inactive, or "expired" for coupons past their expiry date
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if search:
                conditions.append("(c.code ILIKE %s OR c.description ILIKE %s)")
                search_param = f"%{search}%"
                params.extend([search_param, search_param])

            if status == "expired":
                conditions.append("(c.status = 'expired' OR c.expiry_date < NOW())")
            elif status:
                conditions.append("c.status = %s")
                params.append(status)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM coupons c
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {COUPON_COLUMNS}
                FROM coupons c
                WHERE {where_clause}
                ORDER BY c.created_at DESC, c.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return _attach_usages(cursor, cursor.fetchall()), total

        finally:
            cursor.close()
            conn.close()

    def code_exists(self, code: str, exclude_id: Optional[int] = None) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if exclude_id is None:
                cursor.execute("SELECT 1 FROM coupons WHERE code = %s", (code,))
            else:
                cursor.execute("SELECT 1 FROM coupons WHERE code = %s AND id <> %s", (code, exclude_id))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: Dict[str, Any]) -> Coupon:
        columns = [c for c in WRITABLE_COLUMNS if c in data and data[c] is not None]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO coupons AS c ({", ".join(columns)})
                VALUES ({", ".join(["%s"] * len(columns))})
                RETURNING {COUPON_COLUMNS}
            """, [data[c] for c in columns])
            row = cursor.fetchone()
            conn.commit()
            return Coupon(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, coupon_id: int, data: Dict[str, Any]) -> Optional[Coupon]:
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        if not columns:
            return self.find_by_id(coupon_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause = ", ".join(f"{c} = %s" for c in columns)
            cursor.execute(f"""
                UPDATE coupons c SET {set_clause}, updated_at = NOW()
                WHERE c.id = %s
                RETURNING {COUPON_COLUMNS}
            """, [data[c] for c in columns] + [coupon_id])
            row = cursor.fetchone()
            if not row:
                conn.rollback()
                return None
            coupon = _attach_usages(cursor, [row])[0]
            conn.commit()
            return coupon

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, coupon_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM coupons WHERE id = %s", (coupon_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
