"""
Report Repository - Aggregate queries for the admin dashboard

Revenue figures exclude cancelled and refunded orders.

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import List, Optional, Dict, Any
from storefront.domain.order_status import NON_REVENUE_STATUSES
from storefront.core.database import get_db_connection_dict


REVENUE_FILTER_SQL = "order_status NOT IN ({})".format(
    ", ".join(f"'{status}'" for status in NON_REVENUE_STATUSES)
)


class ReportRepository:
    """
    Read-only aggregates over orders, order items and products
    """

    def order_totals(self) -> Dict[str, Any]:
        """Lifetime, today, month and pending figures in ONE QUERY"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT
                    COUNT(*) as total_orders,
                    COALESCE(SUM(total) FILTER (WHERE {REVENUE_FILTER_SQL}), 0) as total_revenue,
                    COUNT(*) FILTER (WHERE created_at >= CURRENT_DATE) as today_orders,
                    COALESCE(SUM(total) FILTER (
                        WHERE created_at >= CURRENT_DATE AND {REVENUE_FILTER_SQL}
                    ), 0) as today_revenue,
                    COALESCE(SUM(total) FILTER (
                        WHERE created_at >= DATE_TRUNC('month', CURRENT_DATE) AND {REVENUE_FILTER_SQL}
                    ), 0) as month_revenue,
                    COUNT(*) FILTER (WHERE order_status = 'pending') as pending_orders
                FROM orders
            """)
            row = cursor.fetchone()
            return {
                "total_orders": row['total_orders'],
                "total_revenue": float(row['total_revenue'] or 0),
                "today_orders": row['today_orders'],
                "today_revenue": float(row['today_revenue'] or 0),
                "month_revenue": float(row['month_revenue'] or 0),
                "pending_orders": row['pending_orders'],
            }

        finally:
            cursor.close()
            conn.close()

    def sales_by_bucket(self, since: datetime, bucket: str = "day") -> List[Dict[str, Any]]:
        """
        Revenue, orders and items sold per day or month since a date

        Only buckets that have orders are returned; callers fill the gaps.
        """
        if bucket not in ("day", "month"):
            raise ValueError(f"Unsupported bucket: {bucket}")

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT
                    DATE_TRUNC('{bucket}', o.created_at)::date as bucket,
                    COUNT(*) as orders,
                    COALESCE(SUM(o.total), 0) as revenue,
                    COALESCE(SUM(oi.items), 0) as items
                FROM orders o
                LEFT JOIN (
                    SELECT order_id, SUM(quantity) as items
                    FROM order_items
                    GROUP BY order_id
                ) oi ON oi.order_id = o.id
                WHERE o.created_at >= %s AND o.{REVENUE_FILTER_SQL}
                GROUP BY DATE_TRUNC('{bucket}', o.created_at)
                ORDER BY bucket
            """, (since,))

            return [
                {
                    "bucket": row['bucket'],
                    "orders": row['orders'],
                    "revenue": float(row['revenue'] or 0),
                    "items": int(row['items'] or 0),
                }
                for row in cursor.fetchall()
            ]

        finally:
            cursor.close()
            conn.close()

    def top_products(self, limit: int = 5, since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Best sellers by units sold"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = [f"o.{REVENUE_FILTER_SQL}", "oi.product_id IS NOT NULL"]
            params: List[Any] = []

            if since:
                conditions.append("o.created_at >= %s")
                params.append(since)

            where_clause = " AND ".join(conditions)

            cursor.execute(f"""
                SELECT
                    oi.product_id,
                    MAX(oi.title) as title,
                    MAX(oi.image) as image,
                    SUM(oi.quantity) as total_sold,
                    COALESCE(SUM(oi.total), 0) as total_revenue,
                    COUNT(DISTINCT oi.order_id) as order_count
                FROM order_items oi
                JOIN orders o ON oi.order_id = o.id
                WHERE {where_clause}
                GROUP BY oi.product_id
                ORDER BY total_sold DESC, total_revenue DESC
                LIMIT %s
            """, params + [limit])

            return [
                {
                    "product_id": row['product_id'],
                    "title": row['title'],
                    "image": row['image'],
                    "total_sold": int(row['total_sold'] or 0),
                    "total_revenue": float(row['total_revenue'] or 0),
                    "order_count": row['order_count'],
                }
                for row in cursor.fetchall()
            ]

        finally:
            cursor.close()
            conn.close()
