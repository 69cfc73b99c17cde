"""
Report Service - admin dashboard figures and order exports

Author: TM3
Date: 2025-10-17
"""
import io
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Dict, Any, List, Tuple

from dateutil.relativedelta import relativedelta

from storefront.domain.order_status import normalize_status
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.report_repository import ReportRepository
from storefront.repositories.user_repository import UserRepository
from storefront.services.csv_export import to_csv_bytes

logger = logging.getLogger(__name__)

SALES_PERIODS = {
    "7days": ("day", 7),
    "30days": ("day", 30),
    "12months": ("month", 12),
}
TOP_PRODUCT_PERIODS = {"7days": 7, "30days": 30}

LOW_STOCK_THRESHOLD = 10
RECENT_ORDERS = 10

ORDER_CSV_COLUMNS = [
    "Order Number", "Date", "Customer", "Email", "Phone", "Items",
    "Subtotal", "Discount", "Shipping", "Total",
    "Payment Method", "Payment Status", "Order Status",
]


def sales_buckets(period: str, today: Optional[date] = None) -> Tuple[str, List[date]]:
    """
    Every bucket start date of a period, oldest first

    Raises:
        ValueError: on an unknown period
    """
    if period not in SALES_PERIODS:
        raise ValueError(f"Invalid period. Use one of: {', '.join(SALES_PERIODS)}")

    today = today or date.today()
    bucket, count = SALES_PERIODS[period]

    if bucket == "day":
        start = today - timedelta(days=count - 1)
        return bucket, [start + timedelta(days=i) for i in range(count)]

    start = today.replace(day=1) - relativedelta(months=count - 1)
    return bucket, [start + relativedelta(months=i) for i in range(count)]


class ReportService:
    """
    Dashboard statistics, sales graph, best sellers and CSV exports
    """

    def __init__(
        self,
        report_repo: Optional[ReportRepository] = None,
        order_repo: Optional[OrderRepository] = None,
        product_repo: Optional[ProductRepository] = None,
        user_repo: Optional[UserRepository] = None,
    ):
        self.report_repo = report_repo or ReportRepository()
        self.order_repo = order_repo or OrderRepository()
        self.product_repo = product_repo or ProductRepository()
        self.user_repo = user_repo or UserRepository()

    def dashboard_stats(self) -> Dict[str, Any]:
        totals = self.report_repo.order_totals()
        recent, _ = self.order_repo.search(sort="newest", limit=RECENT_ORDERS, offset=0)
        low_stock = self.product_repo.find_low_stock(threshold=LOW_STOCK_THRESHOLD, limit=10)

        return {
            **totals,
            "total_customers": self.user_repo.count_customers(),
            "total_products": self.product_repo.count(),
            "status_breakdown": self.order_repo.status_counts(),
            "recent_orders": [order.to_dict() for order in recent],
            "low_stock_products": [product.to_summary() for product in low_stock],
        }

    def sales_graph(self, period: str = "7days", today: Optional[date] = None) -> Dict[str, Any]:
        bucket, starts = sales_buckets(period, today)
        rows = self.report_repo.sales_by_bucket(
            datetime.combine(starts[0], datetime.min.time()), bucket=bucket
        )

        # Lookup by bucket start; missing buckets are zero
        by_bucket = {row['bucket']: row for row in rows}
        label_format = "%Y-%m-%d" if bucket == "day" else "%Y-%m"

        data = []
        for start in starts:
            row = by_bucket.get(start, {})
            data.append({
                "date": start.strftime(label_format),
                "revenue": round(float(row.get('revenue', 0)), 2),
                "orders": int(row.get('orders', 0)),
                "items": int(row.get('items', 0)),
            })

        total_revenue = round(sum(point["revenue"] for point in data), 2)
        total_orders = sum(point["orders"] for point in data)

        return {
            "period": period,
            "data": data,
            "summary": {
                "total_revenue": total_revenue,
                "total_orders": total_orders,
                "avg_order_value": round(total_revenue / total_orders, 2) if total_orders else 0.0,
            },
        }

    def top_products(self, limit: int = 5, period: Optional[str] = None) -> List[Dict[str, Any]]:
        since = None
        if period:
            if period not in TOP_PRODUCT_PERIODS:
                raise ValueError(f"Invalid period. Use one of: {', '.join(TOP_PRODUCT_PERIODS)}")
            since = datetime.now() - timedelta(days=TOP_PRODUCT_PERIODS[period])

        limit = max(1, min(int(limit or 5), 50))
        return self.report_repo.top_products(limit=limit, since=since)

    def export_orders_csv(self, filters: Optional[Dict[str, Any]] = None,
                          sort: str = "newest") -> Tuple[io.BytesIO, str]:
        """
        Admin order search as CSV (no pagination)

        Returns:
            Tuple of (buffer, attachment filename)
        """
        filters = dict(filters or {})
        if filters.get("order_status") in (None, "", "all"):
            filters.pop("order_status", None)
        else:
            filters["order_status"] = normalize_status(filters["order_status"])

        orders, total = self.order_repo.search(sort=sort, limit=None, offset=0, **filters)

        rows = []
        for order in orders:
            address = order.shipping_address
            rows.append([
                order.order_number,
                order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else "",
                address.full_name or order.customer_name or "",
                order.contact_email or "",
                address.phone or order.customer_phone or "",
                order.item_count,
                f"{order.subtotal:.2f}",
                f"{order.discount:.2f}",
                f"{order.shipping_cost:.2f}",
                f"{order.total:.2f}",
                order.payment_method,
                order.payment_status,
                order.order_status,
            ])

        logger.info(f"Exported {total} orders to CSV")
        filename = f"orders-{date.today().isoformat()}.csv"
        return to_csv_bytes(ORDER_CSV_COLUMNS, rows), filename


# Singleton instance for easy import
_report_service: Optional[ReportService] = None

def get_report_service() -> ReportService:
    """Get the singleton report service instance"""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service
