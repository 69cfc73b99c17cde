"""
Dashboard API Endpoints
Admin statistics, sales graph and best sellers

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from storefront.core.auth import TokenUser, require_admin
from storefront.services.report_service import ReportService, get_report_service


router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def get_dashboard_stats(
    admin: TokenUser = Depends(require_admin),
    service: ReportService = Depends(get_report_service)
):
    """
    Dashboard overview

    Returns:
    - Revenue (lifetime, today, this month) excluding cancelled/refunded
    - Order, customer and product counts
    - Orders per status
    - 10 most recent orders
    - Low stock products
    """
    try:
        return {
            "status": "success",
            "data": service.dashboard_stats()
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching dashboard stats: {str(e)}")


@router.get("/sales-graph")
async def get_sales_graph(
    period: str = Query("7days", description="7days, 30days or 12months"),
    admin: TokenUser = Depends(require_admin),
    service: ReportService = Depends(get_report_service)
):
    """Revenue, orders and items per day (or month); empty buckets included"""
    try:
        return {
            "status": "success",
            "data": service.sales_graph(period)
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching sales graph: {str(e)}")


@router.get("/top-products")
async def get_top_products(
    limit: int = Query(5, ge=1, le=50),
    period: Optional[str] = Query(None, description="7days or 30days (all time when omitted)"),
    admin: TokenUser = Depends(require_admin),
    service: ReportService = Depends(get_report_service)
):
    try:
        return {
            "status": "success",
            "data": service.top_products(limit=limit, period=period)
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching top products: {str(e)}")
