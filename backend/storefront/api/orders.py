"""
Orders API Endpoints
Checkout, customer order history and tracking, admin order management

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from typing import Optional
from datetime import date

from storefront.core.auth import TokenUser, get_current_user, require_admin
from storefront.domain.order import (
    PlaceOrderRequest,
    OrderStatusUpdate,
    CancelOrderRequest,
    MarkPaidRequest,
    TrackOrderRequest,
)
from storefront.services.checkout_service import CheckoutService, get_checkout_service
from storefront.services.order_service import OrderService, get_order_service
from storefront.services.report_service import ReportService, get_report_service


router = APIRouter(prefix="/api/v1/orders", tags=["Orders"])


# =============================================================================
# Checkout
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def place_order(
    data: PlaceOrderRequest,
    current_user: TokenUser = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service)
):
    """
    Place an order from the given items, or from the cart when items is omitted

    Prices are taken from the catalog at order time; the client total is
    never trusted. Every stock or size problem is reported in one response.
    """
    try:
        order = service.place_order(current_user, data)
        return {
            "status": "success",
            "message": "Order placed successfully",
            "data": order.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error placing order: {str(e)}")


# =============================================================================
# Customer
# =============================================================================

@router.get("/my-orders")
async def get_my_orders(
    order_status: Optional[str] = Query(None, alias="status", description="Filter by status ('all' for every order)"),
    sort: str = Query("newest", description="newest, oldest, total_high, total_low"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    try:
        result = service.my_orders(current_user.id, status=order_status, sort=sort, page=page, limit=limit)
        return {
            "status": "success",
            "data": result["orders"],
            "pagination": result["pagination"]
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/my-orders/{id_or_number}")
async def get_my_order(
    id_or_number: str,
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    try:
        order = service.get_my_order(current_user.id, id_or_number)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")

        return {
            "status": "success",
            "data": order.to_dict()
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")


@router.put("/my-orders/{order_id}/cancel")
async def cancel_my_order(
    order_id: int,
    data: CancelOrderRequest,
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Cancel a pending or confirmed order"""
    try:
        order = service.cancel_my_order(current_user.id, order_id, data.reason)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")

        return {
            "status": "success",
            "message": "Order cancelled successfully",
            "data": order.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error cancelling order: {str(e)}")


@router.post("/track")
async def track_order(
    data: TrackOrderRequest,
    service: OrderService = Depends(get_order_service)
):
    """
    Guest order tracking by order number plus checkout email or phone

    A wrong contact answers exactly like an unknown order number.
    """
    try:
        tracking = service.track(data.order_number.strip(), data.contact)
        if not tracking:
            raise HTTPException(status_code=404, detail="No order found with these details")

        return {
            "status": "success",
            "data": tracking
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error tracking order: {str(e)}")


# =============================================================================
# Admin
# =============================================================================

@router.get("/admin/all")
async def admin_search_orders(
    search: Optional[str] = Query(None, description="Order number, customer name, email or phone"),
    order_status: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = Query(None),
    payment_method: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, description="YYYY-MM-DD (inclusive)"),
    min_total: Optional[float] = Query(None, ge=0),
    max_total: Optional[float] = Query(None, ge=0),
    sort: str = Query("newest", description="newest, oldest, total_high, total_low, status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: TokenUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    try:
        result = service.search_orders(
            {
                "search": search,
                "order_status": order_status,
                "payment_status": payment_status,
                "payment_method": payment_method,
                "start_date": start_date,
                "end_date": end_date,
                "min_total": min_total,
                "max_total": max_total,
            },
            sort=sort,
            page=page,
            limit=limit,
        )
        return {
            "status": "success",
            "data": result["orders"],
            "pagination": result["pagination"],
            "status_counts": result["status_counts"]
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching orders: {str(e)}")


@router.get("/admin/export")
async def admin_export_orders(
    search: Optional[str] = Query(None),
    order_status: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = Query(None),
    payment_method: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    sort: str = Query("newest"),
    admin: TokenUser = Depends(require_admin),
    service: ReportService = Depends(get_report_service)
):
    """Download the filtered order search as CSV"""
    try:
        buffer, filename = service.export_orders_csv(
            {
                "search": search,
                "order_status": order_status,
                "payment_status": payment_status,
                "payment_method": payment_method,
                "start_date": start_date,
                "end_date": end_date,
            },
            sort=sort,
        )
        return StreamingResponse(
            buffer,
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}"
            }
        )
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error exporting orders: {str(e)}")


@router.get("/admin/{order_id}")
async def admin_get_order(
    order_id: int,
    admin: TokenUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """Order detail with the customer's order count and lifetime spend"""
    try:
        order = service.get_order(order_id)
        if not order:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

        return {
            "status": "success",
            "data": order
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching order: {str(e)}")


@router.patch("/admin/{order_id}/status")
async def admin_update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    admin: TokenUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """
    Move an order along its lifecycle and/or update payment, notes, tracking

    Invalid transitions (e.g. delivered -> pending) are rejected with 400.
    """
    try:
        order = service.update_status(order_id, data, admin.id)
        if not order:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

        return {
            "status": "success",
            "message": "Order updated successfully",
            "data": order.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating order: {str(e)}")


@router.patch("/admin/{order_id}/mark-paid")
async def admin_mark_paid(
    order_id: int,
    data: MarkPaidRequest,
    admin: TokenUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    try:
        order = service.mark_paid(order_id, data.transaction_id)
        if not order:
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

        return {
            "status": "success",
            "message": "Order marked as paid",
            "data": order.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error marking order as paid: {str(e)}")


@router.delete("/admin/{order_id}")
async def admin_delete_order(
    order_id: int,
    admin: TokenUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    try:
        if not service.delete_order(order_id):
            raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

        return {
            "status": "success",
            "message": "Order deleted successfully"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting order: {str(e)}")
