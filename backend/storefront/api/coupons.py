"""
Coupons API Endpoints
Coupon validation for shoppers and coupon management for admins

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from storefront.core.auth import TokenUser, get_current_user_optional, require_admin
from storefront.domain.coupon import CouponCreate, CouponUpdate, CouponValidateRequest
from storefront.services.coupon_service import CouponService, get_coupon_service


router = APIRouter(prefix="/api/v1/coupons", tags=["Coupons"])


@router.post("/validate")
async def validate_coupon(
    data: CouponValidateRequest,
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: CouponService = Depends(get_coupon_service)
):
    """
    Check a code against a cart total

    Per-user limits only apply when the shopper is signed in.
    """
    try:
        result = service.validate(data.code, data.cart_total, current_user.id if current_user else None)
        return {
            "status": "success",
            "message": "Coupon applied successfully",
            "data": result
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error validating coupon: {str(e)}")


# =============================================================================
# Admin
# =============================================================================

@router.get("")
async def list_coupons(
    search: Optional[str] = Query(None, description="Search code or description"),
    coupon_status: Optional[str] = Query(None, alias="status", description="active, inactive, expired"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: TokenUser = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service)
):
    try:
        result = service.list_coupons(search=search, status=coupon_status, page=page, limit=limit)
        return {
            "status": "success",
            "data": result["coupons"],
            "pagination": result["pagination"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching coupons: {str(e)}")


@router.get("/{coupon_id}")
async def get_coupon(
    coupon_id: int,
    admin: TokenUser = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service)
):
    try:
        coupon = service.get_coupon(coupon_id)
        if not coupon:
            raise HTTPException(status_code=404, detail=f"Coupon {coupon_id} not found")

        return {
            "status": "success",
            "data": coupon.to_dict()
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching coupon: {str(e)}")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_coupon(
    data: CouponCreate,
    admin: TokenUser = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service)
):
    try:
        coupon = service.create_coupon(data)
        return {
            "status": "success",
            "message": "Coupon created successfully",
            "data": coupon.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating coupon: {str(e)}")


@router.put("/{coupon_id}")
async def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    admin: TokenUser = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service)
):
    try:
        coupon = service.update_coupon(coupon_id, data)
        if not coupon:
            raise HTTPException(status_code=404, detail=f"Coupon {coupon_id} not found")

        return {
            "status": "success",
            "message": "Coupon updated successfully",
            "data": coupon.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating coupon: {str(e)}")


@router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: int,
    admin: TokenUser = Depends(require_admin),
    service: CouponService = Depends(get_coupon_service)
):
    try:
        if not service.delete_coupon(coupon_id):
            raise HTTPException(status_code=404, detail=f"Coupon {coupon_id} not found")

        return {
            "status": "success",
            "message": "Coupon deleted successfully"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting coupon: {str(e)}")
