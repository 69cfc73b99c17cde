"""
Reviews API Endpoints
Product reviews for shoppers and review moderation for admins

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from storefront.core.auth import TokenUser, get_current_user, require_admin
from storefront.domain.review import ReviewCreate, ReviewStatusUpdate, ReviewReply
from storefront.services.review_service import ReviewService, get_review_service


router = APIRouter(prefix="/api/v1/reviews", tags=["Reviews"])


@router.get("/product/{product_id}")
async def get_product_reviews(
    product_id: int,
    sort: str = Query("newest", description="newest, oldest, rating_high, rating_low"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    service: ReviewService = Depends(get_review_service)
):
    """Approved reviews of a product with rating stats"""
    try:
        result = service.product_reviews(product_id, sort=sort, page=page, limit=limit)
        return {
            "status": "success",
            "data": result["reviews"],
            "stats": result["stats"],
            "pagination": result["pagination"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching reviews: {str(e)}")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    current_user: TokenUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    """Submit a review; it is published after approval"""
    try:
        review = service.create_review(current_user.id, data)
        if not review:
            raise HTTPException(status_code=404, detail="Product not found")

        return {
            "status": "success",
            "message": "Review submitted successfully! It will appear after approval.",
            "data": review.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error submitting review: {str(e)}")


# =============================================================================
# Admin
# =============================================================================

@router.get("/admin/all")
async def list_reviews(
    review_status: Optional[str] = Query(None, alias="status", description="pending, approved, rejected, all"),
    rating: Optional[int] = Query(None, ge=1, le=5),
    product_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Search title or comment"),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: TokenUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service)
):
    try:
        result = service.list_reviews(
            status=review_status, rating=rating, product_id=product_id,
            search=search, sort=sort, page=page, limit=limit,
        )
        return {
            "status": "success",
            "data": result["reviews"],
            "status_counts": result["status_counts"],
            "pagination": result["pagination"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching reviews: {str(e)}")


@router.put("/{review_id}/status")
async def update_review_status(
    review_id: int,
    data: ReviewStatusUpdate,
    admin: TokenUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service)
):
    """Approve or reject a review"""
    try:
        review = service.set_status(review_id, data.status)
        if not review:
            raise HTTPException(status_code=404, detail=f"Review {review_id} not found")

        return {
            "status": "success",
            "message": f"Review {data.status} successfully",
            "data": review.to_dict()
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating review: {str(e)}")


@router.put("/{review_id}/reply")
async def reply_to_review(
    review_id: int,
    data: ReviewReply,
    admin: TokenUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service)
):
    try:
        review = service.reply(review_id, data.comment, admin.id)
        if not review:
            raise HTTPException(status_code=404, detail=f"Review {review_id} not found")

        return {
            "status": "success",
            "message": "Reply added successfully",
            "data": review.to_dict()
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error replying to review: {str(e)}")


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    admin: TokenUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service)
):
    try:
        if not service.delete_review(review_id):
            raise HTTPException(status_code=404, detail=f"Review {review_id} not found")

        return {
            "status": "success",
            "message": "Review deleted successfully"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting review: {str(e)}")
