"""
Newsletter API Endpoints
Public signup/unsubscribe and admin subscriber management

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from typing import Optional

from storefront.core.auth import TokenUser, require_admin
from storefront.core.rate_limit import get_client_ip
from storefront.domain.newsletter import SubscribeRequest, UnsubscribeRequest
from storefront.services.newsletter_service import NewsletterService, CSV_FILENAME, get_newsletter_service


router = APIRouter(prefix="/api/v1/newsletter", tags=["Newsletter"])


@router.post("/subscribe")
async def subscribe(
    data: SubscribeRequest,
    request: Request,
    service: NewsletterService = Depends(get_newsletter_service)
):
    """
    Subscribe an email address

    201 for a new subscriber, 200 for a returning one.
    """
    try:
        subscriber, created, message = service.subscribe(
            data.email, data.name, data.source, get_client_ip(request)
        )
        return JSONResponse(
            status_code=201 if created else 200,
            content={
                "status": "success",
                "message": message,
                "data": {"email": subscriber.email, "name": subscriber.name}
            }
        )
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error subscribing: {str(e)}")


@router.post("/unsubscribe")
async def unsubscribe(
    data: UnsubscribeRequest,
    service: NewsletterService = Depends(get_newsletter_service)
):
    try:
        if not service.unsubscribe(data.email):
            raise HTTPException(status_code=404, detail="Email not found in our subscriber list")

        return {
            "status": "success",
            "message": "You have been unsubscribed from our newsletter"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error unsubscribing: {str(e)}")


# =============================================================================
# Admin
# =============================================================================

@router.get("/subscribers")
async def list_subscribers(
    search: Optional[str] = Query(None, description="Search email or name"),
    subscriber_status: Optional[str] = Query(None, alias="status", description="subscribed, unsubscribed, bounced"),
    source: Optional[str] = Query(None),
    sort: str = Query("newest", description="newest, oldest, email"),
    page: int = Query(1, ge=1),
    limit: int = Query(30, ge=1, le=100),
    admin: TokenUser = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service)
):
    try:
        result = service.list_subscribers(
            search=search, status=subscriber_status, source=source, sort=sort, page=page, limit=limit
        )
        return {
            "status": "success",
            "data": result["subscribers"],
            "pagination": result["pagination"],
            "stats": result["stats"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching subscribers: {str(e)}")


@router.get("/subscribers/export")
async def export_subscribers(
    subscriber_status: Optional[str] = Query(None, alias="status"),
    source: Optional[str] = Query(None),
    admin: TokenUser = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service)
):
    """Download subscribers as CSV"""
    try:
        buffer = service.export_csv(status=subscriber_status, source=source)
        return StreamingResponse(
            buffer,
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={CSV_FILENAME}"
            }
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error exporting subscribers: {str(e)}")


@router.delete("/subscribers/{subscriber_id}")
async def delete_subscriber(
    subscriber_id: int,
    admin: TokenUser = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service)
):
    try:
        if not service.delete_subscriber(subscriber_id):
            raise HTTPException(status_code=404, detail="Subscriber not found")

        return {
            "status": "success",
            "message": "Subscriber deleted successfully"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting subscriber: {str(e)}")
