"""
Media API Endpoints
Admin image uploads to Supabase Storage and the media library

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File, Form, status
from typing import Optional, List

from storefront.core.auth import TokenUser, require_admin
from storefront.domain.media import UploadFromUrlRequest
from storefront.services.media_service import MediaService, get_media_service


router = APIRouter(prefix="/api/v1/media", tags=["Media"])


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Form("products"),
    alt: Optional[str] = Form(None),
    admin: TokenUser = Depends(require_admin),
    service: MediaService = Depends(get_media_service)
):
    """Upload one image (JPEG, PNG, WebP or GIF, max 5 MB)"""
    try:
        content = await file.read()
        asset = service.upload(
            content, file.filename, file.content_type, folder=folder, alt=alt, uploaded_by=admin.id
        )
        return {
            "status": "success",
            "message": "Image uploaded successfully",
            "data": asset.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error uploading image: {str(e)}")


@router.post("/upload-multiple", status_code=status.HTTP_201_CREATED)
async def upload_images(
    files: List[UploadFile] = File(...),
    folder: str = Form("products"),
    admin: TokenUser = Depends(require_admin),
    service: MediaService = Depends(get_media_service)
):
    """Upload up to 6 images; the first becomes the main image"""
    try:
        payload = [(await f.read(), f.filename, f.content_type) for f in files]
        assets = service.upload_many(payload, folder=folder, uploaded_by=admin.id)
        return {
            "status": "success",
            "message": f"{len(assets)} image(s) uploaded successfully",
            "data": [asset.to_dict() for asset in assets]
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error uploading images: {str(e)}")


@router.post("/from-url", status_code=status.HTTP_201_CREATED)
async def upload_from_url(
    data: UploadFromUrlRequest,
    admin: TokenUser = Depends(require_admin),
    service: MediaService = Depends(get_media_service)
):
    """Fetch a remote image and store it in the library"""
    try:
        asset = service.upload_from_url(str(data.url), folder=data.folder, alt=data.alt, uploaded_by=admin.id)
        return {
            "status": "success",
            "message": "Image uploaded successfully",
            "data": asset.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error uploading image: {str(e)}")


@router.get("")
async def list_media(
    folder: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Search filename or alt text"),
    page: int = Query(1, ge=1),
    limit: int = Query(40, ge=1, le=100),
    admin: TokenUser = Depends(require_admin),
    service: MediaService = Depends(get_media_service)
):
    try:
        result = service.list_media(folder=folder, search=search, page=page, limit=limit)
        return {
            "status": "success",
            "data": result["media"],
            "pagination": result["pagination"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching media: {str(e)}")


@router.delete("/{public_id:path}")
async def delete_media(
    public_id: str,
    admin: TokenUser = Depends(require_admin),
    service: MediaService = Depends(get_media_service)
):
    """Delete by bucket path, e.g. products/3f2a....jpg"""
    try:
        if not service.delete(public_id):
            raise HTTPException(status_code=404, detail="Image not found")

        return {
            "status": "success",
            "message": "Image deleted successfully"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting image: {str(e)}")
