"""
Media Service - product images in Supabase Storage

Uploaded files are validated (type and size), stored under
<folder>/<uuid>.<ext> in the MEDIA_BUCKET bucket and recorded in the media
library table with their public URL.

Author: TM3
Date: 2025-10-17
"""
import logging
import uuid
from typing import Optional, Dict, Any, List, Tuple

import httpx

from storefront.core.config import settings
from storefront.core.database import get_supabase
from storefront.domain.media import (
    MediaAsset,
    ALLOWED_IMAGE_TYPES,
    MAX_IMAGE_BYTES,
    MAX_FILES_PER_UPLOAD,
)
from storefront.domain.pagination import normalize_paging, build_pagination
from storefront.repositories.media_repository import MediaRepository

logger = logging.getLogger(__name__)

URL_FETCH_TIMEOUT = 15.0


def validate_image(content_type: Optional[str], size: int) -> str:
    """
    Check an upload against the allowed types and size

    Returns:
        File extension for the content type

    Raises:
        ValueError: on an unsupported type, an empty file or an oversize file
    """
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValueError("Only JPEG, PNG, WebP and GIF images are allowed")
    if size <= 0:
        raise ValueError("File is empty")
    if size > MAX_IMAGE_BYTES:
        raise ValueError(f"File is too large (max {MAX_IMAGE_BYTES // (1024 * 1024)} MB)")
    return ALLOWED_IMAGE_TYPES[content_type]


def _clean_folder(folder: Optional[str]) -> str:
    folder = (folder or "products").strip().strip("/")
    return "".join(ch for ch in folder if ch.isalnum() or ch in "-_/") or "products"


class MediaService:
    """
    Image uploads and the media library
    """

    def __init__(self, media_repo: Optional[MediaRepository] = None, storage=None):
        self.media_repo = media_repo or MediaRepository()
        self._storage = storage

    @property
    def storage(self):
        """Bucket client; resolved lazily so imports work without credentials"""
        if self._storage is None:
            self._storage = get_supabase().storage.from_(settings.MEDIA_BUCKET)
        return self._storage

    def upload(self, data: bytes, filename: Optional[str], content_type: Optional[str],
               folder: str = "products", alt: Optional[str] = None,
               uploaded_by: Optional[int] = None) -> MediaAsset:
        extension = validate_image(content_type, len(data))
        folder = _clean_folder(folder)
        public_id = f"{folder}/{uuid.uuid4().hex}.{extension}"
        content_type = content_type.split(";")[0].strip().lower()

        self.storage.upload(public_id, data, {"content-type": content_type})
        url = self.storage.get_public_url(public_id)

        try:
            asset = self.media_repo.create({
                "public_id": public_id,
                "url": url,
                "filename": filename,
                "content_type": content_type,
                "size_bytes": len(data),
                "folder": folder,
                "alt": alt,
                "uploaded_by": uploaded_by,
            })
        except Exception:
            # Keep the bucket in step with the library table
            self.storage.remove([public_id])
            raise

        logger.info(f"Uploaded {public_id} ({len(data)} bytes)")
        return asset

    def upload_many(self, files: List[Tuple[bytes, Optional[str], Optional[str]]],
                    folder: str = "products", uploaded_by: Optional[int] = None) -> List[MediaAsset]:
        """
        Upload up to MAX_FILES_PER_UPLOAD images; the first one is flagged main

        Args:
            files: (data, filename, content_type) tuples in display order
        """
        if not files:
            raise ValueError("No files provided")
        if len(files) > MAX_FILES_PER_UPLOAD:
            raise ValueError(f"Maximum {MAX_FILES_PER_UPLOAD} images per upload")

        # Validate everything before the first upload
        for data, _, content_type in files:
            validate_image(content_type, len(data))

        assets = []
        for index, (data, filename, content_type) in enumerate(files):
            asset = self.upload(data, filename, content_type, folder=folder, uploaded_by=uploaded_by)
            asset.is_main = index == 0
            assets.append(asset)
        return assets

    def upload_from_url(self, url: str, folder: str = "products", alt: Optional[str] = None,
                        uploaded_by: Optional[int] = None) -> MediaAsset:
        """Download an image and upload it; the body is read no further than MAX_IMAGE_BYTES"""
        too_large = f"File is too large (max {MAX_IMAGE_BYTES // (1024 * 1024)} MB)"
        try:
            with httpx.Client(timeout=URL_FETCH_TIMEOUT, follow_redirects=True) as client:
                with client.stream("GET", url) as response:
                    response.raise_for_status()
                    declared = response.headers.get("content-length")
                    if declared and declared.isdigit() and int(declared) > MAX_IMAGE_BYTES:
                        raise ValueError(too_large)

                    content = bytearray()
                    for chunk in response.iter_bytes():
                        content.extend(chunk)
                        if len(content) > MAX_IMAGE_BYTES:
                            raise ValueError(too_large)
                    content_type = response.headers.get("content-type")
        except httpx.HTTPError as e:
            raise ValueError(f"Could not fetch image: {str(e)}")

        filename = url.rstrip("/").rsplit("/", 1)[-1].split("?")[0] or None
        return self.upload(
            bytes(content),
            filename,
            content_type,
            folder=folder,
            alt=alt,
            uploaded_by=uploaded_by,
        )

    def delete(self, public_id: str) -> bool:
        """Remove from the bucket and the library; False when unknown"""
        asset = self.media_repo.find_by_public_id(public_id)
        if not asset:
            return False

        self.storage.remove([public_id])
        self.media_repo.delete_by_public_id(public_id)
        logger.info(f"Deleted media {public_id}")
        return True

    def list_media(self, folder: Optional[str] = None, search: Optional[str] = None,
                   page: int = 1, limit: int = 40) -> Dict[str, Any]:
        page, limit, offset = normalize_paging(page, limit, 40, 100)
        assets, total = self.media_repo.find_all(folder=folder, search=search, limit=limit, offset=offset)
        return {
            "media": [asset.to_dict() for asset in assets],
            "pagination": build_pagination(page, limit, total),
        }


# Singleton instance for easy import
_media_service: Optional[MediaService] = None

def get_media_service() -> MediaService:
    """Get the singleton media service instance"""
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service
