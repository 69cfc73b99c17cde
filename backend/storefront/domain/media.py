"""
Media Library Domain Model

Images uploaded by admins to the blob store.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, HttpUrl
from typing import Optional
from datetime import datetime


ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_FILES_PER_UPLOAD = 6


class MediaAsset(BaseModel):
    """
    Fields:
        public_id: Object path inside the bucket (folder/uuid.ext)
        url: Public URL served by the blob store
        is_main: Set on the first image of a multi upload
    """

    id: int
    public_id: str
    url: str
    filename: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: int = 0
    folder: str = "products"
    alt: Optional[str] = None
    uploaded_by: Optional[int] = None
    created_at: Optional[datetime] = None
    is_main: bool = False

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()


class UploadFromUrlRequest(BaseModel):
    url: HttpUrl
    folder: str = Field("products", max_length=50)
    alt: Optional[str] = Field(None, max_length=200)
