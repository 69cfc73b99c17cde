"""
Media library (images stored in the Supabase Storage bucket)
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from storefront.core.database import Base


class MediaAsset(Base):
    __tablename__ = "media_assets"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(300), nullable=False, unique=True, index=True)
    url = Column(String(1000), nullable=False)
    filename = Column(String(255))
    content_type = Column(String(50))
    size_bytes = Column(Integer, nullable=False, default=0)
    folder = Column(String(50), nullable=False, default="products", index=True)
    alt = Column(String(200))
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
