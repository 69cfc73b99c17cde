"""
Product reviews
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func
from storefront.core.database import Base


class Review(Base):
    """
    One review per (product, user); rating is 1-5
    """
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("product_id", "user_id", name="uq_review_product_user"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(200))
    comment = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    is_verified_purchase = Column(Boolean, nullable=False, default=False)

    # Shop reply
    admin_reply = Column(String(1000))
    replied_at = Column(DateTime(timezone=True))
    replied_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
