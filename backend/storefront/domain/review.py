"""
Review Domain Models

Customer reviews of products. New reviews wait for moderation; only
approved reviews count towards a product's rating.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Dict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


REVIEW_STATUSES = ("pending", "approved", "rejected")
RATING_VALUES = (5, 4, 3, 2, 1)


def rating_stats(counts: Dict[int, int]) -> dict:
    """
    Average, total and per-star distribution from {stars: count}

    The average is rounded to one decimal; 0 when there are no ratings.
    """
    distribution = {stars: int(counts.get(stars, 0)) for stars in RATING_VALUES}
    total = sum(distribution.values())
    if total:
        average = Decimal(sum(stars * count for stars, count in distribution.items())) / Decimal(total)
        average = average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    else:
        average = Decimal("0")
    return {
        "average_rating": float(average),
        "total_reviews": total,
        "distribution": distribution,
    }


class Review(BaseModel):
    """
    Review domain model

    Fields:
        product_id / user_id: One review per customer and product
        rating: 1-5 stars
        status: pending, approved, rejected
        is_verified_purchase: The customer has a delivered order with this product
        admin_reply: Optional shop reply shown under the review
        user_name / product_title / product_slug: Joined for display
    """

    id: int
    product_id: int
    user_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = None
    comment: str
    status: str = "pending"
    is_verified_purchase: bool = False
    admin_reply: Optional[str] = None
    replied_at: Optional[datetime] = None
    replied_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    user_name: Optional[str] = None
    product_title: Optional[str] = None
    product_slug: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_public(self) -> bool:
        return self.status == "approved"

    def to_dict(self) -> dict:
        return self.model_dump()


class ReviewCreate(BaseModel):
    product_id: int
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: str = Field(..., max_length=2000)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v):
        return v.strip() if v else None

    @field_validator("comment")
    @classmethod
    def _check_comment(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Review comment must be at least 10 characters")
        return v


class ReviewStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        if v not in REVIEW_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(REVIEW_STATUSES)}")
        return v


class ReviewReply(BaseModel):
    comment: str = Field(..., max_length=1000)

    @field_validator("comment")
    @classmethod
    def _check_comment(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Reply comment is required")
        return v
