"""
Review Service - customer reviews and their moderation

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional, Dict, Any

from storefront.domain.review import Review, ReviewCreate, rating_stats
from storefront.domain.pagination import normalize_paging, build_pagination
from storefront.repositories.review_repository import ReviewRepository
from storefront.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Product reviews

    Reviews are created pending; approving, rejecting or deleting one
    refreshes the product rating.
    """

    def __init__(self, review_repo: Optional[ReviewRepository] = None,
                 product_repo: Optional[ProductRepository] = None):
        self.review_repo = review_repo or ReviewRepository()
        self.product_repo = product_repo or ProductRepository()

    def product_reviews(self, product_id: int, sort: str = "newest",
                        page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Approved reviews of a product with rating average and distribution"""
        page, limit, offset = normalize_paging(page, limit, 10, 50)
        reviews, total = self.review_repo.find_for_product(product_id, sort=sort, limit=limit, offset=offset)
        return {
            "reviews": [review.to_dict() for review in reviews],
            "stats": rating_stats(self.review_repo.rating_counts(product_id)),
            "pagination": build_pagination(page, limit, total),
        }

    def create_review(self, user_id: int, data: ReviewCreate) -> Optional[Review]:
        """
        Submit a review for moderation

        Returns:
            The pending review, or None if the product does not exist

        Raises:
            ValueError: if the customer already reviewed the product
        """
        product = self.product_repo.find_by_id(data.product_id)
        if not product:
            return None

        if self.review_repo.exists_for(data.product_id, user_id):
            raise ValueError("You have already reviewed this product")

        verified = self.review_repo.has_delivered_purchase(user_id, data.product_id)
        review = self.review_repo.create(
            data.product_id, user_id, data.rating, data.title, data.comment, verified
        )
        if review is None:
            raise ValueError("You have already reviewed this product")

        logger.info(f"Review {review.id} submitted by user {user_id} for product {data.product_id}")
        return review

    def list_reviews(self, status: Optional[str] = None, rating: Optional[int] = None,
                     product_id: Optional[int] = None, search: Optional[str] = None,
                     sort: str = "newest", page: int = 1, limit: int = 20) -> Dict[str, Any]:
        if status == "all":
            status = None
        page, limit, offset = normalize_paging(page, limit, 20, 100)
        reviews, total = self.review_repo.find_all(
            status=status, rating=rating, product_id=product_id, search=search,
            sort=sort, limit=limit, offset=offset,
        )
        return {
            "reviews": [review.to_dict() for review in reviews],
            "status_counts": self.review_repo.status_counts(),
            "pagination": build_pagination(page, limit, total),
        }

    def set_status(self, review_id: int, status: str) -> Optional[Review]:
        review = self.review_repo.update_status(review_id, status)
        if review:
            logger.info(f"Review {review_id} {status}")
        return review

    def reply(self, review_id: int, comment: str, admin_id: int) -> Optional[Review]:
        return self.review_repo.reply(review_id, comment, admin_id)

    def delete_review(self, review_id: int) -> bool:
        deleted = self.review_repo.delete(review_id)
        if deleted:
            logger.info(f"Review {review_id} deleted")
        return deleted


# Singleton instance for easy import
_review_service: Optional[ReviewService] = None

def get_review_service() -> ReviewService:
    """Get the singleton review service instance"""
    global _review_service
    if _review_service is None:
        _review_service = ReviewService()
    return _review_service
