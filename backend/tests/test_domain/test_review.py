"""
Unit tests for review domain models

Author: TM3
Date: 2025-10-17
"""
import pytest
from pydantic import ValidationError

from storefront.domain.review import ReviewCreate, ReviewReply, ReviewStatusUpdate, rating_stats


class TestRatingStats:

    def test_average_and_distribution(self):
        stats = rating_stats({5: 3, 4: 1, 1: 1})

        assert stats['total_reviews'] == 5
        # (15 + 4 + 1) / 5
        assert stats['average_rating'] == 4.0
        assert stats['distribution'] == {5: 3, 4: 1, 3: 0, 2: 0, 1: 1}

    def test_average_rounds_to_one_decimal(self):
        # 14 / 3 = 4.666...
        assert rating_stats({5: 2, 4: 1})['average_rating'] == 4.7

    def test_no_reviews(self):
        stats = rating_stats({})

        assert stats['average_rating'] == 0.0
        assert stats['total_reviews'] == 0


class TestReviewSchemas:

    def test_comment_is_stripped(self):
        review = ReviewCreate(product_id=10, rating=5, title='  Lovely  ', comment='  Fits perfectly, great fabric  ')

        assert review.title == 'Lovely'
        assert review.comment == 'Fits perfectly, great fabric'

    def test_short_comment_rejected(self):
        with pytest.raises(ValidationError, match="at least 10 characters"):
            ReviewCreate(product_id=10, rating=4, comment='   Nice    ')

    @pytest.mark.parametrize('rating', [0, 6])
    def test_rating_out_of_range(self, rating):
        with pytest.raises(ValidationError):
            ReviewCreate(product_id=10, rating=rating, comment='Fits perfectly, great fabric')

    def test_unknown_status(self):
        with pytest.raises(ValidationError, match="status must be one of"):
            ReviewStatusUpdate(status='hidden')

    def test_blank_reply(self):
        with pytest.raises(ValidationError, match="Reply comment is required"):
            ReviewReply(comment=' ')
