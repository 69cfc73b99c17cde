"""
Coupon Service - validation and admin management of discount codes

Author: TM3
Date: 2025-10-17
"""
import logging
from decimal import Decimal
from typing import Optional, Dict, Any

from storefront.domain.coupon import Coupon, CouponCreate, CouponUpdate, as_utc
from storefront.domain.pagination import normalize_paging, build_pagination
from storefront.repositories.coupon_repository import CouponRepository

logger = logging.getLogger(__name__)


class CouponService:
    """
    Coupon operations
    """

    def __init__(self, coupon_repo: Optional[CouponRepository] = None):
        self.coupon_repo = coupon_repo or CouponRepository()

    def get_usable(self, code: str, user_id: Optional[int], amount) -> Coupon:
        """Load a coupon by code and make sure it applies to this amount"""
        coupon = self.coupon_repo.find_by_code(code)
        if not coupon:
            raise ValueError("Invalid coupon code")
        coupon.check_usable(user_id, amount)
        return coupon

    def validate(self, code: str, cart_total, user_id: Optional[int] = None) -> Dict[str, Any]:
        cart_total = Decimal(str(cart_total or 0))
        coupon = self.get_usable(code, user_id, cart_total)
        discount = coupon.calculate_discount(cart_total)

        return {
            "code": coupon.code,
            "description": coupon.description,
            "discount_type": coupon.discount_type,
            "discount_value": float(coupon.discount_value),
            "discount": float(discount),
            "new_total": float(max(Decimal("0"), cart_total - discount)),
        }

    def list_coupons(self, search: Optional[str] = None, status: Optional[str] = None,
                     page: int = 1, limit: int = 20) -> Dict[str, Any]:
        page, limit, offset = normalize_paging(page, limit, 20, 100)
        coupons, total = self.coupon_repo.find_all(search=search, status=status, limit=limit, offset=offset)
        return {
            "coupons": [coupon.to_dict() for coupon in coupons],
            "pagination": build_pagination(page, limit, total),
        }

    def get_coupon(self, coupon_id: int) -> Optional[Coupon]:
        return self.coupon_repo.find_by_id(coupon_id)

    def create_coupon(self, data: CouponCreate) -> Coupon:
        if self.coupon_repo.code_exists(data.code):
            raise ValueError(f"Coupon code {data.code} already exists")
        coupon = self.coupon_repo.create(data.model_dump())
        logger.info(f"Coupon created: {coupon.code}")
        return coupon

    def update_coupon(self, coupon_id: int, data: CouponUpdate) -> Optional[Coupon]:
        current = self.coupon_repo.find_by_id(coupon_id)
        if not current:
            return None

        fields = data.model_dump(exclude_unset=True)

        if fields.get("code") and self.coupon_repo.code_exists(fields["code"], exclude_id=coupon_id):
            raise ValueError(f"Coupon code {fields['code']} already exists")

        discount_type = fields.get("discount_type") or current.discount_type
        discount_value = fields.get("discount_value") or current.discount_value
        if discount_type == "percentage" and discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")

        start = fields.get("start_date", current.start_date)
        expiry = fields.get("expiry_date", current.expiry_date)
        if start and expiry and as_utc(expiry) <= as_utc(start):
            raise ValueError("Expiry date must be after start date")

        return self.coupon_repo.update(coupon_id, fields)

    def delete_coupon(self, coupon_id: int) -> bool:
        deleted = self.coupon_repo.delete(coupon_id)
        if deleted:
            logger.info(f"Coupon {coupon_id} deleted")
        return deleted


# Singleton instance for easy import
_coupon_service: Optional[CouponService] = None

def get_coupon_service() -> CouponService:
    """Get the singleton coupon service instance"""
    global _coupon_service
    if _coupon_service is None:
        _coupon_service = CouponService()
    return _coupon_service
