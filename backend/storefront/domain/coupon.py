"""
Coupon Domain Models

Discount codes handed out on the storefront and through live chat.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP


DISCOUNT_TYPES = ("percentage", "fixed")
COUPON_STATUSES = ("active", "inactive", "expired")

TWO_PLACES = Decimal("0.01")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CouponUsage(BaseModel):
    user_id: Optional[int] = None
    order_number: Optional[str] = None
    used_at: Optional[datetime] = None


class Coupon(BaseModel):
    """
    Coupon domain model

    Fields:
        code: Uppercase unique code (3-30 chars)
        discount_type: percentage or fixed
        discount_value: Percent (0-100] or fixed amount (> 0)
        min_order_amount: Subtotal needed before the coupon applies
        max_discount: Optional cap for percentage coupons
        usage_limit: Total redemptions allowed (None = unlimited)
        used_count: Redemptions so far
        per_user_limit: Redemptions allowed per customer
        start_date / expiry_date: Validity window
        status: active, inactive, expired
    """

    id: int
    code: str
    description: Optional[str] = None
    discount_type: str
    discount_value: Decimal
    min_order_amount: Decimal = Decimal("0")
    max_discount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    per_user_limit: int = 1
    start_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    status: str = "active"
    usages: List[CouponUsage] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("usages", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []

    def calculate_discount(self, order_amount) -> Decimal:
        """
        Discount for a given subtotal.

        Zero below the minimum order amount; never more than the amount itself.
        """
        amount = Decimal(str(order_amount or 0))
        if amount < self.min_order_amount:
            return Decimal("0.00")

        if self.discount_type == "percentage":
            discount = amount * self.discount_value / Decimal("100")
            if self.max_discount is not None and self.max_discount > 0:
                discount = min(discount, self.max_discount)
        else:
            discount = self.discount_value

        discount = min(discount, amount)
        return discount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    def is_expired(self, now: datetime) -> bool:
        expiry = as_utc(self.expiry_date)
        return expiry is not None and expiry < now

    def has_started(self, now: datetime) -> bool:
        start = as_utc(self.start_date)
        return start is None or start <= now

    def check_usable(self, user_id: Optional[int], amount, now: Optional[datetime] = None) -> None:
        """
        Raise ValueError describing why the coupon cannot be applied

        Checks run in a fixed order so the customer sees the most relevant reason.
        """
        now = now or datetime.now(timezone.utc)

        if self.status != "active":
            raise ValueError("This coupon is not active")

        if not self.has_started(now):
            raise ValueError("This coupon is not valid yet")

        if self.is_expired(now):
            raise ValueError("This coupon has expired")

        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            raise ValueError("This coupon has reached its usage limit")

        if user_id is not None and self.uses_by(user_id) >= self.per_user_limit:
            raise ValueError("You have already used this coupon")

        if Decimal(str(amount or 0)) < self.min_order_amount:
            raise ValueError(f"Minimum order amount is ${self.min_order_amount:.2f}")

    def uses_by(self, user_id: Optional[int]) -> int:
        if user_id is None:
            return 0
        return sum(1 for usage in self.usages if usage.user_id == user_id)

    def to_dict(self) -> dict:
        data = self.model_dump()
        for field in ['discount_value', 'min_order_amount', 'max_discount']:
            if data.get(field) is not None:
                data[field] = float(data[field])
        return data


class CouponBase(BaseModel):
    description: Optional[str] = Field(None, max_length=200)
    min_order_amount: Decimal = Field(Decimal("0"), ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: int = Field(1, ge=1)
    start_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    status: str = "active"

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        if v not in COUPON_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(COUPON_STATUSES)}")
        return v


class CouponCreate(CouponBase):
    """Schema for creating a coupon"""
    code: str = Field(..., min_length=3, max_length=30)
    discount_type: str
    discount_value: Decimal = Field(..., gt=0)

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v):
        return v.strip().upper()

    @field_validator("discount_type")
    @classmethod
    def _check_type(cls, v):
        if v not in DISCOUNT_TYPES:
            raise ValueError("discount_type must be 'percentage' or 'fixed'")
        return v

    @model_validator(mode="after")
    def _check_rules(self):
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.start_date and self.expiry_date and self.expiry_date <= self.start_date:
            raise ValueError("Expiry date must be after start date")
        return self


class CouponUpdate(BaseModel):
    """Schema for updating a coupon; all fields optional"""
    code: Optional[str] = Field(None, min_length=3, max_length=30)
    description: Optional[str] = Field(None, max_length=200)
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    status: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v):
        return v.strip().upper() if v else v

    @field_validator("discount_type")
    @classmethod
    def _check_type(cls, v):
        if v is not None and v not in DISCOUNT_TYPES:
            raise ValueError("discount_type must be 'percentage' or 'fixed'")
        return v

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        if v is not None and v not in COUPON_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(COUPON_STATUSES)}")
        return v


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    cart_total: Decimal = Field(..., ge=0)
