"""
Order Domain Models

Represents orders placed on the storefront.
These are the single source of truth for order data structure.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from storefront.domain.order_status import (
    PAYMENT_STATUSES,
    PAYMENT_METHODS,
    CARD_METHODS,
    normalize_status,
    progress,
)


REQUIRED_ADDRESS_FIELDS = ("full_name", "phone", "address_line1", "city", "state", "postal_code")

MONEY_FIELDS = ['subtotal', 'discount', 'shipping_cost', 'tax', 'total']


class ShippingAddress(BaseModel):
    """Shipping address captured at checkout"""
    full_name: str = ""
    phone: str = ""
    email: Optional[str] = None
    address_line1: str = ""
    address_line2: Optional[str] = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "United States"

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_ADDRESS_FIELDS if not (getattr(self, name) or "").strip()]


class OrderItem(BaseModel):
    """
    Order Item domain model - a line item frozen at order time

    Fields:
        product_id: Reference to product catalog (None if the product was deleted)
        title / image / size / color: Snapshot of the product variant
        price: Unit price charged (effective price at order time)
        quantity: Units ordered
        total: price * quantity
    """

    id: Optional[int] = Field(None, description="Order item ID")
    order_id: Optional[int] = Field(None, description="Parent order ID")
    product_id: Optional[int] = Field(None, description="Product catalog ID")
    title: str = Field(..., description="Product title at order time")
    image: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    price: Decimal = Field(..., description="Price per unit", ge=0)
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    total: Decimal = Field(..., description="Total for line item", ge=0)

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump()
        for field in ['price', 'total']:
            if data.get(field) is not None:
                data[field] = float(data[field])
        return data


class StatusHistoryEntry(BaseModel):
    status: str
    note: Optional[str] = None
    changed_by: Optional[int] = None
    changed_at: Optional[datetime] = None


class Order(BaseModel):
    """
    Order domain model - represents a customer order

    Fields:
        id: Internal order ID (primary key)
        order_number: Human-readable number (LF + YYMM + sequence)
        user_id: Customer account

        # Financial information
        subtotal: Sum of line totals
        coupon_code / discount: Applied coupon and its amount
        shipping_cost: Delivery cost
        tax: Tax amount (currently always 0)
        total: max(0, subtotal - discount + shipping_cost)

        # Status tracking
        order_status: See order_status.ORDER_STATUSES
        payment_status: pending, paid, failed, refunded, partially_refunded
        status_history: Every status change with note and author

        # Related data (optional, from JOINs)
        customer_name / customer_email / customer_phone: Account details
        items: Order line items
    """

    id: int = Field(..., description="Internal order ID")
    order_number: str = Field(..., description="Order number")
    user_id: Optional[int] = Field(None, description="Customer user ID")

    items: List[OrderItem] = Field(default_factory=list)
    shipping_address: ShippingAddress = Field(default_factory=ShippingAddress)

    payment_method: str = "cod"
    payment_status: str = "pending"
    transaction_id: Optional[str] = None
    card_last4: Optional[str] = None
    paid_at: Optional[datetime] = None

    order_status: str = "pending"
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)

    subtotal: Decimal = Field(Decimal("0"), ge=0)
    coupon_code: Optional[str] = None
    discount: Decimal = Field(Decimal("0"), ge=0)
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(Decimal("0"), ge=0)

    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    tracking_number: Optional[str] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # From users JOIN
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={
            Decimal: float,
            datetime: lambda v: v.isoformat()
        }
    )

    @field_validator("items", "status_history", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []

    @field_validator("shipping_address", mode="before")
    @classmethod
    def _none_to_address(cls, v):
        return v or {}

    @property
    def item_count(self) -> int:
        """Total units across all items"""
        return sum(item.quantity for item in self.items)

    @property
    def is_hidden_from_customer(self) -> bool:
        """Unpaid card orders are abandoned checkouts, not real orders"""
        return self.payment_method in CARD_METHODS and self.payment_status != "paid"

    @property
    def contact_email(self) -> Optional[str]:
        return self.customer_email or self.shipping_address.email

    def to_dict(self) -> dict:
        """Convert to dictionary with computed fields"""
        data = self.model_dump()

        data['items'] = [item.to_dict() for item in self.items]
        data['item_count'] = self.item_count
        data['progress'] = progress(
            self.order_status,
            [entry.status for entry in self.status_history]
        )

        for field in MONEY_FIELDS:
            if data.get(field) is not None:
                data[field] = float(data[field])

        return data

    def to_tracking_dict(self) -> dict:
        """Public tracking view without customer or payment details"""
        return {
            "order_number": self.order_number,
            "order_status": self.order_status,
            "item_count": self.item_count,
            "tracking_number": self.tracking_number,
            "created_at": self.created_at,
            "delivered_at": self.delivered_at,
            "status_history": [
                {"status": entry.status, "note": entry.note, "changed_at": entry.changed_at}
                for entry in self.status_history
            ],
            "progress": progress(self.order_status, [entry.status for entry in self.status_history]),
        }


# ============================================================================
# Request schemas
# ============================================================================

class OrderLineRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1, le=20)
    size: Optional[str] = None
    color: Optional[str] = None


class ShippingAddressInput(BaseModel):
    full_name: str = Field("", max_length=100)
    phone: str = Field("", max_length=20)
    email: Optional[EmailStr] = None
    address_line1: str = Field("", max_length=200)
    address_line2: Optional[str] = Field(None, max_length=200)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=100)
    postal_code: str = Field("", max_length=20)
    country: Optional[str] = None


class PlaceOrderRequest(BaseModel):
    """
    Checkout payload. When items is omitted the user's cart is ordered.
    """
    items: Optional[List[OrderLineRequest]] = None
    shipping_address: ShippingAddressInput
    payment_method: str = "cod"
    coupon_code: Optional[str] = None
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = Field(None, max_length=500)
    card_last4: Optional[str] = Field(None, pattern=r"^\d{4}$")

    @field_validator("payment_method")
    @classmethod
    def _check_method(cls, v):
        if v not in PAYMENT_METHODS:
            raise ValueError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
        return v


class OrderStatusUpdate(BaseModel):
    """Admin status update; every field optional"""
    order_status: Optional[str] = None
    note: Optional[str] = Field(None, max_length=500)
    payment_status: Optional[str] = None
    admin_notes: Optional[str] = Field(None, max_length=1000)
    tracking_number: Optional[str] = Field(None, max_length=100)

    @field_validator("order_status")
    @classmethod
    def _check_status(cls, v):
        return normalize_status(v) if v else None

    @field_validator("payment_status")
    @classmethod
    def _check_payment_status(cls, v):
        if v is not None and v not in PAYMENT_STATUSES:
            raise ValueError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")
        return v


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class MarkPaidRequest(BaseModel):
    transaction_id: Optional[str] = Field(None, max_length=100)


class TrackOrderRequest(BaseModel):
    order_number: str = Field(..., min_length=3)
    contact: str = Field(..., min_length=3, description="Email or phone used at checkout")
