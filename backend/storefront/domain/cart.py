"""
Cart Domain Models

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


MAX_QUANTITY_PER_LINE = 20


class CartItem(BaseModel):
    """
    One cart line; lines are unique per (product, size, color)

    price / regular_price / title / image are refreshed from the catalog
    every time the cart is read.
    """

    id: int
    user_id: int
    product_id: int
    title: str
    image: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    regular_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_LINE)
    slug: Optional[str] = None
    stock: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @property
    def line_savings(self) -> Decimal:
        if self.regular_price > self.price:
            return (self.regular_price - self.price) * self.quantity
        return Decimal("0")

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price)
        data['regular_price'] = float(self.regular_price)
        data['line_total'] = float(self.line_total)
        return data


class RemovedCartItem(BaseModel):
    title: str
    size: Optional[str] = None
    color: Optional[str] = None
    reason: str


class Cart(BaseModel):
    items: List[CartItem] = Field(default_factory=list)
    removed_items: List[RemovedCartItem] = Field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @property
    def total_savings(self) -> Decimal:
        return sum((item.line_savings for item in self.items), Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "total_items": self.total_items,
            "subtotal": float(self.subtotal),
            "total_savings": float(self.total_savings),
            "removed_items": [removed.model_dump() for removed in self.removed_items],
        }


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1, le=MAX_QUANTITY_PER_LINE)
    size: Optional[str] = Field(None, max_length=20)
    color: Optional[str] = Field(None, max_length=50)


class CartUpdateRequest(BaseModel):
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY_PER_LINE)
