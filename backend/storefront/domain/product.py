"""
Product Domain Model

Represents a catalog product of the storefront.
This is the single source of truth for product data structure.

Author: TM3
Date: 2025-10-17
"""
import re
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


PRODUCT_STATUSES = ("active", "inactive", "draft", "archived", "out_of_stock")

# Statuses that may still appear on an order (stock is re-checked per line)
ORDERABLE_STATUSES = ("active", "out_of_stock")


def compute_effective_price(regular_price: Decimal, sale_price: Optional[Decimal]) -> Decimal:
    """Sale price applies only when it is positive and below the regular price"""
    regular = Decimal(str(regular_price or 0))
    if sale_price is not None:
        sale = Decimal(str(sale_price))
        if 0 < sale < regular:
            return sale
    return regular


def compute_discount_percent(regular_price: Decimal, sale_price: Optional[Decimal]) -> int:
    regular = Decimal(str(regular_price or 0))
    sale = compute_effective_price(regular_price, sale_price)
    if regular <= 0 or sale >= regular:
        return 0
    return int(((regular - sale) / regular * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def slugify(text: str) -> str:
    """Lowercase, ASCII-only, hyphen separated slug"""
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug or "product"


class ProductImage(BaseModel):
    url: str
    public_id: Optional[str] = None
    alt: Optional[str] = None
    is_main: bool = False


class ProductSize(BaseModel):
    name: str
    stock: int = Field(0, ge=0)


class ProductColor(BaseModel):
    name: str
    hex: Optional[str] = None


class Product(BaseModel):
    """
    Product domain model - represents a product in our catalog

    Fields:
        id: Internal product ID (primary key)
        title: Display title
        slug: URL slug (unique, derived from title)
        description / short_description: Copy shown on product page
        category: Category slug
        sub_category: Free-form sub category (e.g. "Dresses")
        images: Gallery, one of them flagged is_main

        # Pricing
        regular_price: List price
        sale_price: Optional reduced price

        # Inventory
        sizes: Per-size stock; when present, stock is their sum
        colors: Available colors
        stock: Total stock

        # Merchandising
        featured / new_arrival / best_seller: Collection flags
        status: active, inactive, draft, archived, out_of_stock
        total_sold: Units sold across all orders
    """

    id: int = Field(..., description="Internal product ID")
    title: str = Field(..., description="Product title")
    slug: str = Field(..., description="URL slug")
    description: Optional[str] = Field(None, description="Full description")
    short_description: Optional[str] = Field(None, description="Short description")
    category: Optional[str] = Field(None, description="Category slug")
    sub_category: Optional[str] = Field(None, description="Sub category")
    images: List[ProductImage] = Field(default_factory=list)

    regular_price: Decimal = Field(..., description="Regular price", ge=0)
    sale_price: Optional[Decimal] = Field(None, description="Sale price", ge=0)

    sizes: List[ProductSize] = Field(default_factory=list)
    colors: List[ProductColor] = Field(default_factory=list)
    stock: int = Field(0, description="Total stock", ge=0)
    sku: Optional[str] = Field(None, description="Stock Keeping Unit")
    tags: List[str] = Field(default_factory=list)

    featured: bool = False
    new_arrival: bool = False
    best_seller: bool = False
    status: str = Field("active", description="Catalog status")

    rating_average: Decimal = Field(Decimal("0"), ge=0, le=5)
    rating_count: int = Field(0, ge=0)
    total_sold: int = Field(0, ge=0)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={
            Decimal: float,
            datetime: lambda v: v.isoformat()
        }
    )

    @field_validator("images", "sizes", "colors", "tags", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []

    @property
    def effective_price(self) -> Decimal:
        return compute_effective_price(self.regular_price, self.sale_price)

    @property
    def is_on_sale(self) -> bool:
        return self.effective_price < self.regular_price

    @property
    def discount_percent(self) -> int:
        return compute_discount_percent(self.regular_price, self.sale_price)

    @property
    def main_image(self) -> Optional[str]:
        """URL of the image flagged main, else the first image"""
        for image in self.images:
            if image.is_main:
                return image.url
        return self.images[0].url if self.images else None

    @property
    def is_in_stock(self) -> bool:
        return self.stock > 0

    def find_size(self, name: Optional[str]) -> Optional[ProductSize]:
        """Case-insensitive size lookup"""
        if not name:
            return None
        wanted = name.strip().lower()
        for size in self.sizes:
            if size.name.lower() == wanted:
                return size
        return None

    def available_stock(self, size: Optional[str] = None) -> int:
        """
        Units available for a line.

        Products with sizes are tracked per size; a missing or unknown size
        has zero availability.
        """
        if self.sizes:
            found = self.find_size(size)
            return found.stock if found else 0
        return self.stock

    def to_dict(self) -> dict:
        """Convert to dictionary with computed fields"""
        data = self.model_dump()

        data['effective_price'] = float(self.effective_price)
        data['is_on_sale'] = self.is_on_sale
        data['discount_percent'] = self.discount_percent
        data['main_image'] = self.main_image
        data['is_in_stock'] = self.is_in_stock

        for field in ['regular_price', 'sale_price', 'rating_average']:
            if data.get(field) is not None:
                data[field] = float(data[field])

        return data

    def to_summary(self) -> dict:
        """Compact shape used by search suggestions and dashboard tables"""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "category": self.category,
            "price": float(self.effective_price),
            "regular_price": float(self.regular_price),
            "image": self.main_image,
            "stock": self.stock,
            "status": self.status,
        }


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    title: str = Field(..., min_length=2, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = None
    sub_category: Optional[str] = None
    images: List[ProductImage] = Field(default_factory=list)
    regular_price: Decimal = Field(..., ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    sizes: List[ProductSize] = Field(default_factory=list)
    colors: List[ProductColor] = Field(default_factory=list)
    stock: int = Field(0, ge=0)
    sku: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    new_arrival: bool = False
    best_seller: bool = False
    status: str = "active"

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        if v not in PRODUCT_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(PRODUCT_STATUSES)}")
        return v


class ProductUpdate(BaseModel):
    """Schema for updating an existing product"""
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = None
    sub_category: Optional[str] = None
    images: Optional[List[ProductImage]] = None
    regular_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    sizes: Optional[List[ProductSize]] = None
    colors: Optional[List[ProductColor]] = None
    stock: Optional[int] = Field(None, ge=0)
    sku: Optional[str] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    new_arrival: Optional[bool] = None
    best_seller: Optional[bool] = None
    status: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        if v is not None and v not in PRODUCT_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(PRODUCT_STATUSES)}")
        return v
