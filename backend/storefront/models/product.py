"""
Catalog and cart tables
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, ARRAY
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.core.database import Base


class Product(Base):
    """
    Catalog products

    images, sizes and colors are JSONB arrays:
      images: [{"url", "public_id", "alt", "is_main"}]
      sizes:  [{"name", "stock"}]
      colors: [{"name", "hex"}]
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(220), nullable=False, unique=True, index=True)
    description = Column(Text)
    short_description = Column(String(500))
    category = Column(String(100), index=True)
    sub_category = Column(String(100))
    images = Column(JSONB, nullable=False, server_default="[]")

    # Pricing
    regular_price = Column(DECIMAL(12, 2), nullable=False)
    sale_price = Column(DECIMAL(12, 2))

    # Inventory
    sizes = Column(JSONB, nullable=False, server_default="[]")
    colors = Column(JSONB, nullable=False, server_default="[]")
    stock = Column(Integer, nullable=False, default=0)
    sku = Column(String(100), unique=True)
    tags = Column(ARRAY(String), nullable=False, server_default="{}")

    # Merchandising
    featured = Column(Boolean, nullable=False, default=False, index=True)
    new_arrival = Column(Boolean, nullable=False, default=False)
    best_seller = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="active", index=True)
    rating_average = Column(DECIMAL(3, 2), nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)
    total_sold = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CartItem(Base):
    """
    One row per cart line; (user, product, size, color) is unique
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", "size", "color", name="uq_cart_line"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    image = Column(String(500))
    size = Column(String(20))
    color = Column(String(50))
    price = Column(DECIMAL(12, 2), nullable=False)
    regular_price = Column(DECIMAL(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="cart_items")
