"""
Orders and their line items / status history
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.core.database import Base


class Order(Base):
    """
    Main orders table
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(30), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    # {"full_name", "phone", "email", "address_line1", "address_line2",
    #  "city", "state", "postal_code", "country"}
    shipping_address = Column(JSONB, nullable=False)

    # Payment
    payment_method = Column(String(30), nullable=False, default="cod", index=True)
    payment_status = Column(String(30), nullable=False, default="pending", index=True)
    transaction_id = Column(String(100))
    card_last4 = Column(String(4))
    paid_at = Column(DateTime(timezone=True))

    # Status
    order_status = Column(String(30), nullable=False, default="pending", index=True)

    # Amounts
    subtotal = Column(DECIMAL(12, 2), nullable=False)
    coupon_code = Column(String(30))
    discount = Column(DECIMAL(12, 2), nullable=False, default=0)
    shipping_cost = Column(DECIMAL(12, 2), nullable=False, default=0)
    tax = Column(DECIMAL(12, 2), nullable=False, default=0)
    total = Column(DECIMAL(12, 2), nullable=False)

    # Notes and fulfilment
    notes = Column(String(500))
    admin_notes = Column(String(1000))
    tracking_number = Column(String(100))
    delivered_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))
    cancel_reason = Column(String(500))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    status_history = relationship("OrderStatusHistory", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    """
    Line items, frozen at order time
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), index=True)
    title = Column(String(200), nullable=False)
    image = Column(String(500))
    size = Column(String(20))
    color = Column(String(50))
    price = Column(DECIMAL(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total = Column(DECIMAL(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    """
    Every status change of an order
    """
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    status = Column(String(30), nullable=False)
    note = Column(Text)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    changed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="status_history")
