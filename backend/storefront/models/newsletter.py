"""
Newsletter subscribers
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from storefront.core.database import Base


class NewsletterSubscriber(Base):
    __tablename__ = "newsletter_subscribers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(254), nullable=False, unique=True, index=True)
    name = Column(String(100))
    status = Column(String(20), nullable=False, default="subscribed", index=True)
    source = Column(String(20), nullable=False, default="website")
    ip_address = Column(String(64))
    subscribed_at = Column(DateTime(timezone=True), server_default=func.now())
    unsubscribed_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
