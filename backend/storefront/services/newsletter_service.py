"""
Newsletter Service - subscriber capture and admin management

Author: TM3
Date: 2025-10-17
"""
import io
import logging
from typing import Optional, Dict, Any, Tuple

from storefront.domain.newsletter import Subscriber
from storefront.domain.pagination import normalize_paging, build_pagination
from storefront.repositories.newsletter_repository import NewsletterRepository
from storefront.services.csv_export import to_csv_bytes

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Email", "Name", "Status", "Subscribed At", "Source"]
CSV_FILENAME = "newsletter-subscribers.csv"


class NewsletterService:
    """
    Newsletter subscriptions
    """

    def __init__(self, newsletter_repo: Optional[NewsletterRepository] = None):
        self.newsletter_repo = newsletter_repo or NewsletterRepository()

    def subscribe(self, email: str, name: Optional[str] = None, source: str = "website",
                  ip_address: Optional[str] = None) -> Tuple[Subscriber, bool, str]:
        """
        Subscribe an email address

        Returns:
            Tuple of (subscriber, created, message); created is False for a re-subscription

        Raises:
            ValueError: if the email is already subscribed
        """
        email = email.strip().lower()
        name = name.strip() if name and name.strip() else None

        existing = self.newsletter_repo.find_by_email(email)
        if existing:
            if existing.is_subscribed:
                raise ValueError("This email is already subscribed")
            subscriber = self.newsletter_repo.resubscribe(existing.id, name, source)
            logger.info(f"Newsletter re-subscription: {email}")
            return subscriber, False, "Welcome back! You have been re-subscribed to our newsletter."

        subscriber = self.newsletter_repo.create(email, name, source, ip_address)
        logger.info(f"Newsletter subscriber added: {email} (source={source})")
        return subscriber, True, "Thank you for subscribing to our newsletter!"

    def subscribe_quietly(self, email: str, name: Optional[str], source: str) -> bool:
        """Add the email unless it is already known (used by live chat)"""
        inserted = self.newsletter_repo.create_if_absent(email, name, source)
        if inserted:
            logger.info(f"Newsletter subscriber added: {email} (source={source})")
        return inserted

    def unsubscribe(self, email: str) -> Optional[Subscriber]:
        subscriber = self.newsletter_repo.unsubscribe(email)
        if subscriber:
            logger.info(f"Newsletter unsubscribe: {subscriber.email}")
        return subscriber

    def list_subscribers(self, search: Optional[str] = None, status: Optional[str] = None,
                         source: Optional[str] = None, sort: str = "newest",
                         page: int = 1, limit: int = 30) -> Dict[str, Any]:
        page, limit, offset = normalize_paging(page, limit, 30, 100)
        subscribers, total = self.newsletter_repo.find_all(
            search=search, status=status, source=source, sort=sort, limit=limit, offset=offset
        )
        return {
            "subscribers": [subscriber.to_dict() for subscriber in subscribers],
            "pagination": build_pagination(page, limit, total),
            "stats": self.newsletter_repo.stats(),
        }

    def delete_subscriber(self, subscriber_id: int) -> bool:
        return self.newsletter_repo.delete(subscriber_id)

    def export_csv(self, status: Optional[str] = None, source: Optional[str] = None) -> io.BytesIO:
        subscribers, _ = self.newsletter_repo.find_all(status=status, source=source, limit=None)
        rows = [
            [
                s.email,
                s.name or "",
                s.status,
                s.subscribed_at.isoformat() if s.subscribed_at else "",
                s.source,
            ]
            for s in subscribers
        ]
        return to_csv_bytes(CSV_COLUMNS, rows)


# Singleton instance for easy import
_newsletter_service: Optional[NewsletterService] = None

def get_newsletter_service() -> NewsletterService:
    """Get the singleton newsletter service instance"""
    global _newsletter_service
    if _newsletter_service is None:
        _newsletter_service = NewsletterService()
    return _newsletter_service
