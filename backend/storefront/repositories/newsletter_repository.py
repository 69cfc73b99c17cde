"""
Newsletter Repository - Data Access Layer for subscribers

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict
from storefront.domain.newsletter import Subscriber
from storefront.core.database import get_db_connection_dict


SUBSCRIBER_COLUMNS = """
    id, email, name, status, source, ip_address,
    subscribed_at, unsubscribed_at, created_at, updated_at
"""

SORT_OPTIONS = {
    "newest": "created_at DESC",
    "oldest": "created_at ASC",
    "email": "email ASC",
}


class NewsletterRepository:
    """
    Repository for newsletter subscribers
    """

    def find_by_email(self, email: str) -> Optional[Subscriber]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {SUBSCRIBER_COLUMNS} FROM newsletter_subscribers WHERE email = %s",
                (email.strip().lower(),)
            )
            row = cursor.fetchone()
            return Subscriber(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, email: str, name: Optional[str], source: str,
               ip_address: Optional[str]) -> Subscriber:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO newsletter_subscribers (email, name, status, source, ip_address, subscribed_at)
                VALUES (%s, %s, 'subscribed', %s, %s, NOW())
                RETURNING {SUBSCRIBER_COLUMNS}
            """, (email.strip().lower(), name, source, ip_address))
            row = cursor.fetchone()
            conn.commit()
            return Subscriber(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def create_if_absent(self, email: str, name: Optional[str], source: str,
                         ip_address: Optional[str] = None) -> bool:
        """Insert unless the email is already known; returns True when inserted"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO newsletter_subscribers (email, name, status, source, ip_address, subscribed_at)
                VALUES (%s, %s, 'subscribed', %s, %s, NOW())
                ON CONFLICT (email) DO NOTHING
            """, (email.strip().lower(), name, source, ip_address))
            inserted = cursor.rowcount > 0
            conn.commit()
            return inserted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def resubscribe(self, subscriber_id: int, name: Optional[str], source: str) -> Subscriber:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE newsletter_subscribers
                SET status = 'subscribed',
                    name = COALESCE(%s, name),
                    source = %s,
                    subscribed_at = NOW(),
                    unsubscribed_at = NULL,
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {SUBSCRIBER_COLUMNS}
            """, (name, source, subscriber_id))
            row = cursor.fetchone()
            conn.commit()
            return Subscriber(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def unsubscribe(self, email: str) -> Optional[Subscriber]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE newsletter_subscribers
                SET status = 'unsubscribed', unsubscribed_at = NOW(), updated_at = NOW()
                WHERE email = %s
                RETURNING {SUBSCRIBER_COLUMNS}
            """, (email.strip().lower(),))
            row = cursor.fetchone()
            conn.commit()
            return Subscriber(**row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        source: Optional[str] = None,
        sort: str = "newest",
        limit: Optional[int] = 30,
        offset: int = 0
    ) -> Tuple[List[Subscriber], int]:
        """
        Find subscribers with filters

        Args:
            search: Matches email or name
            limit: Page size (None returns everything, used by CSV export)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if search:
                conditions.append("(email ILIKE %s OR name ILIKE %s)")
                search_param = f"%{search.strip()}%"
                params.extend([search_param, search_param])

            if status:
                conditions.append("status = %s")
                params.append(status)

            if source:
                conditions.append("source = %s")
                params.append(source)

            where_clause = " AND ".join(conditions) if conditions else "1=1"
            order_by = SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"])

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM newsletter_subscribers
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            query = f"""
                SELECT {SUBSCRIBER_COLUMNS}
                FROM newsletter_subscribers
                WHERE {where_clause}
                ORDER BY {order_by}, id DESC
            """
            if limit is not None:
                query += " LIMIT %s OFFSET %s"
                params = params + [limit, offset]

            cursor.execute(query, params)
            return [Subscriber(**row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def stats(self) -> Dict[str, int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    COUNT(*) FILTER (WHERE status = 'subscribed') as total_subscribed,
                    COUNT(*) FILTER (WHERE status = 'unsubscribed') as total_unsubscribed,
                    COUNT(*) as total
                FROM newsletter_subscribers
            """)
            row = cursor.fetchone()
            return {
                "total_subscribed": row['total_subscribed'],
                "total_unsubscribed": row['total_unsubscribed'],
                "total": row['total'],
            }

        finally:
            cursor.close()
            conn.close()

    def delete(self, subscriber_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM newsletter_subscribers WHERE id = %s", (subscriber_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
