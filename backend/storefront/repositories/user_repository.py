"""
User Repository - Data Access Layer for accounts

Author: TM3
Date: 2025-10-17
"""
from typing import Optional, Dict, Any
from storefront.domain.user import User
from storefront.core.database import get_db_connection_dict


USER_COLUMNS = """
    id, name, email, phone, avatar, role, is_active, password_hash,
    last_login, created_at, updated_at
"""


class UserRepository:
    """
    Repository for User data access
    """

    def find_by_id(self, user_id: int) -> Optional[User]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
            row = cursor.fetchone()
            return User(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup (emails are stored lowercased)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE email = %s",
                (email.strip().lower(),)
            )
            row = cursor.fetchone()
            return User(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, name: str, email: str, password_hash: str,
               phone: Optional[str] = None, role: str = "user") -> User:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO users (name, email, phone, password_hash, role, is_active)
                VALUES (%s, %s, %s, %s, %s, TRUE)
                RETURNING {USER_COLUMNS}
            """, (name, email.strip().lower(), phone, password_hash, role))
            row = cursor.fetchone()
            conn.commit()
            return User(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, user_id: int, fields: Dict[str, Any]) -> Optional[User]:
        """Update the given columns; unknown keys are ignored"""
        allowed = {"name", "phone", "avatar", "password_hash", "is_active", "role", "last_login"}
        updates = {k: v for k, v in fields.items() if k in allowed}
        if not updates:
            return self.find_by_id(user_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause = ", ".join(f"{column} = %s" for column in updates)
            cursor.execute(f"""
                UPDATE users SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING {USER_COLUMNS}
            """, list(updates.values()) + [user_id])
            row = cursor.fetchone()
            conn.commit()
            return User(**row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def touch_last_login(self, user_id: int) -> None:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("UPDATE users SET last_login = NOW() WHERE id = %s", (user_id,))
            conn.commit()

        finally:
            cursor.close()
            conn.close()

    def count_customers(self) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT COUNT(*) AS total FROM users WHERE role = 'user'")
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
