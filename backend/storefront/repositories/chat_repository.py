"""
Chat Repository - Data Access Layer for live chat

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any
from storefront.domain.chat import Chat, ChatMessage, ChatSettings, CHAT_STATUSES
from storefront.core.database import get_db_connection_dict


CHAT_COLUMNS = """
    c.id, c.visitor_id, c.visitor_name, c.visitor_email, c.visitor_ip,
    c.visitor_browser, c.visitor_device, c.status, c.last_message_at,
    c.closed_at, c.closed_by, c.created_at, c.updated_at
"""

MESSAGE_COLUMNS = "id, chat_id, sender, sender_name, text, read, created_at"

SETTINGS_COLUMNS = (
    "welcome_message", "ask_name_message", "ask_email_message", "coupon_message",
    "offline_message", "coupon_code", "is_online", "auto_reply_enabled",
    "business_hours_start", "business_hours_end", "active_agent_name", "active_agent_avatar",
)


def _attach_messages(cursor, rows: List[dict]) -> List[Chat]:
    """Load messages for all chats in ONE QUERY"""
    if not rows:
        return []

    chat_ids = [row['id'] for row in rows]
    cursor.execute(f"""
        SELECT {MESSAGE_COLUMNS}
        FROM chat_messages
        WHERE chat_id = ANY(%s)
        ORDER BY chat_id, created_at, id
    """, (chat_ids,))

    by_chat: Dict[int, list] = {}
    for message in cursor.fetchall():
        by_chat.setdefault(message['chat_id'], []).append(dict(message))

    chats = []
    for row in rows:
        data = dict(row)
        data['messages'] = by_chat.get(row['id'], [])
        chats.append(Chat(**data))
    return chats


class ChatRepository:
    """
    Repository for chats, messages and chat settings
    """

    def find_by_id(self, chat_id: int) -> Optional[Chat]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {CHAT_COLUMNS} FROM chats c WHERE c.id = %s", (chat_id,))
            row = cursor.fetchone()
            return _attach_messages(cursor, [row])[0] if row else None

        finally:
            cursor.close()
            conn.close()

    def find_open_by_visitor(self, visitor_id: str) -> Optional[Chat]:
        """Most recent chat of the visitor that is not closed"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {CHAT_COLUMNS}
                FROM chats c
                WHERE c.visitor_id = %s AND c.status <> 'closed'
                ORDER BY c.created_at DESC
                LIMIT 1
            """, (visitor_id,))
            row = cursor.fetchone()
            return _attach_messages(cursor, [row])[0] if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, visitor_id: str, visitor_name: str = "", visitor_email: str = "",
               visitor_ip: Optional[str] = None, visitor_browser: Optional[str] = None,
               visitor_device: Optional[str] = None) -> Chat:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO chats AS c
                    (visitor_id, visitor_name, visitor_email, visitor_ip, visitor_browser, visitor_device, status)
                VALUES (%s, %s, %s, %s, %s, %s, 'active')
                RETURNING {CHAT_COLUMNS}
            """, (visitor_id, visitor_name or "", visitor_email or "", visitor_ip, visitor_browser, visitor_device))
            row = cursor.fetchone()
            conn.commit()
            return Chat(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, chat_id: int, fields: Dict[str, Any]) -> None:
        allowed = {
            "visitor_name", "visitor_email", "visitor_ip", "visitor_browser",
            "visitor_device", "status", "closed_at", "closed_by",
        }
        updates = {k: v for k, v in fields.items() if k in allowed}
        if not updates:
            return

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause = ", ".join(f"{column} = %s" for column in updates)
            cursor.execute(f"""
                UPDATE chats SET {set_clause}, updated_at = NOW()
                WHERE id = %s
            """, list(updates.values()) + [chat_id])
            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def add_messages(self, chat_id: int, messages: List[Dict[str, Any]]) -> List[ChatMessage]:
        """
        Append messages in order and bump last_message_at

        Each message: {sender, sender_name, text, read}
        """
        if not messages:
            return []

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            saved = []
            for message in messages:
                cursor.execute(f"""
                    INSERT INTO chat_messages (chat_id, sender, sender_name, text, read, created_at)
                    VALUES (%s, %s, %s, %s, %s, clock_timestamp())
                    RETURNING {MESSAGE_COLUMNS}
                """, (chat_id, message['sender'], message.get('sender_name'),
                      message['text'], message.get('read', False)))
                saved.append(ChatMessage(**cursor.fetchone()))

            cursor.execute(
                "UPDATE chats SET last_message_at = NOW(), updated_at = NOW() WHERE id = %s",
                (chat_id,)
            )
            conn.commit()
            return saved

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def mark_read(self, chat_id: int) -> int:
        """Mark visitor messages read; returns how many changed"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE chat_messages SET read = TRUE
                WHERE chat_id = %s AND sender = 'visitor' AND read = FALSE
            """, (chat_id,))
            changed = cursor.rowcount
            conn.commit()
            return changed

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Chat], int]:
        """
        Chats for the admin inbox, most recent activity first

        Args:
            status: active, waiting, pending, closed
            search: Matches visitor name, email or visitor id
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("c.status = %s")
                params.append(status)

            if search:
                conditions.append("(c.visitor_name ILIKE %s OR c.visitor_email ILIKE %s OR c.visitor_id ILIKE %s)")
                search_param = f"%{search.strip()}%"
                params.extend([search_param] * 3)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM chats c
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {CHAT_COLUMNS}
                FROM chats c
                WHERE {where_clause}
                ORDER BY c.last_message_at DESC NULLS LAST, c.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return _attach_messages(cursor, cursor.fetchall()), total

        finally:
            cursor.close()
            conn.close()

    def status_counts(self) -> Dict[str, int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT status, COUNT(*) as count FROM chats GROUP BY status")
            counts = {status: 0 for status in CHAT_STATUSES}
            for row in cursor.fetchall():
                counts[row['status']] = row['count']
            counts['all'] = sum(counts.values())
            return counts

        finally:
            cursor.close()
            conn.close()

    def delete(self, chat_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM chats WHERE id = %s", (chat_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def get_settings(self) -> ChatSettings:
        """Read the settings row, creating it with defaults on first use"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {', '.join(SETTINGS_COLUMNS)} FROM chat_settings WHERE id = 1")
            row = cursor.fetchone()
            if row:
                return ChatSettings(**row)

            defaults = ChatSettings()
            values = [getattr(defaults, column) for column in SETTINGS_COLUMNS]
            cursor.execute(f"""
                INSERT INTO chat_settings (id, {', '.join(SETTINGS_COLUMNS)})
                VALUES (1, {', '.join(['%s'] * len(SETTINGS_COLUMNS))})
                ON CONFLICT (id) DO NOTHING
            """, values)
            conn.commit()
            return defaults

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update_settings(self, fields: Dict[str, Any]) -> ChatSettings:
        updates = {k: v for k, v in fields.items() if k in SETTINGS_COLUMNS and v is not None}
        current = self.get_settings()
        if not updates:
            return current

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause = ", ".join(f"{column} = %s" for column in updates)
            cursor.execute(f"""
                UPDATE chat_settings SET {set_clause}, updated_at = NOW()
                WHERE id = 1
                RETURNING {', '.join(SETTINGS_COLUMNS)}
            """, list(updates.values()))
            row = cursor.fetchone()
            conn.commit()
            return ChatSettings(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
