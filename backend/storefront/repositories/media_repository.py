"""
Media Repository - Data Access Layer for the media library

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any
from storefront.domain.media import MediaAsset
from storefront.core.database import get_db_connection_dict


MEDIA_COLUMNS = """
    id, public_id, url, filename, content_type, size_bytes,
    folder, alt, uploaded_by, created_at
"""


class MediaRepository:
    """
    Repository for uploaded images
    """

    def create(self, asset: Dict[str, Any]) -> MediaAsset:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO media_assets
                    (public_id, url, filename, content_type, size_bytes, folder, alt, uploaded_by)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {MEDIA_COLUMNS}
            """, (
                asset['public_id'], asset['url'], asset.get('filename'), asset.get('content_type'),
                asset.get('size_bytes', 0), asset.get('folder', 'products'), asset.get('alt'),
                asset.get('uploaded_by'),
            ))
            row = cursor.fetchone()
            conn.commit()
            return MediaAsset(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_by_public_id(self, public_id: str) -> Optional[MediaAsset]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {MEDIA_COLUMNS} FROM media_assets WHERE public_id = %s", (public_id,))
            row = cursor.fetchone()
            return MediaAsset(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        folder: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 40,
        offset: int = 0
    ) -> Tuple[List[MediaAsset], int]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if folder:
                conditions.append("folder = %s")
                params.append(folder)

            if search:
                conditions.append("(filename ILIKE %s OR alt ILIKE %s)")
                search_param = f"%{search.strip()}%"
                params.extend([search_param, search_param])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM media_assets
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {MEDIA_COLUMNS}
                FROM media_assets
                WHERE {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            return [MediaAsset(**row) for row in cursor.fetchall()], total

        finally:
            cursor.close()
            conn.close()

    def delete_by_public_id(self, public_id: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM media_assets WHERE public_id = %s", (public_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()
