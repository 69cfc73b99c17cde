"""
Product Repository - Data Access Layer for the catalog

Handles all database queries for products and returns Product domain models.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any
from psycopg2.extras import Json

from storefront.domain.product import Product
from storefront.core.database import get_db_connection_dict


PRODUCT_COLUMNS = """
    p.id, p.title, p.slug, p.description, p.short_description,
    p.category, p.sub_category, p.images,
    p.regular_price, p.sale_price,
    p.sizes, p.colors, p.stock, p.sku, p.tags,
    p.featured, p.new_arrival, p.best_seller, p.status,
    p.rating_average, p.rating_count, p.total_sold,
    p.created_at, p.updated_at
"""

EFFECTIVE_PRICE_SQL = (
    "(CASE WHEN p.sale_price > 0 AND p.sale_price < p.regular_price "
    "THEN p.sale_price ELSE p.regular_price END)"
)

DISCOUNT_SQL = (
    "(CASE WHEN p.sale_price > 0 AND p.sale_price < p.regular_price AND p.regular_price > 0 "
    "THEN (p.regular_price - p.sale_price) / p.regular_price ELSE 0 END)"
)

SORT_OPTIONS = {
    "newest": "p.created_at DESC",
    "oldest": "p.created_at ASC",
    "price_low": f"{EFFECTIVE_PRICE_SQL} ASC",
    "price_high": f"{EFFECTIVE_PRICE_SQL} DESC",
    "name_asc": "p.title ASC",
    "name_desc": "p.title DESC",
    "popular": "p.total_sold DESC",
    "rating": "p.rating_average DESC, p.rating_count DESC",
    "discount": f"{DISCOUNT_SQL} DESC",
    "featured": "p.featured DESC, p.created_at DESC",
}

JSON_COLUMNS = ("images", "sizes", "colors")

WRITABLE_COLUMNS = (
    "title", "slug", "description", "short_description", "category", "sub_category",
    "images", "regular_price", "sale_price", "sizes", "colors", "stock", "sku", "tags",
    "featured", "new_arrival", "best_seller", "status",
)


def _to_db_value(column: str, value: Any) -> Any:
    if column in JSON_COLUMNS:
        return Json([item.model_dump() if hasattr(item, "model_dump") else item for item in (value or [])])
    return value


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    """

    def find_by_id(self, product_id: int) -> Optional[Product]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {PRODUCT_COLUMNS} FROM products p WHERE p.id = %s", (product_id,))
            row = cursor.fetchone()
            return Product(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_slug(self, slug: str) -> Optional[Product]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"SELECT {PRODUCT_COLUMNS} FROM products p WHERE p.slug = %s", (slug,))
            row = cursor.fetchone()
            return Product(**row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_ids(self, product_ids: List[int]) -> Dict[int, Product]:
        """
        Load several products in ONE QUERY

        Returns:
            Dict of product_id -> Product (missing ids are absent)
        """
        if not product_ids:
            return {}

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {PRODUCT_COLUMNS} FROM products p WHERE p.id = ANY(%s)",
                (list(set(product_ids)),)
            )
            return {row['id']: Product(**row) for row in cursor.fetchall()}

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        sub_category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        size: Optional[str] = None,
        color: Optional[str] = None,
        featured: Optional[bool] = None,
        new_arrival: Optional[bool] = None,
        best_seller: Optional[bool] = None,
        on_sale: Optional[bool] = None,
        tag: Optional[str] = None,
        status: Optional[str] = None,
        exclude_id: Optional[int] = None,
        sort: str = "featured",
        limit: int = 12,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            search: Matches title, description, tags, sub category and SKU
            category: Category slug
            min_price / max_price: Bounds on the effective (sale-aware) price
            size: Only products with this size in stock
            color: Only products offered in this color
            status: Catalog status (public listing passes "active")
            sort: One of SORT_OPTIONS
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if status:
                conditions.append("p.status = %s")
                params.append(status)

            if search:
                conditions.append("""(
                    p.title ILIKE %s OR
                    p.description ILIKE %s OR
                    p.sub_category ILIKE %s OR
                    p.sku ILIKE %s OR
                    EXISTS (SELECT 1 FROM unnest(p.tags) t WHERE t ILIKE %s)
                )""")
                search_param = f"%{search.strip()}%"
                params.extend([search_param] * 5)

            if category:
                conditions.append("p.category = %s")
                params.append(category)

            if sub_category:
                conditions.append("p.sub_category ILIKE %s")
                params.append(sub_category)

            if min_price is not None:
                conditions.append(f"{EFFECTIVE_PRICE_SQL} >= %s")
                params.append(min_price)

            if max_price is not None:
                conditions.append(f"{EFFECTIVE_PRICE_SQL} <= %s")
                params.append(max_price)

            if size:
                conditions.append("""EXISTS (
                    SELECT 1 FROM jsonb_array_elements(p.sizes) s
                    WHERE LOWER(s->>'name') = LOWER(%s) AND (s->>'stock')::int > 0
                )""")
                params.append(size)

            if color:
                conditions.append("""EXISTS (
                    SELECT 1 FROM jsonb_array_elements(p.colors) c
                    WHERE LOWER(c->>'name') = LOWER(%s)
                )""")
                params.append(color)

            if featured is not None:
                conditions.append("p.featured = %s")
                params.append(featured)

            if new_arrival is not None:
                conditions.append("p.new_arrival = %s")
                params.append(new_arrival)

            if best_seller is not None:
                conditions.append("p.best_seller = %s")
                params.append(best_seller)

            if on_sale:
                conditions.append("p.sale_price > 0 AND p.sale_price < p.regular_price")

            if tag:
                conditions.append("EXISTS (SELECT 1 FROM unnest(p.tags) t WHERE LOWER(t) = LOWER(%s))")
                params.append(tag)

            if exclude_id is not None:
                conditions.append("p.id <> %s")
                params.append(exclude_id)

            where_clause = " AND ".join(conditions) if conditions else "1=1"
            order_by = SORT_OPTIONS.get(sort, SORT_OPTIONS["featured"])

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM products p
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products p
                WHERE {where_clause}
                ORDER BY {order_by}, p.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            products = [Product(**row) for row in cursor.fetchall()]
            return products, total

        finally:
            cursor.close()
            conn.close()

    def search_suggestions(self, query: str, limit: int = 5) -> List[Product]:
        """Lightweight title/tag match for the search-as-you-type box"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            pattern = f"%{query.strip()}%"
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products p
                WHERE p.status = 'active'
                  AND (
                    p.title ILIKE %s OR
                    p.sub_category ILIKE %s OR
                    EXISTS (SELECT 1 FROM unnest(p.tags) t WHERE t ILIKE %s)
                  )
                ORDER BY (p.title ILIKE %s) DESC, p.total_sold DESC, p.id DESC
                LIMIT %s
            """, (pattern, pattern, pattern, f"{query.strip()}%", limit))
            return [Product(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if exclude_id is None:
                cursor.execute("SELECT 1 FROM products WHERE slug = %s", (slug,))
            else:
                cursor.execute("SELECT 1 FROM products WHERE slug = %s AND id <> %s", (slug, exclude_id))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: Dict[str, Any]) -> Product:
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        values = [_to_db_value(c, data[c]) for c in columns]

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            placeholders = ", ".join(["%s"] * len(columns))
            cursor.execute(f"""
                INSERT INTO products AS p ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {PRODUCT_COLUMNS}
            """, values)
            row = cursor.fetchone()
            conn.commit()
            return Product(**row)

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def update(self, product_id: int, data: Dict[str, Any]) -> Optional[Product]:
        columns = [c for c in WRITABLE_COLUMNS if c in data]
        if not columns:
            return self.find_by_id(product_id)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            set_clause = ", ".join(f"{c} = %s" for c in columns)
            cursor.execute(f"""
                UPDATE products p SET {set_clause}, updated_at = NOW()
                WHERE p.id = %s
                RETURNING {PRODUCT_COLUMNS}
            """, [_to_db_value(c, data[c]) for c in columns] + [product_id])
            row = cursor.fetchone()
            conn.commit()
            return Product(**row) if row else None

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete(self, product_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def category_summary(self) -> List[Dict[str, Any]]:
        """
        Categories in use, with product counts

        Returns:
            [{category, active_count, total_count, sub_categories}] ordered by category
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    p.category,
                    COUNT(*) FILTER (WHERE p.status = 'active') as active_count,
                    COUNT(*) as total_count,
                    ARRAY_REMOVE(ARRAY_AGG(DISTINCT p.sub_category), NULL) as sub_categories
                FROM products p
                WHERE p.category IS NOT NULL AND p.category <> ''
                GROUP BY p.category
                ORDER BY p.category
            """)
            return [dict(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def filter_options(self, category: Optional[str] = None) -> Dict[str, Any]:
        """
        Values the shop sidebar can filter on, taken from active products

        Returns:
            Dict with sizes, colors ({name, hex}), sub_categories, tags, min_price, max_price
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            where_clause = "p.status = 'active'"
            params: List[Any] = []
            if category:
                where_clause += " AND p.category = %s"
                params.append(category)

            cursor.execute(f"""
                SELECT DISTINCT s->>'name' as name
                FROM products p, jsonb_array_elements(p.sizes) s
                WHERE {where_clause} AND COALESCE(s->>'name', '') <> ''
            """, params)
            sizes = [row['name'] for row in cursor.fetchall()]

            cursor.execute(f"""
                SELECT DISTINCT ON (LOWER(c->>'name')) c->>'name' as name, c->>'hex' as hex
                FROM products p, jsonb_array_elements(p.colors) c
                WHERE {where_clause} AND COALESCE(c->>'name', '') <> ''
                ORDER BY LOWER(c->>'name'), c->>'hex' NULLS LAST
            """, params)
            colors = [{"name": row['name'], "hex": row['hex']} for row in cursor.fetchall()]

            cursor.execute(f"""
                SELECT
                    MIN({EFFECTIVE_PRICE_SQL}) as min_price,
                    MAX(p.regular_price) as max_price,
                    ARRAY_REMOVE(ARRAY_AGG(DISTINCT p.sub_category), NULL) as sub_categories
                FROM products p
                WHERE {where_clause}
            """, params)
            row = cursor.fetchone()

            cursor.execute(f"""
                SELECT DISTINCT t as tag
                FROM products p, unnest(p.tags) t
                WHERE {where_clause}
                ORDER BY t
            """, params)
            tags = [r['tag'] for r in cursor.fetchall()]

            return {
                "sizes": sizes,
                "colors": colors,
                "sub_categories": sorted(row['sub_categories'] or []),
                "tags": tags,
                "min_price": row['min_price'],
                "max_price": row['max_price'],
            }

        finally:
            cursor.close()
            conn.close()

    def update_status_many(self, product_ids: List[int], status: str) -> int:
        """Set one status on several products; returns the number updated"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE products SET status = %s, updated_at = NOW()
                WHERE id = ANY(%s)
            """, (status, list(set(product_ids))))
            updated = cursor.rowcount
            conn.commit()
            return updated

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def delete_many(self, product_ids: List[int]) -> int:
        """Delete several products (their reviews and cart lines cascade)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = ANY(%s)", (list(set(product_ids)),))
            deleted = cursor.rowcount
            conn.commit()
            return deleted

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

    def find_low_stock(self, threshold: int = 10, limit: int = 10) -> List[Product]:
        """Active products that are running out (0 < stock <= threshold)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products p
                WHERE p.status = 'active' AND p.stock > 0 AND p.stock <= %s
                ORDER BY p.stock ASC, p.id
                LIMIT %s
            """, (threshold, limit))
            return [Product(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def count(self) -> int:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT COUNT(*) AS total FROM products")
            return cursor.fetchone()['total']

        finally:
            cursor.close()
            conn.close()
