"""
Catalog Service - product listing, search and admin product management

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional, Dict, Any, List, Union

from storefront.domain.product import Product, ProductCreate, ProductUpdate, PRODUCT_STATUSES, slugify
from storefront.domain.pagination import normalize_paging, build_pagination
from storefront.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 12
MAX_LIMIT = 50

# Apparel sizes in shelf order; anything else sorts after them alphabetically
SIZE_ORDER = ("XXS", "XS", "S", "M", "L", "XL", "XXL", "XXXL")

# Collection name -> listing filter
COLLECTIONS = {
    "featured": {"featured": True},
    "new-arrivals": {"new_arrival": True},
    "best-sellers": {"best_seller": True},
    "sale": {"on_sale": True},
}


def category_name(slug: str) -> str:
    """Display name for a category slug: "evening-wear" -> "Evening Wear" """
    return " ".join(part.capitalize() for part in slug.replace("_", "-").split("-") if part)


def sort_sizes(sizes: List[str]) -> List[str]:
    def key(size: str):
        upper = size.upper()
        if upper in SIZE_ORDER:
            return (0, SIZE_ORDER.index(upper), "")
        return (1, 0, upper)
    return sorted(set(sizes), key=key)


def _sync_size_stock(data: Dict[str, Any]) -> Dict[str, Any]:
    """When sizes are given, total stock is their sum"""
    sizes = data.get("sizes")
    if sizes:
        data["stock"] = sum(int(size["stock"] if isinstance(size, dict) else size.stock) for size in sizes)
    return data


def _sync_stock_status(data: Dict[str, Any], current_status: Optional[str]) -> Dict[str, Any]:
    status = data.get("status", current_status)
    if "stock" in data:
        if data["stock"] == 0 and status == "active":
            data["status"] = "out_of_stock"
        elif data["stock"] > 0 and status == "out_of_stock":
            data["status"] = "active"
    return data


class CatalogService:
    """
    Storefront catalog operations

    Public reads only ever return active products.
    """

    def __init__(self, product_repo: Optional[ProductRepository] = None, media_service=None):
        self.product_repo = product_repo or ProductRepository()
        self._media_service = media_service

    @property
    def media_service(self):
        if self._media_service is None:
            from storefront.services.media_service import get_media_service
            self._media_service = get_media_service()
        return self._media_service

    def list_products(self, filters: Optional[Dict[str, Any]] = None, sort: str = "featured",
                      page: int = 1, limit: int = DEFAULT_LIMIT,
                      public: bool = True) -> Dict[str, Any]:
        filters = {k: v for k, v in (filters or {}).items() if v is not None and v != ""}
        if public:
            filters["status"] = "active"

        page, limit, offset = normalize_paging(page, limit, DEFAULT_LIMIT, MAX_LIMIT)
        products, total = self.product_repo.find_all(sort=sort, limit=limit, offset=offset, **filters)

        return {
            "products": [product.to_dict() for product in products],
            "pagination": build_pagination(page, limit, total),
        }

    def list_collection(self, collection: str, page: int = 1, limit: int = DEFAULT_LIMIT) -> Dict[str, Any]:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        sort = "discount" if collection == "sale" else "newest"
        if collection == "best-sellers":
            sort = "popular"
        return self.list_products(dict(COLLECTIONS[collection]), sort=sort, page=page, limit=limit)

    def search_suggestions(self, query: Optional[str], limit: int = 5) -> List[Dict[str, Any]]:
        if not query or not query.strip():
            return []
        limit = max(1, min(limit, 10))
        return [product.to_summary() for product in self.product_repo.search_suggestions(query, limit)]

    def get_product(self, slug_or_id: Union[str, int], public: bool = True) -> Optional[Product]:
        """Find by numeric id or slug; hidden products are not found for the public"""
        product = None
        if str(slug_or_id).isdigit():
            product = self.product_repo.find_by_id(int(slug_or_id))
        if product is None:
            product = self.product_repo.find_by_slug(str(slug_or_id))

        if product and public and product.status != "active":
            return None
        return product

    def related_products(self, product: Product, limit: int = 4) -> List[Dict[str, Any]]:
        if not product.category:
            return []
        products, _ = self.product_repo.find_all(
            category=product.category,
            status="active",
            exclude_id=product.id,
            sort="popular",
            limit=limit,
            offset=0,
        )
        return [p.to_dict() for p in products]

    def _unique_slug(self, base: str, exclude_id: Optional[int] = None) -> str:
        slug = slugify(base)
        candidate = slug
        counter = 2
        while self.product_repo.slug_exists(candidate, exclude_id=exclude_id):
            candidate = f"{slug}-{counter}"
            counter += 1
        return candidate

    def create_product(self, data: ProductCreate) -> Product:
        fields = data.model_dump()
        fields["slug"] = self._unique_slug(data.slug or data.title)
        fields = _sync_stock_status(_sync_size_stock(fields), fields.get("status"))

        product = self.product_repo.create(fields)
        logger.info(f"Product created: {product.title} (id={product.id})")
        return product

    def update_product(self, product_id: int, data: ProductUpdate) -> Optional[Product]:
        current = self.product_repo.find_by_id(product_id)
        if not current:
            return None

        fields = data.model_dump(exclude_unset=True)
        if fields.get("slug"):
            fields["slug"] = self._unique_slug(fields["slug"], exclude_id=product_id)
        elif fields.get("title") and fields["title"] != current.title:
            fields["slug"] = self._unique_slug(fields["title"], exclude_id=product_id)
        else:
            fields.pop("slug", None)

        fields = _sync_stock_status(_sync_size_stock(fields), current.status)
        return self.product_repo.update(product_id, fields)

    def update_stock(self, product_id: int, stock: Optional[int] = None,
                     sizes: Optional[List[Dict[str, Any]]] = None) -> Optional[Product]:
        current = self.product_repo.find_by_id(product_id)
        if not current:
            return None

        fields: Dict[str, Any] = {}
        if sizes is not None:
            fields["sizes"] = sizes
        elif stock is not None:
            if current.sizes:
                raise ValueError("This product tracks stock per size; update sizes instead")
            fields["stock"] = stock
        else:
            raise ValueError("Provide stock or sizes")

        fields = _sync_stock_status(_sync_size_stock(fields), current.status)
        return self.product_repo.update(product_id, fields)

    def list_categories(self, public: bool = True) -> List[Dict[str, Any]]:
        """
        Categories derived from the catalog

        The public list only has categories with active products and counts
        active products; the admin list counts every product.
        """
        categories = []
        for row in self.product_repo.category_summary():
            count = row["active_count"] if public else row["total_count"]
            if public and not count:
                continue
            categories.append({
                "slug": row["category"],
                "name": category_name(row["category"]),
                "product_count": count,
                "sub_categories": sorted(row.get("sub_categories") or []),
            })
        return categories

    def filter_options(self, category: Optional[str] = None) -> Dict[str, Any]:
        options = self.product_repo.filter_options(category=category or None)
        return {
            "sizes": sort_sizes(options["sizes"]),
            "colors": options["colors"],
            "sub_categories": options["sub_categories"],
            "tags": options["tags"],
            "price_range": {
                "min": float(options["min_price"] or 0),
                "max": float(options["max_price"] or 0),
            },
        }

    def bulk_update_status(self, product_ids: List[int], status: str) -> int:
        if not product_ids:
            raise ValueError("Please provide product IDs")
        if status not in PRODUCT_STATUSES:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(PRODUCT_STATUSES)}")

        updated = self.product_repo.update_status_many(product_ids, status)
        logger.info(f"{updated} product(s) set to {status}")
        return updated

    def bulk_delete(self, product_ids: List[int]) -> int:
        """Delete several products and their images; returns the number deleted"""
        if not product_ids:
            raise ValueError("Please provide product IDs")

        for product in self.product_repo.find_by_ids(product_ids).values():
            self._remove_images(product)

        deleted = self.product_repo.delete_many(product_ids)
        logger.info(f"Bulk delete: {deleted} product(s) removed")
        return deleted

    def _remove_images(self, product: Product) -> None:
        for image in product.images:
            if image.public_id:
                try:
                    self.media_service.delete(image.public_id)
                except Exception as e:
                    logger.warning(f"Could not remove image {image.public_id} of product {product.id}: {e}")

    def delete_product(self, product_id: int) -> bool:
        product = self.product_repo.find_by_id(product_id)
        if not product:
            return False

        self._remove_images(product)

        deleted = self.product_repo.delete(product_id)
        if deleted:
            logger.info(f"Product deleted: {product.title} (id={product_id})")
        return deleted


# Singleton instance for easy import
_catalog_service: Optional[CatalogService] = None

def get_catalog_service() -> CatalogService:
    """Get the singleton catalog service instance"""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
