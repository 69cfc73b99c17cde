"""
Products API Endpoints
Storefront catalog browsing and admin product management

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from typing import Optional, List

from storefront.core.auth import TokenUser, require_admin
from storefront.domain.product import ProductCreate, ProductUpdate, ProductSize
from storefront.services.catalog_service import CatalogService, COLLECTIONS, get_catalog_service


router = APIRouter(prefix="/api/v1/products", tags=["Products"])


# =============================================================================
# Pydantic Models
# =============================================================================

class StockUpdate(BaseModel):
    stock: Optional[int] = Field(None, ge=0)
    sizes: Optional[List[ProductSize]] = None


class BulkProductIds(BaseModel):
    product_ids: List[int] = Field(..., min_length=1)


class BulkStatusUpdate(BulkProductIds):
    status: str


# =============================================================================
# Storefront
# =============================================================================

@router.get("")
async def list_products(
    search: Optional[str] = Query(None, description="Search title, description, tags, sub category, SKU"),
    category: Optional[str] = Query(None, description="Category slug"),
    sub_category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    size: Optional[str] = Query(None),
    color: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    new_arrival: Optional[bool] = Query(None),
    best_seller: Optional[bool] = Query(None),
    on_sale: Optional[bool] = Query(None),
    tag: Optional[str] = Query(None),
    sort: str = Query("featured", description="newest, oldest, price_low, price_high, name_asc, name_desc, popular, rating, discount"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Public product listing (active products only)
    """
    try:
        result = service.list_products(
            {
                "search": search,
                "category": category,
                "sub_category": sub_category,
                "min_price": min_price,
                "max_price": max_price,
                "size": size,
                "color": color,
                "featured": featured,
                "new_arrival": new_arrival,
                "best_seller": best_seller,
                "on_sale": on_sale,
                "tag": tag,
            },
            sort=sort,
            page=page,
            limit=limit,
        )
        return {
            "status": "success",
            "data": result["products"],
            "pagination": result["pagination"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/suggestions")
async def search_suggestions(
    q: Optional[str] = Query(None, description="Partial search text"),
    limit: int = Query(5, ge=1, le=10),
    service: CatalogService = Depends(get_catalog_service)
):
    """Search-as-you-type suggestions"""
    try:
        return {
            "status": "success",
            "data": service.search_suggestions(q, limit)
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching suggestions: {str(e)}")


@router.get("/collections/{collection}")
async def get_collection(
    collection: str,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    service: CatalogService = Depends(get_catalog_service)
):
    """Featured, new arrivals, best sellers or sale"""
    if collection not in COLLECTIONS:
        raise HTTPException(status_code=404, detail=f"Collection not found: {collection}")

    try:
        result = service.list_collection(collection, page=page, limit=limit)
        return {
            "status": "success",
            "data": result["products"],
            "pagination": result["pagination"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching collection: {str(e)}")


@router.get("/categories")
async def list_categories(
    service: CatalogService = Depends(get_catalog_service)
):
    """Categories that have active products, with counts"""
    try:
        return {
            "status": "success",
            "data": service.list_categories()
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching categories: {str(e)}")


@router.get("/filters/options")
async def get_filter_options(
    category: Optional[str] = Query(None, description="Limit options to one category slug"),
    service: CatalogService = Depends(get_catalog_service)
):
    """Sizes, colors, sub categories, tags and price range for the shop sidebar"""
    try:
        return {
            "status": "success",
            "data": service.filter_options(category)
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching filter options: {str(e)}")


# =============================================================================
# Admin
# =============================================================================

@router.get("/admin/all")
async def admin_list_products(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    product_status: Optional[str] = Query(None, alias="status"),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """All products in every status"""
    try:
        result = service.list_products(
            {"search": search, "category": category, "status": product_status},
            sort=sort,
            page=page,
            limit=limit,
            public=False,
        )
        return {
            "status": "success",
            "data": result["products"],
            "pagination": result["pagination"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/admin/categories")
async def admin_list_categories(
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """Every category in use, counting products in any status"""
    try:
        return {
            "status": "success",
            "data": service.list_categories(public=False)
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching categories: {str(e)}")


@router.put("/admin/bulk/status")
async def bulk_update_status(
    data: BulkStatusUpdate,
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        updated = service.bulk_update_status(data.product_ids, data.status)
        return {
            "status": "success",
            "message": f"{updated} product(s) updated to \"{data.status}\"",
            "data": {"modified_count": updated}
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating products: {str(e)}")


@router.delete("/admin/bulk/delete")
async def bulk_delete_products(
    data: BulkProductIds,
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """Delete several products and their images"""
    try:
        deleted = service.bulk_delete(data.product_ids)
        return {
            "status": "success",
            "message": f"{deleted} product(s) deleted successfully",
            "data": {"deleted_count": deleted}
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting products: {str(e)}")


@router.get("/admin/{product_id}")
async def admin_get_product(
    product_id: int,
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        product = service.get_product(product_id, public=False)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        return {
            "status": "success",
            "data": product.to_dict()
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        product = service.create_product(data)
        return {
            "status": "success",
            "message": "Product created successfully",
            "data": product.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating product: {str(e)}")


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    data: ProductUpdate,
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        product = service.update_product(product_id, data)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        return {
            "status": "success",
            "message": "Product updated successfully",
            "data": product.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating product: {str(e)}")


@router.patch("/{product_id}/stock")
async def update_stock(
    product_id: int,
    data: StockUpdate,
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """Set total stock, or per-size stock for sized products"""
    try:
        sizes = [size.model_dump() for size in data.sizes] if data.sizes is not None else None
        product = service.update_stock(product_id, stock=data.stock, sizes=sizes)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        return {
            "status": "success",
            "message": "Stock updated successfully",
            "data": product.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating stock: {str(e)}")


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    admin: TokenUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """Delete a product and its images"""
    try:
        if not service.delete_product(product_id):
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        return {
            "status": "success",
            "message": "Product deleted successfully"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting product: {str(e)}")


# =============================================================================
# Product detail (declared last: catches any single path segment)
# =============================================================================

@router.get("/{slug_or_id}")
async def get_product(
    slug_or_id: str,
    service: CatalogService = Depends(get_catalog_service)
):
    """Product detail by slug or id, with related products"""
    try:
        product = service.get_product(slug_or_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")

        return {
            "status": "success",
            "data": product.to_dict(),
            "related": service.related_products(product)
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")
