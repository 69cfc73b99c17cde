"""
Cart API Endpoints
Per-user shopping cart

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException

from storefront.core.auth import TokenUser, get_current_user
from storefront.domain.cart import CartAddRequest, CartUpdateRequest
from storefront.services.cart_service import CartService, get_cart_service


router = APIRouter(prefix="/api/v1/cart", tags=["Cart"])


@router.get("")
async def get_cart(
    current_user: TokenUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """
    Current cart, revalidated against the catalog

    Lines whose product disappeared or sold out are dropped and listed in
    removed_items so the client can tell the shopper.
    """
    try:
        cart = service.get_cart(current_user.id)
        return {
            "status": "success",
            "data": cart.to_dict()
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching cart: {str(e)}")


@router.post("/items")
async def add_to_cart(
    data: CartAddRequest,
    current_user: TokenUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    try:
        cart = service.add_item(current_user.id, data.product_id, data.quantity, data.size, data.color)
        return {
            "status": "success",
            "message": "Item added to cart",
            "data": cart.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding to cart: {str(e)}")


@router.put("/items/{item_id}")
async def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    current_user: TokenUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    try:
        cart = service.update_item(current_user.id, item_id, data.quantity)
        if cart is None:
            raise HTTPException(status_code=404, detail="Cart item not found")

        return {
            "status": "success",
            "message": "Cart updated",
            "data": cart.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating cart: {str(e)}")


@router.delete("/items/{item_id}")
async def remove_cart_item(
    item_id: int,
    current_user: TokenUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    try:
        cart = service.remove_item(current_user.id, item_id)
        if cart is None:
            raise HTTPException(status_code=404, detail="Cart item not found")

        return {
            "status": "success",
            "message": "Item removed from cart",
            "data": cart.to_dict()
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing cart item: {str(e)}")


@router.delete("")
async def clear_cart(
    current_user: TokenUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    try:
        cart = service.clear(current_user.id)
        return {
            "status": "success",
            "message": "Cart cleared",
            "data": cart.to_dict()
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error clearing cart: {str(e)}")
