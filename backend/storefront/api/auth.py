"""
Authentication API endpoints for the storefront
- Customer registration and login
- Admin login
- Profile and password management

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, HTTPException, status

from storefront.core.auth import TokenUser, get_current_user
from storefront.domain.user import UserRegister, UserLogin, ProfileUpdate, PasswordChange
from storefront.services.auth_service import AuthService, AuthError, get_auth_service


router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


# =============================================================================
# Sign up / sign in
# =============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: UserRegister,
    service: AuthService = Depends(get_auth_service)
):
    """
    Create a customer account

    Returns a session token and the new user. A failed welcome email
    does not fail registration.
    """
    try:
        session = service.register(data)
        return {
            "status": "success",
            "message": "Registration successful",
            "data": session
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error registering user: {str(e)}")


async def _login(data: UserLogin, service: AuthService, admin: bool):
    try:
        session = service.login(data.email, data.password, admin=admin)
        return {
            "status": "success",
            "message": "Login successful",
            "data": session
        }
    except AuthError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error logging in: {str(e)}")


@router.post("/login")
async def login(
    data: UserLogin,
    service: AuthService = Depends(get_auth_service)
):
    """Customer login with email and password"""
    return await _login(data, service, admin=False)


@router.post("/admin/login")
async def admin_login(
    data: UserLogin,
    service: AuthService = Depends(get_auth_service)
):
    """Back-office login; the account must have the admin role"""
    return await _login(data, service, admin=True)


# =============================================================================
# Current user
# =============================================================================

@router.get("/me")
async def get_me(
    current_user: TokenUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Profile of the signed-in user"""
    try:
        user = service.get_profile(current_user.id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        return {
            "status": "success",
            "data": user.to_dict()
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching profile: {str(e)}")


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    current_user: TokenUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Update name, phone or avatar"""
    try:
        user = service.update_profile(current_user.id, data)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        return {
            "status": "success",
            "message": "Profile updated successfully",
            "data": user.to_dict()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating profile: {str(e)}")


@router.put("/password")
async def change_password(
    data: PasswordChange,
    current_user: TokenUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Change password (requires the current one)"""
    try:
        service.change_password(current_user.id, data)
        return {
            "status": "success",
            "message": "Password changed successfully"
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error changing password: {str(e)}")
