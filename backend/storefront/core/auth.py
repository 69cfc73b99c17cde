"""
Authentication for the storefront backend
Issues and validates JWT tokens and provides user context to endpoints
"""
from typing import Optional
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import BaseModel

from storefront.core.config import settings


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: int
    email: str
    name: Optional[str] = None
    role: str = "user"


class AuthConfig:
    """Authentication configuration"""

    @staticmethod
    def get_auth_secret() -> str:
        """Get the AUTH_SECRET from settings"""
        secret = settings.AUTH_SECRET
        if not secret:
            raise ValueError("AUTH_SECRET environment variable is not set")
        return secret

    @staticmethod
    def get_jwt_algorithm() -> str:
        return settings.JWT_ALGORITHM


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(user_id: int, email: str, name: Optional[str], role: str,
                        expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Payload:
    {
        "sub": "42",
        "id": 42,
        "email": "jane@example.com",
        "name": "Jane",
        "role": "user",
        "iat": 1234567890,
        "exp": 1234567890
    }
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.JWT_EXPIRE_DAYS))
    payload = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "name": name,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, AuthConfig.get_auth_secret(), algorithm=AuthConfig.get_jwt_algorithm())


def decode_access_token(token: str) -> dict:
    """Decode and validate an access token, raising 401 on any failure"""
    try:
        return jwt.decode(
            token,
            AuthConfig.get_auth_secret(),
            algorithms=[AuthConfig.get_jwt_algorithm()],
            options={"verify_aud": False}
        )
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=SESSION_EXPIRED_MESSAGE,
            headers={"WWW-Authenticate": "Bearer"}
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"}
        )


def _user_from_payload(payload: dict) -> TokenUser:
    user_id = payload.get("id") or payload.get("sub")
    email = payload.get("email")

    if not user_id or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id or email",
            headers={"WWW-Authenticate": "Bearer"}
        )

    # Token must still map to an active account
    from storefront.repositories.user_repository import UserRepository
    user = UserRepository().find_by_id(int(user_id))
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or account is deactivated",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return TokenUser(id=user.id, email=user.email, name=user.name, role=user.role)


def resolve_token(token: str) -> TokenUser:
    """Resolve a raw token string into a TokenUser (used by WebSocket endpoints)"""
    return _user_from_payload(decode_access_token(token))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/protected")
        async def protected_route(user: TokenUser = Depends(get_current_user)):
            return {"message": f"Hello {user.email}"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return resolve_token(credentials.credentials)


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenUser]:
    """
    Optional authentication - returns None if no valid token provided.
    """
    if not credentials:
        return None

    try:
        return resolve_token(credentials.credentials)
    except HTTPException:
        return None


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.delete("/orders/{order_id}")
        async def delete_order(
            order_id: int,
            user: TokenUser = Depends(require_role("admin"))
        ):
            pass
    """
    async def role_checker(
        user: TokenUser = Depends(get_current_user)
    ) -> TokenUser:
        # Role hierarchy: admin > user > viewer
        role_hierarchy = {
            "admin": 3,
            "user": 2,
            "viewer": 1
        }

        user_level = role_hierarchy.get(user.role, 0)
        required_level = role_hierarchy.get(required_role, 0)

        if user_level < required_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {required_role}, your role: {user.role}"
            )

        return user

    return role_checker


# Convenience dependencies for common role requirements
require_admin = require_role("admin")
require_user = require_role("user")
