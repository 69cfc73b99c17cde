"""
Auth Service - registration, login and profile management

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional, Dict, Any

from storefront.core.auth import hash_password, verify_password, create_access_token
from storefront.domain.user import User, UserRegister, ProfileUpdate, PasswordChange
from storefront.repositories.user_repository import UserRepository
from storefront.services.email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Authentication failure carrying the HTTP status the API should return"""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthService:
    """
    Account operations for customers and admins
    """

    def __init__(self, user_repo: Optional[UserRepository] = None,
                 email_service: Optional[EmailService] = None):
        self.user_repo = user_repo or UserRepository()
        self.email_service = email_service or get_email_service()

    def _session(self, user: User) -> Dict[str, Any]:
        token = create_access_token(user.id, user.email, user.name, user.role)
        return {"token": token, "user": user.to_dict()}

    def register(self, data: UserRegister) -> Dict[str, Any]:
        """
        Create a customer account and sign it in

        Raises:
            ValueError: if the email is already registered
        """
        if self.user_repo.find_by_email(data.email):
            raise ValueError("An account with this email already exists")

        user = self.user_repo.create(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
        )
        logger.info(f"New customer registered: {user.email} (id={user.id})")

        sent, error = self.email_service.send_welcome(user.name, user.email)
        if not sent:
            logger.warning(f"Welcome email not sent to {user.email}: {error}")

        return self._session(user)

    def login(self, email: str, password: str, admin: bool = False) -> Dict[str, Any]:
        user = self.user_repo.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthError("Invalid email or password", 401)

        if not user.is_active:
            raise AuthError("Your account has been deactivated. Please contact support.", 403)

        if admin and not user.is_admin:
            raise AuthError("Access denied. Admin privileges required.", 403)

        self.user_repo.touch_last_login(user.id)
        logger.info(f"{'Admin' if admin else 'User'} login: {user.email}")
        return self._session(user)

    def get_profile(self, user_id: int) -> Optional[User]:
        return self.user_repo.find_by_id(user_id)

    def update_profile(self, user_id: int, data: ProfileUpdate) -> Optional[User]:
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in fields:
            fields["name"] = fields["name"].strip()
        return self.user_repo.update(user_id, fields)

    def change_password(self, user_id: int, data: PasswordChange) -> None:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise ValueError("User not found")

        if not verify_password(data.current_password, user.password_hash):
            raise ValueError("Current password is incorrect")

        if data.current_password == data.new_password:
            raise ValueError("New password must be different from the current password")

        self.user_repo.update(user_id, {"password_hash": hash_password(data.new_password)})
        logger.info(f"Password changed for user {user_id}")


# Singleton instance for easy import
_auth_service: Optional[AuthService] = None

def get_auth_service() -> AuthService:
    """Get the singleton auth service instance"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
