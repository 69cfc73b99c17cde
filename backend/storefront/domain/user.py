"""
User Domain Models

Customer and admin accounts.

Author: TM3
Date: 2025-10-17
"""
import re
from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator, model_validator
from typing import Optional
from datetime import datetime


USER_ROLES = ("user", "admin")


def check_password_strength(password: str) -> str:
    """At least 6 characters with an uppercase letter, a lowercase letter and a digit"""
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")
    if not re.search(r"[A-Z]", password) or not re.search(r"[a-z]", password) or not re.search(r"\d", password):
        raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
    return password


class User(BaseModel):
    """
    User domain model

    password_hash is loaded for login checks and never serialized.
    """

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: str = "user"
    is_active: bool = True
    password_hash: Optional[str] = Field(None, exclude=True)
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return self.model_dump()


class UserRegister(BaseModel):
    name: str = Field(..., max_length=50)
    email: EmailStr
    password: str
    confirm_password: str
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("name")
    @classmethod
    def _check_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()

    @field_validator("password")
    @classmethod
    def _check_password(cls, v):
        return check_password_strength(v)

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    avatar: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _check_password(cls, v):
        return check_password_strength(v)
