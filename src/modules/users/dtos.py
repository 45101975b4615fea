"""User DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from modules.users.constants import (
    PASSWORD_MIN_LENGTH,
    SELF_REGISTERABLE_ROLES,
    UserRole,
)

if TYPE_CHECKING:
    from modules.users.models import User


class RegisterUserDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: EmailStr
    password: str
    phone: str = ""
    address: str = ""
    role: str = UserRole.CUSTOMER.value

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required.")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters."
            )
        return v

    @field_validator("role")
    @classmethod
    def role_self_registerable(cls, v: str) -> str:
        if v not in SELF_REGISTERABLE_ROLES:
            raise ValueError(f"Role '{v}' cannot be self-registered.")
        return v


class LoginDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: EmailStr
    password: str


class UpdateProfileDTO(BaseModel):
    """All fields optional; only supplied fields are updated."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class UserOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    name: str
    phone: str
    address: str
    role: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> UserOutputDTO:
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            phone=user.phone,
            address=user.address,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthTokensDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    refresh_token: str
    expires_in: int


class AuthResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserOutputDTO
    tokens: AuthTokensDTO
