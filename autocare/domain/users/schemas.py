"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Role, User
from ...shared.validators import require_text, validate_email, validate_phone

MIN_PASSWORD_LENGTH = 6


def _check_password(v: str) -> str:
    if not v or len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return v


class RegisterRequest(BaseModel):
    fullName: str
    email: str
    password: str
    phone: Optional[str] = None

    @field_validator("fullName")
    @classmethod
    def validate_full_name(cls, v):
        return require_text(v, "Full name")

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(require_text(v, "Email"))

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, v):
        return validate_phone(v)


class LoginRequest(BaseModel):
    email: str
    password: str


class CreateUserRequest(RegisterRequest):
    """Super-admin account creation with an explicit role"""

    role: Role
    enabled: Optional[bool] = True


class UserResponse(BaseModel):
    id: int
    fullName: str
    email: str
    phone: Optional[str] = None
    role: Role
    enabled: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            fullName=user.full_name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            enabled=user.enabled,
            createdAt=user.created_at,
            updatedAt=user.updated_at,
        )


class AuthResponse(BaseModel):
    id: int
    fullName: str
    email: str
    role: Role
    token: str
    tokenType: str = "Bearer"


class UserPage(BaseModel):
    content: list[UserResponse]
    totalElements: int
    totalPages: int
    page: int
    size: int


class UserStatistics(BaseModel):
    totalUsers: int
    enabledUsers: int
    disabledUsers: int
    adminCount: int
    employeeCount: int
    customerCount: int
