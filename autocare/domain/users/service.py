"""User service - Registration, login and account administration"""

import logging
import math

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Role, User
from ...security import create_token_for_user, hash_password, verify_password
from ...shared.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..appointments import policies
from .repository import UserRepository
from .schemas import (
    AuthResponse,
    CreateUserRequest,
    LoginRequest,
    RegisterRequest,
    UserPage,
    UserResponse,
    UserStatistics,
)

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user accounts"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    # ============================================================================
    # AUTHENTICATION
    # ============================================================================

    def register(self, data: RegisterRequest) -> AuthResponse:
        user = self._create(data, role=Role.CUSTOMER, enabled=True)
        logger.info(f"👤 New customer registered: {user.email}")
        return self._auth_response(user)

    def login(self, data: LoginRequest) -> AuthResponse:
        user = self.repo.get_user_by_email(self.db, data.email)
        if not user or not verify_password(data.password, user.password_hash):
            logger.warning(f"🔒 Failed login attempt for {data.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")
        if not user.enabled:
            raise PermissionDeniedError("Account is disabled. Please contact support.")

        logger.info(f"✅ User {user.id} logged in")
        return self._auth_response(user)

    # ============================================================================
    # SUPER ADMIN USER MANAGEMENT
    # ============================================================================

    def create_user(self, data: CreateUserRequest, actor: User) -> User:
        self._require_super_admin(actor)
        enabled = data.enabled if data.enabled is not None else True
        user = self._create(data, role=data.role, enabled=enabled)
        logger.info(f"👤 User {user.email} created with role {user.role.value} by {actor.id}")
        return user

    def list_users(self, actor: User, page: int = 0, size: int = 10) -> UserPage:
        if not policies.is_admin(actor):
            raise PermissionDeniedError("Administrator access required")
        if page < 0 or size < 1 or size > 100:
            raise ValidationError("Invalid pagination parameters")

        users, total = self.repo.list_users(self.db, page, size)
        return UserPage(
            content=[UserResponse.from_model(u) for u in users],
            totalElements=total,
            totalPages=math.ceil(total / size) if total else 0,
            page=page,
            size=size,
        )

    def get_users_by_role(self, role: Role, actor: User) -> list[User]:
        self._require_super_admin(actor)
        return self.repo.get_users_by_role(self.db, role)

    def get_user(self, user_id: int, actor: User) -> User:
        if not policies.is_admin(actor):
            raise PermissionDeniedError("Administrator access required")
        return self._get_or_404(user_id)

    def delete_user(self, user_id: int, actor: User) -> None:
        self._require_super_admin(actor)
        user = self._get_or_404(user_id)
        if user.role == Role.SUPER_ADMIN:
            raise PermissionDeniedError("Cannot delete super admin user")

        self.repo.delete_user(self.db, user)
        logger.info(f"🗑️ User {user_id} deleted by {actor.id}")

    def toggle_user_status(self, user_id: int, actor: User) -> User:
        self._require_super_admin(actor)
        user = self._get_or_404(user_id)
        if user.role == Role.SUPER_ADMIN:
            raise PermissionDeniedError("Cannot disable super admin user")

        user.enabled = not user.enabled
        user = self.repo.save(self.db, user)
        logger.info(f"🔁 User {user.id} enabled={user.enabled} (by {actor.id})")
        return user

    def get_statistics(self, actor: User) -> UserStatistics:
        self._require_super_admin(actor)
        return UserStatistics(
            totalUsers=self.repo.count_users(self.db),
            enabledUsers=self.repo.count_users(self.db, enabled=True),
            disabledUsers=self.repo.count_users(self.db, enabled=False),
            adminCount=self.repo.count_users(self.db, role=Role.ADMIN),
            employeeCount=self.repo.count_users(self.db, role=Role.EMPLOYEE),
            customerCount=self.repo.count_users(self.db, role=Role.CUSTOMER),
        )

    # ============================================================================
    # STAFF DIRECTORY
    # ============================================================================

    def get_employees(self, actor: User) -> list[User]:
        """Enabled employees, used when picking who to assign"""
        if not policies.is_staff(actor):
            raise PermissionDeniedError("Staff access required")
        return self.repo.get_users_by_role(self.db, Role.EMPLOYEE, enabled_only=True)

    def get_customers(self, actor: User) -> list[User]:
        if not policies.is_staff(actor):
            raise PermissionDeniedError("Staff access required")
        return self.repo.get_users_by_role(self.db, Role.CUSTOMER)

    # ============================================================================
    # HELPERS
    # ============================================================================

    def _create(self, data: RegisterRequest, role: Role, enabled: bool) -> User:
        if self.repo.get_user_by_email(self.db, data.email):
            raise ConflictError(f"Email already exists: {data.email}")
        return self.repo.create_user(
            self.db,
            full_name=data.fullName,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            role=role,
            enabled=enabled,
        )

    def _get_or_404(self, user_id: int) -> User:
        user = self.repo.get_user_by_id(self.db, user_id)
        if not user:
            raise NotFoundError(f"User not found with ID: {user_id}")
        return user

    def _require_super_admin(self, actor: User) -> None:
        if not policies.is_super_admin(actor):
            raise PermissionDeniedError("Super administrator access required")

    @staticmethod
    def _auth_response(user: User) -> AuthResponse:
        return AuthResponse(
            id=user.id,
            fullName=user.full_name,
            email=user.email,
            role=user.role,
            token=create_token_for_user(user),
        )
