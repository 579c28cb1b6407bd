"""User routers - Auth, super-admin user management and staff directory"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import Role, User
from ...rate_limiter import create_rate_limiter
from .schemas import (
    AuthResponse,
    CreateUserRequest,
    LoginRequest,
    RegisterRequest,
    UserPage,
    UserResponse,
    UserStatistics,
)
from .service import UserService

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
super_admin_router = APIRouter(prefix="/super-admin/users", tags=["Super Admin"])
router = APIRouter(prefix="/users", tags=["Users"])

rate_limit_login = create_rate_limiter(limit=10, window_seconds=60, key_prefix="login")


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# AUTH
# ============================================================================


@auth_router.post("/register", response_model=AuthResponse, status_code=201)
async def register(data: RegisterRequest, service: UserService = Depends(get_user_service)):
    return service.register(data)


@auth_router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    service: UserService = Depends(get_user_service),
    _: None = Depends(rate_limit_login),
):
    return service.login(data)


@auth_router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return UserResponse.from_model(current_user)


# ============================================================================
# SUPER ADMIN
# ============================================================================


@super_admin_router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: CreateUserRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return UserResponse.from_model(service.create_user(data, current_user))


@super_admin_router.get("", response_model=UserPage)
async def list_users(
    page: int = Query(0),
    size: int = Query(10),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.list_users(current_user, page, size)


@super_admin_router.get("/statistics", response_model=UserStatistics)
async def user_statistics(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return service.get_statistics(current_user)


@super_admin_router.get("/role/{role}", response_model=list[UserResponse])
async def users_by_role(
    role: Role,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return [UserResponse.from_model(u) for u in service.get_users_by_role(role, current_user)]


@super_admin_router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.delete_user(user_id, current_user)
    return Response(status_code=204)


@super_admin_router.patch("/{user_id}/toggle-status", response_model=UserResponse)
async def toggle_user_status(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return UserResponse.from_model(service.toggle_user_status(user_id, current_user))


# ============================================================================
# STAFF DIRECTORY
# ============================================================================


@router.get("/employees", response_model=list[UserResponse])
async def get_employees(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return [UserResponse.from_model(u) for u in service.get_employees(current_user)]


@router.get("/customers", response_model=list[UserResponse])
async def get_customers(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return [UserResponse.from_model(u) for u in service.get_customers(current_user)]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return UserResponse.from_model(service.get_user(user_id, current_user))
