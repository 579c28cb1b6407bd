"""Users domain - Accounts, authentication and administration"""

from .router import auth_router, router, super_admin_router

__all__ = ["auth_router", "router", "super_admin_router"]
