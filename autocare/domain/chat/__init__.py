"""Chat domain - Customer/employee messaging"""

from .router import router, ws_router

__all__ = ["router", "ws_router"]
