"""Email domain - Staff messages to customers"""

from .router import router

__all__ = ["router"]
