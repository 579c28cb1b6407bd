"""Dashboard domain - Appointment statistics"""

from .router import router

__all__ = ["router"]
