"""Appointments domain - Booking lifecycle, assignment and progress"""

from .router import employee_router, router

__all__ = ["employee_router", "router"]
