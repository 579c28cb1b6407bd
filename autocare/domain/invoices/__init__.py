"""Invoices domain - Service invoice PDFs"""

from .router import router

__all__ = ["router"]
