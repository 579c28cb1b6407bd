"""Chatbot domain - Gemini backed help assistant"""

from .router import router

__all__ = ["router"]
