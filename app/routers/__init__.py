"""
Routers package for API endpoints.

This package contains all API route handlers organized by functionality.
"""

from .subscriptions import router as subscriptions_router

__all__ = [
    "subscriptions_router",
]
