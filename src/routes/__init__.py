"""
Routes module for purchase order search
API endpoints for search, suggestions, saved filters and history
"""

from .search import router as search_router

__all__ = [
    "search_router"
]
