"""
Database module for purchase order search
Tables for saved filters and search history; connections live in .connection
"""

from .models import Base, SavedSearchFilterRow, SearchHistoryRow

__all__ = [
    "Base", "SavedSearchFilterRow", "SearchHistoryRow"
]
