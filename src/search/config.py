"""
Search configuration settings
"""
import os
from typing import Dict


class SearchConfig:
    """Configuration class for search, ranking and history settings"""

    # Pagination
    DEFAULT_LIMIT = int(os.getenv("SEARCH_DEFAULT_LIMIT", "50"))

    # History and suggestions
    HISTORY_CAP = int(os.getenv("SEARCH_HISTORY_CAP", "100"))
    RECENT_HISTORY_FOR_SUGGESTIONS = int(os.getenv("SEARCH_RECENT_HISTORY", "5"))
    MAX_SUGGESTIONS = int(os.getenv("SEARCH_MAX_SUGGESTIONS", "10"))

    # Relevance boosts
    RECENT_DAYS = int(os.getenv("SEARCH_RECENT_DAYS", "30"))
    RECENCY_BOOST = float(os.getenv("SEARCH_RECENCY_BOOST", "1.2"))
    URGENT_BOOST = float(os.getenv("SEARCH_URGENT_BOOST", "1.3"))
    URGENT_PRIORITY = os.getenv("SEARCH_URGENT_PRIORITY", "URGENT")
    MAX_SCORE = float(os.getenv("SEARCH_MAX_SCORE", "100"))

    # Whole-phrase tiers (multiplier, confidence)
    EXACT_MULTIPLIER = 2.0
    PREFIX_MULTIPLIER = 1.5
    SUBSTRING_MULTIPLIER = 1.0
    TOKEN_MULTIPLIER = 0.5
    EXACT_CONFIDENCE = 1.0
    PREFIX_CONFIDENCE = 0.8
    SUBSTRING_CONFIDENCE = 0.6

    # Snippets
    SNIPPET_LENGTH = int(os.getenv("SEARCH_SNIPPET_LENGTH", "150"))
    SNIPPET_CONTEXT = int(os.getenv("SEARCH_SNIPPET_CONTEXT", "50"))
    HIGHLIGHT_TAG = "mark"

    # Default presets
    HIGH_VALUE_THRESHOLD = float(os.getenv("SEARCH_HIGH_VALUE_THRESHOLD", "10000"))
    HIGH_VALUE_CEILING = 999999999

    # Persistence
    STORE_BACKEND = os.getenv("SEARCH_STORE_BACKEND", "memory")
    DEFAULT_USER_ID = os.getenv("SEARCH_DEFAULT_USER", "current-user")

    # Redis keys
    SAVED_FILTERS_KEY = "search:saved_filters"
    HISTORY_KEY = "search:history"
    RECORDS_KEY = os.getenv("SEARCH_RECORDS_KEY", "purchase_orders")
    SUPPLIERS_KEY = os.getenv("SEARCH_SUPPLIERS_KEY", "suppliers")

    # Searchable fields and their weights: identifier > names > codes/references > free text
    FIELD_WEIGHTS: Dict[str, float] = {
        "purchase_order_number": 10,
        "supplier_name": 8,
        "customer_name": 7,
        "supplier_code": 6,
        "customer_reference": 5,
        "line_items": 4,
        "shipping_instructions": 3,
        "internal_notes": 2,
    }

    STOP_WORDS = frozenset({
        'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for',
        'of', 'with', 'by',
        'order', 'purchase', 'supplier', 'customer', 'item', 'product'
    })

    KNOWN_STATUSES = (
        "DRAFT",
        "PENDING_APPROVAL",
        "APPROVED",
        "SENT_TO_SUPPLIER",
        "SUPPLIER_CONFIRMED",
        "COMPLETED",
    )

    @classmethod
    def get_field_weights(cls) -> Dict[str, float]:
        """Return a copy of the default field weights"""
        return dict(cls.FIELD_WEIGHTS)
