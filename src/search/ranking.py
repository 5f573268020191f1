"""
Sorting and pagination of search results
"""

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .config import SearchConfig
from .models import SearchResult, SortDirection, SortField
from .records import get_field, get_text, is_absent, to_datetime, to_number

logger = logging.getLogger(__name__)


def _text_key(path: str) -> Callable[[Any], Optional[str]]:
    def key(record: Any) -> Optional[str]:
        value = get_field(record, path)
        if is_absent(value):
            return None
        return get_text(record, path).casefold()
    return key


class ResultRanker:
    """Orders and pages SearchResult lists"""

    SORT_KEYS = {
        SortField.DATE: lambda record: to_datetime(get_field(record, "created_at")),
        SortField.AMOUNT: lambda record: to_number(get_field(record, "total_amount")),
        SortField.SUPPLIER: _text_key("supplier.supplier_name"),
        SortField.STATUS: _text_key("status"),
    }

    def __init__(self, default_limit: int = SearchConfig.DEFAULT_LIMIT):
        self.default_limit = default_limit

    def rank(
        self,
        results: Sequence[SearchResult],
        sort_by: Optional[str] = None,
        direction: Optional[str] = None
    ) -> List[SearchResult]:
        """
        Sort results by the requested key

        Relevance is always best-first whatever the direction. Other keys
        default to descending; records missing the key go last. Unknown keys
        fall back to relevance.
        """
        sort_field = self._parse_sort_field(sort_by)

        if sort_field == SortField.RELEVANCE:
            return sorted(results, key=lambda result: result.relevance_score, reverse=True)

        descending = not (isinstance(direction, str) and direction.upper() == SortDirection.ASC.value)
        key_func = self.SORT_KEYS[sort_field]

        keyed = [(key_func(result.record), result) for result in results]
        present = [item for item in keyed if item[0] is not None]
        missing = [result for key, result in keyed if key is None]

        present.sort(key=lambda item: item[0], reverse=descending)

        return [result for _, result in present] + missing

    def paginate(
        self,
        results: Sequence[SearchResult],
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> Tuple[List[SearchResult], int]:
        """
        Slice one page out of the results

        Returns:
            Tuple of (page, total count before pagination)
        """
        total_count = len(results)
        limit = self.default_limit if limit is None else max(0, limit)
        offset = max(0, offset or 0)

        return list(results[offset:offset + limit]), total_count

    @staticmethod
    def _parse_sort_field(sort_by: Optional[str]) -> SortField:
        if not sort_by:
            return SortField.RELEVANCE
        if isinstance(sort_by, SortField):
            return sort_by
        try:
            return SortField(sort_by.upper())
        except (AttributeError, ValueError):
            logger.warning(f"Unknown sort key '{sort_by}', sorting by relevance")
            return SortField.RELEVANCE
