"""
Structured filtering of purchase orders
Categorical, date range, amount range and custom field rules, combined with AND
"""

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .models import CustomFilter, FilterOperator, SearchFilterCriteria, ValueRange
from .records import get_field, is_absent, to_datetime, to_number

logger = logging.getLogger(__name__)


def _compare_values(field_value: Any, filter_value: Any) -> Optional[Tuple[Any, Any]]:
    """Coerce both sides to numbers, or failing that to datetimes"""
    left, right = to_number(field_value), to_number(filter_value)
    if left is not None and right is not None:
        return left, right

    left, right = to_datetime(field_value), to_datetime(filter_value)
    if left is not None and right is not None:
        return left, right

    return None


def evaluate_condition(field_value: Any, operator: str, filter_value: Any) -> bool:
    """
    Evaluate one custom filter against a resolved field value

    Absent values and unknown operators never match.
    """
    if is_absent(field_value):
        return False

    try:
        op = FilterOperator(operator)
    except ValueError:
        logger.debug(f"Unknown filter operator '{operator}'")
        return False

    if op == FilterOperator.EQUALS:
        return field_value == filter_value

    if op in (FilterOperator.CONTAINS, FilterOperator.STARTS_WITH, FilterOperator.ENDS_WITH):
        if filter_value is None or isinstance(filter_value, ValueRange):
            return False
        field_str = str(field_value).lower()
        filter_str = str(filter_value).lower()
        if op == FilterOperator.CONTAINS:
            return filter_str in field_str
        if op == FilterOperator.STARTS_WITH:
            return field_str.startswith(filter_str)
        return field_str.endswith(filter_str)

    if op in (FilterOperator.GREATER_THAN, FilterOperator.LESS_THAN):
        pair = _compare_values(field_value, filter_value)
        if pair is None:
            return False
        left, right = pair
        return left > right if op == FilterOperator.GREATER_THAN else left < right

    # between
    if not isinstance(filter_value, ValueRange):
        return False
    low = _compare_values(field_value, filter_value.low)
    high = _compare_values(field_value, filter_value.high)
    if low is None or high is None:
        return False
    return low[1] <= low[0] and high[0] <= high[1]


def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"${int(amount):,}"
    return f"${amount:,.2f}"


class FilterEngine:
    """Applies a SearchFilterCriteria bundle to a record collection"""

    def apply_filters(
        self,
        records: Sequence[Any],
        criteria: Optional[SearchFilterCriteria]
    ) -> Tuple[List[Any], List[str]]:
        """
        Apply every filter in the bundle

        Args:
            records: Candidate records
            criteria: Filter bundle, None means no filtering

        Returns:
            Tuple of (filtered records, human-readable applied filters)
        """
        filtered = list(records)
        applied: List[str] = []

        if criteria is None:
            return filtered, applied

        if criteria.suppliers:
            filtered = self._keep(filtered, self._in_set("supplier.id", criteria.suppliers))
            applied.append(f"Suppliers: {len(criteria.suppliers)} selected")

        if criteria.statuses:
            filtered = self._keep(filtered, self._in_set("status", criteria.statuses))
            applied.append(f"Status: {', '.join(criteria.statuses)}")

        if criteria.priorities:
            filtered = self._keep(filtered, self._in_set("priority_level", criteria.priorities))
            applied.append(f"Priority: {', '.join(criteria.priorities)}")

        if criteria.date_range:
            start = to_datetime(criteria.date_range.start)
            end = to_datetime(criteria.date_range.end)

            def in_date_range(record: Any) -> bool:
                created_at = to_datetime(get_field(record, "created_at"))
                return created_at is not None and start <= created_at <= end

            filtered = self._keep(filtered, in_date_range)
            applied.append(f"Date: {start.date().isoformat()} - {end.date().isoformat()}")

        if criteria.amount_range:
            low, high = criteria.amount_range.min, criteria.amount_range.max

            def in_amount_range(record: Any) -> bool:
                amount = to_number(get_field(record, "total_amount"))
                return amount is not None and low <= amount <= high

            filtered = self._keep(filtered, in_amount_range)
            applied.append(f"Amount: {_format_amount(low)} - {_format_amount(high)}")

        if criteria.customers:
            filtered = self._keep(filtered, self._in_set("customer_id", criteria.customers))
            applied.append(f"Customers: {len(criteria.customers)} selected")

        if criteria.custom_filters:
            rules = criteria.custom_filters
            filtered = self._keep(filtered, lambda record: self.matches_custom_filters(record, rules))
            applied.append(f"Custom: {len(rules)} rule{'s' if len(rules) != 1 else ''}")

        logger.debug(f"Filters {applied} kept {len(filtered)} of {len(records)} records")
        return filtered, applied

    def matches_custom_filters(self, record: Any, rules: Sequence[CustomFilter]) -> bool:
        """True when the record satisfies every custom rule"""
        return all(
            evaluate_condition(get_field(record, rule.field), rule.operator, rule.value)
            for rule in rules
        )

    @staticmethod
    def _in_set(path: str, allowed: Sequence[str]) -> Callable[[Any], bool]:
        allowed_values = set(allowed)

        def predicate(record: Any) -> bool:
            value = get_field(record, path)
            if is_absent(value):
                return False
            return str(value) in allowed_values

        return predicate

    @staticmethod
    def _keep(records: List[Any], predicate: Callable[[Any], bool]) -> List[Any]:
        return [record for record in records if predicate(record)]
