"""
Tests for structured purchase order filtering
"""

from datetime import timedelta

import pytest
from conftest import NOW, make_order

from src.search.filters import FilterEngine, evaluate_condition
from src.search.models import (
    AmountRange, CustomFilter, DateRange, SearchFilterCriteria, ValueRange
)


def _ids(records):
    return [record["id"] for record in records]


class TestFilterEngine:
    """Test cases for FilterEngine class"""

    def setup_method(self):
        """Setup test fixtures"""
        self.engine = FilterEngine()

    def test_no_criteria_keeps_everything(self, sample_orders):
        """Test None and empty criteria are no-ops"""
        records, applied = self.engine.apply_filters(sample_orders, None)
        assert _ids(records) == ["PO-1", "PO-2", "PO-3"]
        assert applied == []

        records, applied = self.engine.apply_filters(sample_orders, SearchFilterCriteria())
        assert len(records) == 3
        assert applied == []

    def test_supplier_filter(self, sample_orders):
        """Test suppliers match on the nested supplier id"""
        criteria = SearchFilterCriteria(suppliers=["SUP-1"])

        records, applied = self.engine.apply_filters(sample_orders, criteria)

        assert _ids(records) == ["PO-1", "PO-3"]
        assert applied == ["Suppliers: 1 selected"]

    def test_status_and_priority_filters(self, sample_orders):
        """Test categorical filters combine with AND"""
        criteria = SearchFilterCriteria(statuses=["APPROVED", "DRAFT"], priorities=["URGENT"])

        records, applied = self.engine.apply_filters(sample_orders, criteria)

        assert _ids(records) == ["PO-1"]
        assert applied == ["Status: APPROVED, DRAFT", "Priority: URGENT"]

    def test_customer_filter(self, sample_orders):
        """Test customers match on customer_id"""
        criteria = SearchFilterCriteria(customers=["CUST-2"])

        records, applied = self.engine.apply_filters(sample_orders, criteria)

        assert _ids(records) == ["PO-2"]
        assert applied == ["Customers: 1 selected"]

    def test_amount_range_is_inclusive(self, sample_orders):
        """Test the high value range keeps only orders of at least 10000"""
        criteria = SearchFilterCriteria(amount_range=AmountRange(min=10000, max=999999999))

        records, applied = self.engine.apply_filters(sample_orders, criteria)

        assert _ids(records) == ["PO-2"]
        assert applied == ["Amount: $10,000 - $999,999,999"]

        criteria = SearchFilterCriteria(amount_range=AmountRange(min=500, max=2745))
        records, _ = self.engine.apply_filters(sample_orders, criteria)
        assert _ids(records) == ["PO-1", "PO-3"]

    def test_date_range(self, sample_orders):
        """Test created_at must fall inside the range"""
        criteria = SearchFilterCriteria(
            date_range=DateRange(start=NOW - timedelta(days=30), end=NOW)
        )

        records, applied = self.engine.apply_filters(sample_orders, criteria)

        assert _ids(records) == ["PO-1", "PO-2"]
        assert applied == ["Date: 2026-09-19 - 2026-10-19"]

    def test_records_missing_fields_are_excluded(self):
        """Test a missing field never satisfies a filter"""
        records = [make_order(id="PO-A"), {"id": "PO-B"}]
        criteria = SearchFilterCriteria(
            suppliers=["SUP-1"],
            amount_range=AmountRange(min=0, max=10000)
        )

        kept, _ = self.engine.apply_filters(records, criteria)

        assert _ids(kept) == ["PO-A"]

    def test_custom_filters(self, sample_orders):
        """Test custom rules on nested paths"""
        criteria = SearchFilterCriteria(custom_filters=[
            CustomFilter(field="supplier.supplier_name", operator="contains", value="glass"),
        ])

        records, applied = self.engine.apply_filters(sample_orders, criteria)

        assert _ids(records) == ["PO-2"]
        assert applied == ["Custom: 1 rule"]

    def test_custom_between_from_pair(self, sample_orders):
        """Test a two-element list becomes an inclusive range"""
        rule = CustomFilter(field="total_amount", operator="between", value=[100, 2745])
        assert isinstance(rule.value, ValueRange)

        criteria = SearchFilterCriteria(custom_filters=[
            rule,
            CustomFilter(field="status", operator="equals", value="APPROVED"),
        ])
        records, applied = self.engine.apply_filters(sample_orders, criteria)

        assert _ids(records) == ["PO-1"]
        assert applied == ["Custom: 2 rules"]

    def test_unknown_operator_excludes(self, sample_orders):
        """Test an unrecognized operator matches nothing"""
        criteria = SearchFilterCriteria(custom_filters=[
            CustomFilter(field="status", operator="regex", value=".*"),
        ])

        records, _ = self.engine.apply_filters(sample_orders, criteria)

        assert records == []

    def test_adding_filters_never_grows_results(self, sample_orders):
        """Test every extra filter yields a subset"""
        steps = [
            SearchFilterCriteria(),
            SearchFilterCriteria(suppliers=["SUP-1"]),
            SearchFilterCriteria(suppliers=["SUP-1"], statuses=["APPROVED", "DRAFT"]),
            SearchFilterCriteria(
                suppliers=["SUP-1"],
                statuses=["APPROVED", "DRAFT"],
                amount_range=AmountRange(min=1000, max=5000)
            ),
        ]

        previous = None
        for criteria in steps:
            records, _ = self.engine.apply_filters(sample_orders, criteria)
            ids = set(_ids(records))
            if previous is not None:
                assert ids <= previous
            previous = ids

        assert previous == {"PO-1"}


class TestEvaluateCondition:
    """Test cases for single custom rule evaluation"""

    def test_equals(self):
        assert evaluate_condition("APPROVED", "equals", "APPROVED")
        assert not evaluate_condition("APPROVED", "equals", "approved")
        assert evaluate_condition(500.0, "equals", 500)

    @pytest.mark.parametrize("operator,value,expected", [
        ("contains", "DIRECT", True),
        ("startsWith", "hard", True),
        ("endsWith", "direct", True),
        ("startsWith", "direct", False),
        ("contains", "glass", False),
    ])
    def test_text_operators_ignore_case(self, operator, value, expected):
        assert evaluate_condition("Hardware Direct", operator, value) is expected

    def test_numeric_comparisons(self):
        assert evaluate_condition(2745.0, "greaterThan", 1000)
        assert evaluate_condition("15000", "greaterThan", 10000)
        assert evaluate_condition(500, "lessThan", 501)
        assert not evaluate_condition(500, "lessThan", 500)

    def test_date_comparisons(self):
        created_at = (NOW - timedelta(days=10)).isoformat()

        assert evaluate_condition(created_at, "greaterThan", "2026-10-01T00:00:00Z")
        assert evaluate_condition(created_at, "lessThan", NOW)
        assert evaluate_condition(
            created_at,
            "between",
            ValueRange(low="2026-10-01T00:00:00Z", high="2026-10-31T00:00:00Z")
        )

    def test_between_is_inclusive(self):
        assert evaluate_condition(100, "between", ValueRange(low=100, high=200))
        assert evaluate_condition(200, "between", ValueRange(low=100, high=200))
        assert not evaluate_condition(201, "between", ValueRange(low=100, high=200))

    def test_between_requires_range(self):
        assert not evaluate_condition(150, "between", 150)

    def test_incomparable_values_do_not_match(self):
        assert not evaluate_condition("glass", "greaterThan", 10)
        assert not evaluate_condition("glass", "between", ValueRange(low=1, high=5))

    def test_absent_values_do_not_match(self):
        assert not evaluate_condition(None, "equals", None)
        assert not evaluate_condition(None, "contains", "x")

    def test_unknown_operator(self):
        assert not evaluate_condition("APPROVED", "notEquals", "DRAFT")
