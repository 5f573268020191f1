"""
Shared fixtures for purchase order search tests
"""

import pytest
from datetime import datetime, timedelta, timezone

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def make_order(**overrides):
    """Build a purchase order document with sensible defaults"""
    order = {
        "id": "PO-1",
        "purchase_order_number": "PO-2024-001",
        "supplier": {
            "id": "SUP-1",
            "supplier_name": "Hardware Direct",
            "supplier_code": "HWD",
        },
        "customer_id": "CUST-1",
        "customer_name": "Acme Builders",
        "customer_reference": "REF-77",
        "shipping_instructions": "Deliver to loading dock",
        "internal_notes": "Call before delivery",
        "status": "APPROVED",
        "priority_level": "NORMAL",
        "total_amount": 2745.00,
        "created_at": (NOW - timedelta(days=90)).isoformat(),
        "line_items": [
            {
                "product": {
                    "name": "Tempered Panel",
                    "sku": "TP-10",
                    "description": "10mm tempered safety panel",
                },
                "special_instructions": "Handle with care",
            }
        ],
    }
    order.update(overrides)
    return order


class FakeClock:
    """Clock that advances one second per call"""

    def __init__(self, start=NOW):
        self.current = start

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_orders():
    """A small mixed set of orders"""
    return [
        make_order(
            id="PO-1",
            purchase_order_number="PO-2024-001",
            priority_level="URGENT",
            created_at=NOW.isoformat(),
        ),
        make_order(
            id="PO-2",
            purchase_order_number="PO-2024-002",
            supplier={"id": "SUP-2", "supplier_name": "Glass Specialist Co", "supplier_code": "GSC"},
            customer_id="CUST-2",
            customer_name="Bright Windows",
            customer_reference="BW-1",
            status="PENDING_APPROVAL",
            total_amount=15000.00,
            created_at=(NOW - timedelta(days=10)).isoformat(),
        ),
        make_order(
            id="PO-3",
            purchase_order_number="PO-2024-003",
            supplier={"id": "SUP-1", "supplier_name": "Hardware Direct", "supplier_code": "HWD"},
            status="DRAFT",
            total_amount=500.00,
            created_at=(NOW - timedelta(days=200)).isoformat(),
            line_items=[],
        ),
    ]
