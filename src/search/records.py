"""
Safe accessors for purchase order records

Records are owned by the order-management side and arrive as plain
mappings (JSON documents) or attribute-bearing objects. Nothing here
raises on a missing or malformed field.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class _Missing:
    """Sentinel for a field path that does not resolve"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def get_field(record: Any, path: str) -> Any:
    """
    Resolve a dotted path against a record

    Mapping keys and object attributes are both supported, and numeric
    segments index into lists. Returns MISSING instead of raising.
    """
    if record is None or not path:
        return MISSING

    current = record
    for key in path.split("."):
        if current is None:
            return MISSING
        if isinstance(current, Mapping):
            if key not in current:
                return MISSING
            current = current[key]
        elif isinstance(current, (list, tuple)):
            if not key.isdigit() or int(key) >= len(current):
                return MISSING
            current = current[int(key)]
        else:
            if key.startswith("_") or not hasattr(current, key):
                return MISSING
            current = getattr(current, key)

    return current


def is_absent(value: Any) -> bool:
    """True for MISSING and None"""
    return value is MISSING or value is None


def get_text(record: Any, path: str) -> str:
    """Get a field as text, empty string when absent"""
    value = get_field(record, path)
    if is_absent(value):
        return ""
    return str(value)


def get_record_id(record: Any) -> Optional[str]:
    """Get the record identifier as a string"""
    value = get_field(record, "id")
    if is_absent(value):
        return None
    return str(value)


def to_number(value: Any) -> Optional[float]:
    """Coerce a value to float, None when it is not numeric"""
    if is_absent(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce a value to an aware datetime

    Accepts datetimes, ISO-8601 strings (including a trailing Z) and epoch
    milliseconds. Naive values are taken as UTC.
    """
    if is_absent(value) or isinstance(value, bool):
        return None

    parsed = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _line_items(record: Any) -> List[Any]:
    items = get_field(record, "line_items")
    if is_absent(items) or not isinstance(items, (list, tuple)):
        return []
    return list(items)


def get_line_items_text(record: Any) -> str:
    """Concatenate product name, SKU and description of every line item"""
    parts = []
    for item in _line_items(record):
        for path in ("product.name", "product.sku", "product.description"):
            text = get_text(item, path)
            if text:
                parts.append(text)
    return " ".join(parts)


def get_searchable_fields(record: Any) -> Dict[str, str]:
    """Extract the weighted text fields used for relevance scoring"""
    return {
        "purchase_order_number": get_text(record, "purchase_order_number"),
        "supplier_name": get_text(record, "supplier.supplier_name"),
        "supplier_code": get_text(record, "supplier.supplier_code"),
        "customer_name": get_text(record, "customer_name"),
        "customer_reference": get_text(record, "customer_reference"),
        "shipping_instructions": get_text(record, "shipping_instructions"),
        "internal_notes": get_text(record, "internal_notes"),
        "line_items": get_line_items_text(record),
    }


def extract_searchable_text(record: Any) -> str:
    """
    Build the full text that gets indexed for a record

    Includes every scored field plus status, priority and each line
    item's special instructions.
    """
    parts = [
        get_text(record, "purchase_order_number"),
        get_text(record, "supplier.supplier_name"),
        get_text(record, "supplier.supplier_code"),
        get_text(record, "customer_name"),
        get_text(record, "customer_reference"),
        get_text(record, "shipping_instructions"),
        get_text(record, "internal_notes"),
        get_text(record, "status"),
        get_text(record, "priority_level"),
    ]
    for item in _line_items(record):
        parts.extend([
            get_text(item, "product.name"),
            get_text(item, "product.sku"),
            get_text(item, "product.description"),
            get_text(item, "special_instructions"),
        ])

    return " ".join(filter(None, parts)).lower()
