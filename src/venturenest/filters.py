"""Equality filters shared by gateways and the realtime hub.

A filter is a mapping of top-level field name to expected value. A list,
tuple, set or frozenset value means "field is one of these values".
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

RecordFilter = Mapping[str, Any]

_MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


def is_multi_value(value: Any) -> bool:
    """Return True if the filter value expresses an IN match."""
    return isinstance(value, _MULTI_VALUE_TYPES)


def matches_filter(record: Mapping[str, Any], record_filter: RecordFilter | None) -> bool:
    """Check whether a record satisfies every condition of a filter."""
    if not record_filter:
        return True
    for field, expected in record_filter.items():
        actual = record.get(field)
        if is_multi_value(expected):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True
