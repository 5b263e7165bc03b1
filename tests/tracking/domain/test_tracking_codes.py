"""Tests for order number and tracking code generation."""

import re
from datetime import UTC, datetime

import pytest
from tracking.order.codes import (
    IdentifierKind,
    identifier_kind,
    new_order_number,
    new_tracking_code,
    normalize_identifier,
)

FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)
FIXED_MILLIS = int(FIXED_NOW.timestamp() * 1000)


class TestTrackingCode:
    def test_format(self):
        assert re.fullmatch(r"TRK-\d{13}-[0-9A-F]{6}", new_tracking_code())

    def test_uses_injected_time(self):
        assert new_tracking_code(now=FIXED_NOW).startswith(f"TRK-{FIXED_MILLIS}-")

    def test_random_suffix_differs(self):
        codes = {new_tracking_code(now=FIXED_NOW) for _ in range(20)}
        assert len(codes) > 1


class TestOrderNumber:
    def test_format(self):
        assert new_order_number(7, now=FIXED_NOW) == f"ORD-{FIXED_MILLIS}-0007"

    def test_wide_sequence_is_not_truncated(self):
        assert new_order_number(12345, now=FIXED_NOW).endswith("-12345")

    def test_sequence_must_be_positive(self):
        with pytest.raises(ValueError):
            new_order_number(0)


class TestIdentifierKind:
    def test_order_number(self):
        assert identifier_kind(f"ORD-{FIXED_MILLIS}-0001") == IdentifierKind.ORDER_NUMBER

    def test_tracking_code(self):
        assert identifier_kind(f"TRK-{FIXED_MILLIS}-A1B2C3") == IdentifierKind.TRACKING_CODE

    def test_lowercase_and_whitespace_are_tolerated(self):
        assert identifier_kind("  trk-1709294400000-a1b2c3 ") == IdentifierKind.TRACKING_CODE
        assert normalize_identifier("  trk-1709294400000-a1b2c3 ") == "TRK-1709294400000-A1B2C3"

    @pytest.mark.parametrize("value", ["XYZ-123", "", "ORD-", "TRK-", "12345", None])
    def test_unrecognised(self, value):
        assert identifier_kind(value) is None
