"""
Unit Tests - Record Cleaning
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from dashboard_engine.data import RawDataset
from dashboard_engine.transformation import (
    RecordCleaner,
    apply_row_limit,
    clean_order_items,
    clean_orders,
    clean_pageviews,
    clean_products,
    clean_records,
    clean_refunds,
    clean_sessions,
)
from dashboard_engine.transformation.cleaners import ORDER_SCHEMA, SESSION_SCHEMA


class TestMalformedInput:
    """Tests for input that is not a list of rows"""

    @pytest.mark.parametrize("raw", [None, {"order_id": "1"}, "orders", 42])
    def test_non_list_input_gives_empty_frame(self, raw):
        """Non-array input returns an empty frame with the entity schema"""
        result = clean_orders(raw)

        assert result.height == 0
        assert result.columns == list(ORDER_SCHEMA)

    def test_non_mapping_rows_are_skipped(self):
        """Rows that are not key-value maps are ignored"""
        result = clean_products([1, "x", None, {"product_id": "1", "product_name": "Bear"}])

        assert result["product_id"].to_list() == ["1"]

    def test_every_entity_tolerates_none(self):
        """No cleaner raises on missing input"""
        for cleaner in (clean_orders, clean_order_items, clean_refunds, clean_products, clean_sessions, clean_pageviews):
            assert cleaner(None).height == 0

    def test_non_finite_decimals_do_not_raise(self):
        """Signaling and quiet NaN decimals become 0, the row is kept"""
        result = clean_orders([
            {"order_id": "1", "created_at": "2012-03-19", "price_usd": Decimal("sNaN")},
            {"order_id": "2", "created_at": "2012-03-19", "price_usd": Decimal("NaN")},
            {"order_id": "3", "created_at": "2012-03-19", "price_usd": Decimal("-Infinity")},
            {"order_id": "4", "created_at": "2012-03-19", "price_usd": Decimal("12.50")},
        ])

        assert result["total_amount"].to_list() == [0.0, 0.0, 0.0, 12.5]


class TestOrderCleaning:
    """Tests for order cleaning"""

    def test_identifiers_are_normalized(self):
        """Integer, float and string ids map to the same text key"""
        result = clean_orders([
            {"order_id": 1, "created_at": "2012-03-19 10:42:46", "price_usd": 10},
            {"order_id": 2.0, "created_at": "2012-03-19 10:42:46", "price_usd": 10},
            {"order_id": " 3 ", "created_at": "2012-03-19 10:42:46", "price_usd": 10},
        ])

        assert result["order_id"].to_list() == ["1", "2", "3"]

    def test_rows_without_required_fields_are_dropped(self):
        """Missing id or unparsable date drops the row"""
        cleaner = RecordCleaner()
        result = cleaner.clean_orders([
            {"order_id": None, "created_at": "2012-03-19 10:42:46", "price_usd": "10"},
            {"order_id": "2", "created_at": "not a date", "price_usd": "10"},
            {"order_id": "3", "created_at": "2012-03-19 10:42:46", "price_usd": "10"},
        ])

        assert result["order_id"].to_list() == ["3"]
        assert cleaner.stats["orders"].input_rows == 3
        assert cleaner.stats["orders"].rows_dropped == 2

    def test_amounts_are_coerced_non_negative(self):
        """Currency symbols are stripped; negatives and garbage become 0"""
        rows = [
            {"order_id": str(i), "created_at": "2012-03-19 10:42:46", "price_usd": amount}
            for i, amount in enumerate(["$1,234.50", "-5", "abc", None, 49.99])
        ]

        result = clean_orders(rows)

        assert result["total_amount"].to_list() == [1234.5, 0.0, 0.0, 0.0, 49.99]

    def test_date_formats(self):
        """Space, ISO, date-only and UTC-offset timestamps parse"""
        result = clean_orders([
            {"order_id": "1", "created_at": "2012-03-19 08:04:16", "price_usd": 1},
            {"order_id": "2", "created_at": "2012-03-19T08:04:16", "price_usd": 1},
            {"order_id": "3", "created_at": "2012-03-19", "price_usd": 1},
            {"order_id": "4", "created_at": "2012-03-19T10:42:46+00:00", "price_usd": 1},
            {"order_id": "5", "created_at": "2012-03-19 12:42:46+02:00", "price_usd": 1},
            {"order_id": "6", "created_at": "2012-03-19T10:42:46.500+00:00", "price_usd": 1},
            {"order_id": "7", "created_at": "2012-03-19T10:42:46.123Z", "price_usd": 1},
        ])

        assert result["created_at"].to_list() == [
            datetime(2012, 3, 19, 8, 4, 16),
            datetime(2012, 3, 19, 8, 4, 16),
            datetime(2012, 3, 19, 0, 0, 0),
            datetime(2012, 3, 19, 10, 42, 46),
            datetime(2012, 3, 19, 10, 42, 46),
            datetime(2012, 3, 19, 10, 42, 46, 500000),
            datetime(2012, 3, 19, 10, 42, 46, 123000),
        ]

    def test_timezone_aware_datetimes(self):
        """Aware datetime objects are stored as UTC wall time"""
        result = clean_orders([
            {"order_id": "1", "created_at": datetime(2012, 3, 19, tzinfo=timezone.utc), "price_usd": 100},
            {"order_id": "2", "created_at": datetime(2012, 3, 19, 5, tzinfo=timezone(timedelta(hours=5))), "price_usd": 50},
        ])

        assert result.height == 2
        assert result["created_at"].to_list() == [datetime(2012, 3, 19), datetime(2012, 3, 19)]
        assert result["total_amount"].sum() == 150.0

    def test_canonical_field_names_are_accepted(self):
        """total_amount works as well as price_usd"""
        result = clean_orders([{"order_id": "1", "created_at": "2012-03-19", "total_amount": "20"}])

        assert result["total_amount"].to_list() == [20.0]

    def test_limit_is_applied_before_cleaning(self, raw_orders):
        result = clean_orders(raw_orders, limit=1)

        assert result["order_id"].to_list() == ["1"]


class TestOrderItemAndRefundCleaning:
    """Tests for order item and refund cleaning"""

    def test_quantity_defaults_to_one(self):
        """Missing or unparsable quantities count as one unit"""
        result = clean_order_items([
            {"order_id": "1", "product_id": "1", "price_usd": "10"},
            {"order_id": "1", "product_id": "2", "price_usd": "10", "quantity": "3"},
            {"order_id": "1", "product_id": "3", "price_usd": "10", "quantity": "lots"},
        ])

        assert result["quantity"].to_list() == [1, 3, 1]

    def test_explicit_quantity_is_clamped_at_zero(self):
        result = clean_order_items([
            {"order_id": "1", "product_id": "1", "price_usd": "10", "quantity": "0"},
            {"order_id": "1", "product_id": "2", "price_usd": "10", "quantity": -2},
            {"order_id": "1", "product_id": "3", "price_usd": "10", "quantity": 2.7},
        ])

        assert result["quantity"].to_list() == [0, 0, 2]

    def test_items_need_both_foreign_keys(self):
        result = clean_order_items([
            {"order_id": "1", "price_usd": "10"},
            {"product_id": "1", "price_usd": "10"},
        ])

        assert result.height == 0

    def test_refund_amount(self, raw_refunds):
        result = clean_refunds(raw_refunds)

        assert result["order_item_id"].to_list() == ["2"]
        assert result["amount"].to_list() == [25.0]


class TestSessionCleaning:
    """Tests for session defaults"""

    def test_optional_fields_get_defaults(self):
        result = clean_sessions([
            {"website_session_id": "1", "created_at": "2012-03-19 08:04:16", "utm_source": ""},
        ])

        row = result.row(0, named=True)
        assert row["device_type"] == "unknown"
        assert row["utm_source"] == "direct"
        assert row["utm_campaign"] == "none"
        assert row["user_id"] is None
        assert result.columns == list(SESSION_SCHEMA)

    def test_device_type_is_lowercased(self, raw_sessions):
        result = clean_sessions(raw_sessions)

        assert result["device_type"].to_list() == ["desktop", "mobile", "desktop"]

    def test_repeat_flag_is_kept_as_code(self):
        """Booleans and numbers are normalized to "0"/"1"; other codes pass through"""
        result = clean_sessions([
            {"session_id": "1", "created_at": "2012-03-19", "is_repeat_session": True},
            {"session_id": "2", "created_at": "2012-03-19", "is_repeat_session": 0},
            {"session_id": "3", "created_at": "2012-03-19", "is_repeat_session": "yes"},
        ])

        assert result["is_repeat_session"].to_list() == ["1", "0", "yes"]


class TestPageviewCleaning:
    """Tests for pageview cleaning"""

    def test_input_order_and_defaults(self):
        result = clean_pageviews([
            {"website_session_id": "2", "pageview_url": "/b", "created_at": "garbage"},
            {"website_session_id": "1"},
            {"pageview_url": "/orphan"},
        ])

        assert result["session_id"].to_list() == ["2", "1"]
        assert result["pageview_url"].to_list() == ["/b", "/"]
        assert result["created_at"].to_list() == [None, None]


class TestRowLimit:
    """Tests for the uniform row cap"""

    def test_cap_applies_to_every_collection(self, raw_dataset):
        capped = apply_row_limit(raw_dataset, 1)

        assert all(count <= 1 for count in capped.row_counts().values())
        assert len(raw_dataset.pageviews) == 5

    def test_no_cap_returns_input(self, raw_dataset):
        assert apply_row_limit(raw_dataset, None) is raw_dataset

    def test_non_list_collections_are_left_alone(self):
        capped = apply_row_limit(RawDataset(orders=None), 2)

        assert capped.orders is None

    def test_clean_dataset_with_limit(self, raw_dataset):
        dataset = RecordCleaner().clean_dataset(raw_dataset, limit=2)

        assert dataset.sessions.height == 2
        assert dataset.pageviews.height == 2


class TestCleanRecords:
    """Tests for clean_records dispatcher"""

    def test_dispatch(self, raw_products):
        assert clean_records(raw_products, "products").height == 2

    def test_unknown_entity(self):
        with pytest.raises(ValueError):
            clean_records([], "customers")
