"""
Record Cleaning Module

Normalizes raw, loosely-typed dashboard rows into fixed-schema records.
Handles:
- Field alias resolution (raw export names vs. canonical names)
- Identifier normalization (1, "1" and 1.0 are the same key)
- Currency and date coercion
- Default assignment for optional fields
- A uniform row cap applied before cleaning
"""

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

import polars as pl
import structlog

from dashboard_engine.data.loader import RawDataset

logger = structlog.get_logger(__name__)


DATETIME = pl.Datetime("us")

DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S%.f",
    "%Y-%m-%dT%H:%M:%S%.f",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S%.fZ",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
]

# Parsed as UTC, then stored as naive UTC wall time
OFFSET_DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S%.f%z",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S%.f%z",
]

DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y"]

# Canonical column -> raw field names, first present wins
ORDER_FIELDS = {
    "order_id": ("order_id", "id"),
    "created_at": ("created_at", "order_date"),
    "total_amount": ("price_usd", "total_amount", "amount"),
}

ORDER_ITEM_FIELDS = {
    "order_item_id": ("order_item_id", "id"),
    "order_id": ("order_id",),
    "product_id": ("product_id",),
    "quantity": ("quantity", "items_purchased"),
    "price": ("price_usd", "price"),
}

REFUND_FIELDS = {
    "order_item_refund_id": ("order_item_refund_id", "id"),
    "order_item_id": ("order_item_id",),
    "amount": ("refund_amount_usd", "amount"),
}

PRODUCT_FIELDS = {
    "product_id": ("product_id", "id"),
    "name": ("product_name", "name"),
}

SESSION_FIELDS = {
    "session_id": ("website_session_id", "session_id", "id"),
    "user_id": ("user_id",),
    "created_at": ("created_at",),
    "device_type": ("device_type",),
    "is_repeat_session": ("is_repeat_session",),
    "utm_source": ("utm_source",),
    "utm_campaign": ("utm_campaign",),
}

PAGEVIEW_FIELDS = {
    "pageview_id": ("website_pageview_id", "pageview_id", "id"),
    "session_id": ("website_session_id", "session_id"),
    "pageview_url": ("pageview_url", "url"),
    "created_at": ("created_at",),
}

ORDER_SCHEMA = {"order_id": pl.Utf8, "created_at": DATETIME, "total_amount": pl.Float64}

ORDER_ITEM_SCHEMA = {
    "order_item_id": pl.Utf8,
    "order_id": pl.Utf8,
    "product_id": pl.Utf8,
    "quantity": pl.Int64,
    "price": pl.Float64,
}

REFUND_SCHEMA = {"order_item_refund_id": pl.Utf8, "order_item_id": pl.Utf8, "amount": pl.Float64}

PRODUCT_SCHEMA = {"product_id": pl.Utf8, "name": pl.Utf8}

SESSION_SCHEMA = {
    "session_id": pl.Utf8,
    "user_id": pl.Utf8,
    "created_at": DATETIME,
    "device_type": pl.Utf8,
    "is_repeat_session": pl.Utf8,
    "utm_source": pl.Utf8,
    "utm_campaign": pl.Utf8,
}

PAGEVIEW_SCHEMA = {
    "pageview_id": pl.Utf8,
    "session_id": pl.Utf8,
    "pageview_url": pl.Utf8,
    "created_at": DATETIME,
}

DEFAULT_DEVICE = "unknown"
DEFAULT_SOURCE = "direct"
DEFAULT_CAMPAIGN = "none"
DEFAULT_URL = "/"
DEFAULT_PRODUCT_NAME = "Unknown Product"


@dataclass
class CleaningStats:
    """Statistics from one cleaning pass"""
    entity: str
    input_rows: int
    output_rows: int

    @property
    def rows_dropped(self) -> int:
        return self.input_rows - self.output_rows


@dataclass
class CleanedDataset:
    """Cleaned records for all six entities"""
    orders: pl.DataFrame = field(default_factory=lambda: pl.DataFrame(schema=ORDER_SCHEMA))
    order_items: pl.DataFrame = field(default_factory=lambda: pl.DataFrame(schema=ORDER_ITEM_SCHEMA))
    refunds: pl.DataFrame = field(default_factory=lambda: pl.DataFrame(schema=REFUND_SCHEMA))
    products: pl.DataFrame = field(default_factory=lambda: pl.DataFrame(schema=PRODUCT_SCHEMA))
    sessions: pl.DataFrame = field(default_factory=lambda: pl.DataFrame(schema=SESSION_SCHEMA))
    pageviews: pl.DataFrame = field(default_factory=lambda: pl.DataFrame(schema=PAGEVIEW_SCHEMA))

    def row_counts(self) -> Dict[str, int]:
        return {
            "orders": self.orders.height,
            "order_items": self.order_items.height,
            "refunds": self.refunds.height,
            "products": self.products.height,
            "sessions": self.sessions.height,
            "pageviews": self.pageviews.height,
        }


def _to_text(value: Any) -> Optional[str]:
    """Render a raw scalar as stripped text, None for missing/unusable values"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        finite = value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)
        if not finite:
            return None
        if value == int(value):
            return str(int(value))
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


def _pick(row: Mapping[str, Any], aliases: Tuple[str, ...]) -> Optional[str]:
    for key in aliases:
        if key in row:
            text = _to_text(row[key])
            if text is not None:
                return text
    return None


def apply_row_limit(raw: RawDataset, limit: Optional[int]) -> RawDataset:
    """
    Cap every raw collection at the same number of rows.

    A cap applied to only some collections breaks the session/pageview
    joins, so it is always applied to all six together.

    Args:
        raw: Raw dataset
        limit: Maximum rows per collection; None leaves the dataset unbounded

    Returns:
        A new RawDataset (the input is not modified)
    """
    if limit is None:
        return raw

    capped = {
        name: rows[:limit] if isinstance(rows, list) else rows
        for name, rows in raw.as_dict().items()
    }
    return replace(raw, **capped)


class RecordCleaner:
    """
    Cleaner for the dashboard's raw JSON collections.

    Every entity is cleaned in three steps: raw rows are projected onto the
    entity's canonical columns as text, coerced with polars expressions, and
    rows missing a required field are dropped. Non-list input produces an
    empty frame with the entity schema; cleaning never raises on bad data.

    Example:
        cleaner = RecordCleaner()
        orders = cleaner.clean_orders(raw_orders)
        dataset = cleaner.clean_dataset(raw, limit=500)
    """

    def __init__(self):
        self.stats: Dict[str, CleaningStats] = {}

    def _frame(
        self,
        rows: Any,
        columns: Dict[str, Tuple[str, ...]],
        limit: Optional[int] = None,
    ) -> Tuple[pl.DataFrame, int]:
        """Project raw rows onto text columns; returns the frame and input row count"""
        if not isinstance(rows, list):
            rows = []
        if limit is not None:
            rows = rows[:limit]

        records = [row for row in rows if isinstance(row, Mapping)]
        data = {
            column: [_pick(row, aliases) for row in records]
            for column, aliases in columns.items()
        }
        return pl.DataFrame(data, schema={column: pl.Utf8 for column in columns}), len(rows)

    @staticmethod
    def _timestamp(column: str) -> pl.Expr:
        """Parse a text column against the accepted formats (null when none match)"""
        candidates = [
            pl.col(column).str.strptime(DATETIME, fmt, strict=False)
            for fmt in DATETIME_FORMATS
        ]
        candidates += [
            pl.col(column)
            .str.to_datetime(fmt, time_unit="us", strict=False)
            .dt.replace_time_zone(None)
            for fmt in OFFSET_DATETIME_FORMATS
        ]
        candidates += [
            pl.col(column).str.strptime(pl.Date, fmt, strict=False).cast(DATETIME)
            for fmt in DATE_FORMATS
        ]
        return pl.coalesce(candidates).alias(column)

    @staticmethod
    def _amount(column: str) -> pl.Expr:
        """Currency text to a non-negative float; unparsable values become 0"""
        value = (
            pl.col(column)
            .str.replace_all(r"[$€£¥,\s]", "")
            .cast(pl.Float64, strict=False)
        )
        return (
            pl.when(value.is_finite())
            .then(value)
            .otherwise(0.0)
            .clip(lower_bound=0.0)
            .alias(column)
        )

    @staticmethod
    def _quantity(column: str) -> pl.Expr:
        """Whole-unit quantity; missing or unparsable values count as 1, explicit ones clamp at 0"""
        value = pl.col(column).cast(pl.Float64, strict=False)
        return (
            pl.when(value.is_finite())
            .then(value.floor().clip(lower_bound=0.0))
            .otherwise(1.0)
            .cast(pl.Int64)
            .alias(column)
        )

    @staticmethod
    def _category(column: str, default: str, lowercase: bool = False) -> pl.Expr:
        value = pl.col(column).str.to_lowercase() if lowercase else pl.col(column)
        return value.fill_null(default).alias(column)

    def _finalize(
        self,
        df: pl.DataFrame,
        entity: str,
        schema: Dict[str, pl.DataType],
        required: List[str],
        input_rows: int,
    ) -> pl.DataFrame:
        """Drop rows missing required fields and enforce the entity schema"""
        df = df.filter(pl.all_horizontal([pl.col(c).is_not_null() for c in required]))
        df = df.select([pl.col(c).cast(dtype) for c, dtype in schema.items()])

        stats = CleaningStats(entity=entity, input_rows=input_rows, output_rows=df.height)
        self.stats[entity] = stats

        logger.debug(
            "Cleaned records",
            entity=entity,
            input_rows=stats.input_rows,
            output_rows=stats.output_rows,
            rows_dropped=stats.rows_dropped,
        )
        return df

    def clean_orders(self, rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
        """Orders: id and creation time are required, amount defaults to 0"""
        df, input_rows = self._frame(rows, ORDER_FIELDS, limit)
        df = df.with_columns(
            self._timestamp("created_at"),
            self._amount("total_amount"),
        )
        return self._finalize(df, "orders", ORDER_SCHEMA, ["order_id", "created_at"], input_rows)

    def clean_order_items(self, rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
        """Order items: both foreign keys are required"""
        df, input_rows = self._frame(rows, ORDER_ITEM_FIELDS, limit)
        df = df.with_columns(
            self._quantity("quantity"),
            self._amount("price"),
        )
        return self._finalize(
            df, "order_items", ORDER_ITEM_SCHEMA, ["order_id", "product_id"], input_rows
        )

    def clean_refunds(self, rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
        df, input_rows = self._frame(rows, REFUND_FIELDS, limit)
        df = df.with_columns(self._amount("amount"))
        return self._finalize(df, "refunds", REFUND_SCHEMA, ["order_item_id"], input_rows)

    def clean_products(self, rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
        df, input_rows = self._frame(rows, PRODUCT_FIELDS, limit)
        df = df.with_columns(self._category("name", DEFAULT_PRODUCT_NAME))
        return self._finalize(df, "products", PRODUCT_SCHEMA, ["product_id"], input_rows)

    def clean_sessions(self, rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
        """
        Sessions: id and creation time are required.

        device_type is lower-cased with an "unknown" bucket; missing UTM
        tags fall back to "direct" / "none". is_repeat_session keeps its
        "0"/"1" code as text.
        """
        df, input_rows = self._frame(rows, SESSION_FIELDS, limit)
        df = df.with_columns(
            self._timestamp("created_at"),
            self._category("device_type", DEFAULT_DEVICE, lowercase=True),
            self._category("utm_source", DEFAULT_SOURCE),
            self._category("utm_campaign", DEFAULT_CAMPAIGN),
        )
        return self._finalize(df, "sessions", SESSION_SCHEMA, ["session_id", "created_at"], input_rows)

    def clean_pageviews(self, rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
        """Pageviews keep input order; created_at stays null when unparsable"""
        df, input_rows = self._frame(rows, PAGEVIEW_FIELDS, limit)
        df = df.with_columns(
            self._timestamp("created_at"),
            self._category("pageview_url", DEFAULT_URL),
        )
        return self._finalize(df, "pageviews", PAGEVIEW_SCHEMA, ["session_id"], input_rows)

    def clean_dataset(self, raw: RawDataset, limit: Optional[int] = None) -> CleanedDataset:
        """Clean all six collections with one uniform row cap"""
        raw = apply_row_limit(raw, limit)

        dataset = CleanedDataset(
            orders=self.clean_orders(raw.orders),
            order_items=self.clean_order_items(raw.order_items),
            refunds=self.clean_refunds(raw.refunds),
            products=self.clean_products(raw.products),
            sessions=self.clean_sessions(raw.sessions),
            pageviews=self.clean_pageviews(raw.pageviews),
        )

        logger.info("Dataset cleaned", row_limit=limit, **dataset.row_counts())
        return dataset


def clean_orders(rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
    return RecordCleaner().clean_orders(rows, limit)


def clean_order_items(rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
    return RecordCleaner().clean_order_items(rows, limit)


def clean_refunds(rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
    return RecordCleaner().clean_refunds(rows, limit)


def clean_products(rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
    return RecordCleaner().clean_products(rows, limit)


def clean_sessions(rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
    return RecordCleaner().clean_sessions(rows, limit)


def clean_pageviews(rows: Any, limit: Optional[int] = None) -> pl.DataFrame:
    return RecordCleaner().clean_pageviews(rows, limit)


def clean_records(rows: Any, entity: str, limit: Optional[int] = None) -> pl.DataFrame:
    """
    Convenience function to clean one raw collection.

    Args:
        rows: Raw rows
        entity: "orders", "order_items", "refunds", "products", "sessions" or "pageviews"
        limit: Optional row cap applied before cleaning

    Returns:
        Cleaned DataFrame
    """
    cleaner = RecordCleaner()
    handlers = {
        "orders": cleaner.clean_orders,
        "order_items": cleaner.clean_order_items,
        "refunds": cleaner.clean_refunds,
        "products": cleaner.clean_products,
        "sessions": cleaner.clean_sessions,
        "pageviews": cleaner.clean_pageviews,
    }
    if entity not in handlers:
        raise ValueError(f"Unknown entity: {entity}. Expected one of: {sorted(handlers)}")
    return handlers[entity](rows, limit)
