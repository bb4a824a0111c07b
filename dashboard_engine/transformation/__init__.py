"""
Record Cleaning Module
"""
from .cleaners import (
    CleanedDataset,
    CleaningStats,
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

__all__ = [
    "CleanedDataset",
    "CleaningStats",
    "RecordCleaner",
    "apply_row_limit",
    "clean_order_items",
    "clean_orders",
    "clean_pageviews",
    "clean_products",
    "clean_records",
    "clean_refunds",
    "clean_sessions",
]
