"""
Test Suite Configuration
"""
import pytest

from dashboard_engine.config import EngineSettings
from dashboard_engine.data import RawDataset
from dashboard_engine.transformation import CleanedDataset, RecordCleaner


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Engine settings without a row cap"""
    return EngineSettings(row_limit=None, cache_size=2)


@pytest.fixture
def raw_orders() -> list:
    return [
        {"order_id": "1", "created_at": "2012-03-19 10:42:46", "price_usd": "100.00"},
        {"order_id": 2, "created_at": "2012-04-01 09:00:00", "price_usd": 50},
    ]


@pytest.fixture
def raw_order_items() -> list:
    return [
        {"order_item_id": "1", "order_id": "1", "product_id": "1", "price_usd": "60.00"},
        {"order_item_id": "2", "order_id": "1", "product_id": "2", "price_usd": "40.00"},
        {"order_item_id": "3", "order_id": "2", "product_id": "1", "price_usd": "50.00"},
        {"order_item_id": "4", "order_id": "2", "product_id": "99", "price_usd": "10.00"},
    ]


@pytest.fixture
def raw_refunds() -> list:
    return [
        {"order_item_refund_id": "1", "order_item_id": "2", "refund_amount_usd": "25.00"},
    ]


@pytest.fixture
def raw_products() -> list:
    return [
        {"product_id": "1", "product_name": "The Original Mr. Fuzzy"},
        {"product_id": "2", "product_name": "The Forever Love Bear"},
    ]


@pytest.fixture
def raw_sessions() -> list:
    return [
        {
            "website_session_id": "1",
            "created_at": "2012-03-19 08:04:16",
            "user_id": "1",
            "is_repeat_session": "0",
            "utm_source": "gsearch",
            "utm_campaign": "nonbrand",
            "device_type": "Desktop",
        },
        {
            "website_session_id": "2",
            "created_at": "2012-03-19 09:10:00",
            "user_id": "2",
            "is_repeat_session": "0",
            "utm_source": None,
            "utm_campaign": None,
            "device_type": "mobile",
        },
        {
            "website_session_id": 3,
            "created_at": "2012-03-20 10:00:00",
            "user_id": 1,
            "is_repeat_session": 1,
            "utm_source": "gsearch",
            "utm_campaign": "brand",
            "device_type": "desktop",
        },
    ]


@pytest.fixture
def raw_pageviews() -> list:
    """Session 1 bounces; session 3's pageviews arrive out of order"""
    return [
        {"website_pageview_id": "1", "website_session_id": "1", "pageview_url": "/home", "created_at": "2012-03-19 08:04:16"},
        {"website_pageview_id": "2", "website_session_id": "2", "pageview_url": "/lander-1", "created_at": "2012-03-19 09:10:00"},
        {"website_pageview_id": "3", "website_session_id": "2", "pageview_url": "/products", "created_at": "2012-03-19 09:11:00"},
        {"website_pageview_id": "5", "website_session_id": "3", "pageview_url": "/products", "created_at": "2012-03-20 10:02:00"},
        {"website_pageview_id": "4", "website_session_id": "3", "pageview_url": "/home", "created_at": "2012-03-20 10:00:00"},
    ]


@pytest.fixture
def raw_dataset(
    raw_orders,
    raw_order_items,
    raw_refunds,
    raw_products,
    raw_sessions,
    raw_pageviews,
) -> RawDataset:
    return RawDataset(
        orders=raw_orders,
        order_items=raw_order_items,
        refunds=raw_refunds,
        products=raw_products,
        sessions=raw_sessions,
        pageviews=raw_pageviews,
    )


@pytest.fixture
def cleaned_dataset(raw_dataset) -> CleanedDataset:
    return RecordCleaner().clean_dataset(raw_dataset)
