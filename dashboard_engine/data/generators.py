"""
Synthetic Data Generator

Generates raw dashboard collections for development and testing, using
the same field names as the static JSON exports:
- Products
- Website sessions with UTM attribution and their pageviews
- Orders placed from sessions, with order items and refunds
"""

import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from faker import Faker

from dashboard_engine.data.loader import RawDataset


# =============================================================================
# CONFIGURATION
# =============================================================================

PRODUCT_NAMES = [
    "The Original Mr. Fuzzy",
    "The Forever Love Bear",
    "The Birthday Sugar Panda",
    "The Hudson River Mini Bear",
]

DEVICE_TYPES = [("desktop", 0.70), ("mobile", 0.30)]

# (utm_source, utm_campaign, weight); None means untagged traffic
TRAFFIC_SOURCES = [
    ("gsearch", "nonbrand", 0.45),
    ("gsearch", "brand", 0.10),
    ("bsearch", "nonbrand", 0.12),
    ("bsearch", "brand", 0.03),
    ("socialbook", "pilot", 0.05),
    (None, None, 0.25),
]

LANDING_PAGES = ["/home", "/lander-1", "/lander-2"]
FUNNEL_PAGES = ["/products", "/the-original-mr-fuzzy", "/cart", "/shipping", "/billing", "/thank-you-for-your-order"]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class RawDataGenerator:
    """
    Generate a consistent raw dataset.

    Pageviews always reference generated sessions and order items always
    reference generated products, so joins resolve.

    Example:
        dataset = RawDataGenerator(seed=7).generate(n_sessions=500)
    """

    def __init__(self, seed: int = 42):
        self.random = random.Random(seed)
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def generate_products(self) -> List[Dict[str, Any]]:
        launch = datetime(2012, 3, 19, 8, 0, 0)
        return [
            {
                "product_id": str(index),
                "created_at": (launch + timedelta(days=200 * (index - 1))).strftime(TIMESTAMP_FORMAT),
                "product_name": name,
            }
            for index, name in enumerate(PRODUCT_NAMES, start=1)
        ]

    def generate_sessions(
        self,
        n: int,
        start_date: datetime,
        end_date: datetime,
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """Generate n sessions and their pageviews (chronological within a session)"""
        sessions = []
        pageviews = []
        n_users = max(1, int(n * 0.8))

        for session_id in range(1, n + 1):
            created_at = self.fake.date_time_between(start_date=start_date, end_date=end_date)
            source, campaign, _ = self.random.choices(
                TRAFFIC_SOURCES, weights=[s[2] for s in TRAFFIC_SOURCES]
            )[0]
            device = self.random.choices(
                [d[0] for d in DEVICE_TYPES], weights=[d[1] for d in DEVICE_TYPES]
            )[0]
            is_repeat = self.random.random() < 0.15

            sessions.append({
                "website_session_id": str(session_id),
                "created_at": created_at.strftime(TIMESTAMP_FORMAT),
                "user_id": str(int(self.rng.integers(1, n_users + 1))),
                "is_repeat_session": "1" if is_repeat else "0",
                "utm_source": source,
                "utm_campaign": campaign,
                "utm_content": self.fake.bothify("g_ad_#") if source else None,
                "device_type": device,
                "http_referer": f"https://www.{source}.com" if source else None,
            })

            # Most sessions bounce; the rest walk some way down the funnel
            n_pages = int(self.rng.choice([1, 2, 3, 4, 5, 6, 7], p=[0.45, 0.2, 0.12, 0.1, 0.06, 0.04, 0.03]))
            path = [self.random.choice(LANDING_PAGES)] + FUNNEL_PAGES[: n_pages - 1]
            viewed_at = created_at
            for url in path:
                pageviews.append({
                    "website_pageview_id": str(len(pageviews) + 1),
                    "created_at": viewed_at.strftime(TIMESTAMP_FORMAT),
                    "website_session_id": str(session_id),
                    "pageview_url": url,
                })
                viewed_at += timedelta(seconds=int(self.rng.integers(10, 180)))

        return sessions, pageviews

    def generate_orders(
        self,
        sessions: List[Dict[str, Any]],
        pageviews: List[Dict[str, Any]],
        products: List[Dict[str, Any]],
        refund_rate: float = 0.05,
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], List[Dict[str, Any]]]:
        """Generate one order per session that reached the thank-you page"""
        converted = {
            pv["website_session_id"]
            for pv in pageviews
            if pv["pageview_url"] == "/thank-you-for-your-order"
        }
        prices = {p["product_id"]: round(float(self.rng.uniform(29.99, 59.99)), 2) for p in products}

        orders, order_items, refunds = [], [], []
        for session in sessions:
            if session["website_session_id"] not in converted:
                continue

            order_id = str(len(orders) + 1)
            n_items = 1 if self.random.random() < 0.8 else 2
            chosen = self.random.sample([p["product_id"] for p in products], k=min(n_items, len(products)))
            order_total = 0.0

            for position, product_id in enumerate(chosen):
                order_item_id = str(len(order_items) + 1)
                price = prices[product_id]
                order_total += price
                order_items.append({
                    "order_item_id": order_item_id,
                    "created_at": session["created_at"],
                    "order_id": order_id,
                    "product_id": product_id,
                    "is_primary_item": "1" if position == 0 else "0",
                    "price_usd": f"{price:.2f}",
                    "cogs_usd": f"{price * 0.4:.2f}",
                })

                if self.random.random() < refund_rate:
                    refunded_at = datetime.strptime(session["created_at"], TIMESTAMP_FORMAT) + timedelta(days=14)
                    refunds.append({
                        "order_item_refund_id": str(len(refunds) + 1),
                        "created_at": refunded_at.strftime(TIMESTAMP_FORMAT),
                        "order_item_id": order_item_id,
                        "order_id": order_id,
                        "refund_amount_usd": f"{price:.2f}",
                    })

            orders.append({
                "order_id": order_id,
                "created_at": session["created_at"],
                "website_session_id": session["website_session_id"],
                "user_id": session["user_id"],
                "primary_product_id": chosen[0],
                "items_purchased": str(len(chosen)),
                "price_usd": f"{order_total:.2f}",
            })

        return orders, order_items, refunds

    def generate(
        self,
        n_sessions: int = 1000,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> RawDataset:
        """Generate a complete raw dataset"""
        start_date = start_date or datetime(2012, 3, 19)
        end_date = end_date or start_date + timedelta(days=365)

        products = self.generate_products()
        sessions, pageviews = self.generate_sessions(n_sessions, start_date, end_date)
        orders, order_items, refunds = self.generate_orders(sessions, pageviews, products)

        return RawDataset(
            orders=orders,
            order_items=order_items,
            refunds=refunds,
            products=products,
            sessions=sessions,
            pageviews=pageviews,
        )
