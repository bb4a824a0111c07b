"""
Dashboard Engine

Combines cleaning, metric calculation and aggregation into the set of
metric objects the dashboard displays.

Features:
- One uniform row cap taken from configuration
- Per-metric failure isolation with defined fallbacks
- Memoization keyed on the raw dataset's content hash
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from dashboard_engine.analytics.financial import FinancialMetrics, compute_financial_metrics
from dashboard_engine.analytics.products import (
    ProductRefunds,
    ProductSales,
    get_orders_by_product,
    get_refunds_by_product,
)
from dashboard_engine.analytics.results import MetricResult, compute_metric
from dashboard_engine.analytics.revenue import (
    RevenuePoint,
    aggregate_revenue_by_month,
    aggregate_revenue_by_year,
)
from dashboard_engine.analytics.traffic import TrafficMetrics, compute_traffic_metrics
from dashboard_engine.config import EngineSettings, get_settings
from dashboard_engine.data.loader import RawDataset
from dashboard_engine.quality.validators import ValidationResult, create_integrity_validator
from dashboard_engine.transformation.cleaners import CleanedDataset, RecordCleaner

logger = structlog.get_logger(__name__)


@dataclass
class DashboardData:
    """Everything the dashboard renders for one raw dataset"""
    fingerprint: str
    data: MetricResult[CleanedDataset]
    metrics: MetricResult[FinancialMetrics]
    revenue_by_month: MetricResult[List[RevenuePoint]]
    revenue_by_year: MetricResult[List[RevenuePoint]]
    orders_by_product: MetricResult[List[ProductSales]]
    refunds_by_product: MetricResult[List[ProductRefunds]]
    traffic: MetricResult[TrafficMetrics]
    integrity: MetricResult[ValidationResult]
    load_errors: List[str] = field(default_factory=list)

    def _results(self) -> List[MetricResult]:
        return [
            self.data,
            self.metrics,
            self.revenue_by_month,
            self.revenue_by_year,
            self.orders_by_product,
            self.refunds_by_product,
            self.traffic,
            self.integrity,
        ]

    @property
    def errors(self) -> Dict[str, str]:
        """Error tag per failed computation"""
        return {result.name: result.error for result in self._results() if not result.ok}

    @property
    def error(self) -> Optional[str]:
        """Single message for display, None when everything computed"""
        if self.load_errors:
            return self.load_errors[0]
        for result in self._results():
            if not result.ok:
                return f"Failed to compute {result.name}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Output shapes consumed by the presentation layer"""
        return {
            "metrics": self.metrics.value.to_dict(),
            "revenueByMonth": [point.to_dict() for point in self.revenue_by_month.value],
            "revenueByYear": [point.to_dict() for point in self.revenue_by_year.value],
            "ordersByProduct": [item.to_dict() for item in self.orders_by_product.value],
            "refundsByProduct": [item.to_dict() for item in self.refunds_by_product.value],
            "traffic": self.traffic.value.to_dict(),
            "error": self.error,
        }


class DashboardEngine:
    """
    Memoized dashboard computation.

    Results are cached by the content hash of the raw dataset (and the row
    cap), so rebuilding with unchanged input returns the cached result
    without recomputation.

    Example:
        engine = DashboardEngine()
        dashboard = engine.build(load_raw_dataset())
        dashboard.metrics.value.total_revenue
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or get_settings().engine
        self.cleaner = RecordCleaner()
        self._cache: "OrderedDict[str, DashboardData]" = OrderedDict()
        self.computations = 0

    def _cache_key(self, fingerprint: str) -> str:
        return f"{fingerprint}:{self.settings.row_limit}"

    def build(self, raw: RawDataset) -> DashboardData:
        """
        Get the dashboard for a raw dataset, computing it only on a cache miss.

        Args:
            raw: Raw dataset

        Returns:
            DashboardData (the same object for content-equal input)
        """
        fingerprint = raw.fingerprint()
        key = self._cache_key(fingerprint)

        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            logger.debug("Dashboard cache hit", fingerprint=fingerprint[:12])
            return cached

        dashboard = self.compute(raw, fingerprint)

        self._cache[key] = dashboard
        while len(self._cache) > self.settings.cache_size:
            self._cache.popitem(last=False)

        return dashboard

    def invalidate(self) -> None:
        """Drop all cached dashboards"""
        self._cache.clear()

    def compute(self, raw: RawDataset, fingerprint: Optional[str] = None) -> DashboardData:
        """Compute the dashboard without consulting the cache"""
        self.computations += 1
        fingerprint = fingerprint or raw.fingerprint()
        row_limit = self.settings.row_limit

        # Every cleaner and metric log line of this run carries the dataset id
        with structlog.contextvars.bound_contextvars(dataset=fingerprint[:12], row_limit=row_limit):
            logger.info("Computing dashboard")
            return self._compute(raw, fingerprint, row_limit)

    def _compute(self, raw: RawDataset, fingerprint: str, row_limit: Optional[int]) -> DashboardData:
        data = compute_metric(
            "data",
            lambda: self.cleaner.clean_dataset(raw, limit=row_limit),
            CleanedDataset,
        )
        cleaned = data.value

        dashboard = DashboardData(
            fingerprint=fingerprint,
            data=data,
            metrics=compute_metric(
                "metrics",
                lambda: compute_financial_metrics(cleaned.orders, cleaned.refunds),
                FinancialMetrics.empty,
            ),
            revenue_by_month=compute_metric(
                "revenue_by_month",
                lambda: aggregate_revenue_by_month(cleaned.orders),
                list,
            ),
            revenue_by_year=compute_metric(
                "revenue_by_year",
                lambda: aggregate_revenue_by_year(cleaned.orders),
                list,
            ),
            orders_by_product=compute_metric(
                "orders_by_product",
                lambda: get_orders_by_product(cleaned.order_items, cleaned.products),
                list,
            ),
            refunds_by_product=compute_metric(
                "refunds_by_product",
                lambda: get_refunds_by_product(cleaned.refunds, cleaned.order_items, cleaned.products),
                list,
            ),
            traffic=compute_metric(
                "traffic",
                lambda: compute_traffic_metrics(cleaned.sessions, cleaned.pageviews),
                TrafficMetrics.empty,
            ),
            integrity=compute_metric(
                "integrity",
                lambda: create_integrity_validator().validate(cleaned),
                ValidationResult.empty,
            ),
            load_errors=self._load_errors(raw, cleaned),
        )

        if dashboard.error:
            logger.warning("Dashboard computed with errors", error=dashboard.error, failed=list(dashboard.errors))

        return dashboard

    @staticmethod
    def _load_errors(raw: RawDataset, cleaned: CleanedDataset) -> List[str]:
        """Raw rows existed but none survived cleaning"""
        raw_counts = raw.row_counts()
        errors = []
        if raw_counts["orders"] > 0 and cleaned.orders.height == 0:
            errors.append("Failed to load order data")
        if raw_counts["sessions"] > 0 and cleaned.sessions.height == 0:
            errors.append("Failed to load session data")
        return errors
