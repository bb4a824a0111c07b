"""
Unit Tests - Dashboard Engine
"""
import copy

import pytest

from dashboard_engine.analytics import FinancialMetrics, MetricResult, compute_metric
from dashboard_engine.config import EngineSettings
from dashboard_engine.dashboard import DashboardEngine
from dashboard_engine.data import RawDataset


class TestComputeMetric:
    """Tests for per-metric failure isolation"""

    def test_success(self):
        result = compute_metric("answer", lambda: 42, lambda: 0)

        assert result == MetricResult(name="answer", value=42)
        assert result.ok

    def test_failure_uses_fallback(self):
        result = compute_metric("ratio", lambda: 1 / 0, FinancialMetrics.empty)

        assert not result.ok
        assert result.value == FinancialMetrics.empty()
        assert result.error.startswith("ZeroDivisionError")


class TestDashboardEngine:
    """Tests for end-to-end dashboard computation"""

    def test_build(self, raw_dataset, engine_settings):
        dashboard = DashboardEngine(engine_settings).build(raw_dataset)

        assert dashboard.error is None
        assert dashboard.errors == {}
        assert dashboard.metrics.value.total_revenue == 150.0
        assert dashboard.traffic.value.total_sessions == 3
        assert [p.period for p in dashboard.revenue_by_month.value] == ["2012-03", "2012-04"]
        assert dashboard.orders_by_product.value[0].product == "The Original Mr. Fuzzy"
        assert dashboard.refunds_by_product.value[0].amount == 25.0

    def test_integrity_report_flags_unknown_product(self, raw_dataset, engine_settings):
        dashboard = DashboardEngine(engine_settings).build(raw_dataset)

        check = dashboard.integrity.value.check("ref_integrity_order_items_product_id")
        assert check.failed_rows == 1

    def test_empty_dataset(self, engine_settings):
        """No rows anywhere gives zeroed metrics and no error"""
        dashboard = DashboardEngine(engine_settings).build(RawDataset())

        assert dashboard.metrics.value == FinancialMetrics.empty()
        assert dashboard.traffic.value.bounce_rate == 0.0
        assert dashboard.error is None

    def test_malformed_collections(self, engine_settings):
        dashboard = DashboardEngine(engine_settings).build(RawDataset(orders="oops", sessions={"a": 1}))

        assert dashboard.metrics.value.total_orders == 0
        assert dashboard.error is None

    def test_load_error_when_nothing_survives_cleaning(self, engine_settings):
        raw = RawDataset(orders=[{"order_id": None}], sessions=[{"created_at": "bad"}])

        dashboard = DashboardEngine(engine_settings).build(raw)

        assert dashboard.load_errors == ["Failed to load order data", "Failed to load session data"]
        assert dashboard.error == "Failed to load order data"

    def test_failing_metric_is_isolated(self, raw_dataset, engine_settings, monkeypatch):
        def broken(orders):
            raise KeyError("created_at")

        monkeypatch.setattr("dashboard_engine.dashboard.aggregate_revenue_by_month", broken)

        dashboard = DashboardEngine(engine_settings).build(raw_dataset)

        assert dashboard.revenue_by_month.value == []
        assert "revenue_by_month" in dashboard.errors
        assert dashboard.error == "Failed to compute revenue_by_month"
        assert dashboard.metrics.ok
        assert dashboard.traffic.ok

    def test_row_limit_applies_to_every_collection(self, raw_dataset):
        engine = DashboardEngine(EngineSettings(row_limit=1))

        counts = engine.build(raw_dataset).data.value.row_counts()

        assert all(count <= 1 for count in counts.values())

    def test_to_dict(self, raw_dataset, engine_settings):
        data = DashboardEngine(engine_settings).build(raw_dataset).to_dict()

        assert data["metrics"]["netRevenue"] == 125.0
        assert data["traffic"]["uniqueUsers"] == 2
        assert data["revenueByYear"] == [{"period": "2012", "revenue": 150.0, "orders": 2}]
        assert data["error"] is None


class TestDashboardCache:
    """Tests for content-keyed memoization"""

    def test_equal_content_is_not_recomputed(self, raw_dataset, engine_settings):
        engine = DashboardEngine(engine_settings)

        first = engine.build(raw_dataset)
        second = engine.build(copy.deepcopy(raw_dataset))

        assert second is first
        assert engine.computations == 1

    def test_changed_content_is_recomputed(self, raw_dataset, engine_settings):
        engine = DashboardEngine(engine_settings)
        first = engine.build(raw_dataset)

        changed = copy.deepcopy(raw_dataset)
        changed.orders.append({"order_id": "3", "created_at": "2012-05-01", "price_usd": "10"})
        second = engine.build(changed)

        assert second is not first
        assert second.metrics.value.total_revenue == 160.0
        assert engine.computations == 2

    def test_cache_is_bounded(self, engine_settings):
        engine = DashboardEngine(engine_settings)
        datasets = [
            RawDataset(products=[{"product_id": str(i), "product_name": "Bear"}])
            for i in range(3)
        ]

        for dataset in datasets:
            engine.build(dataset)
        engine.build(datasets[0])

        assert engine.computations == 4

    def test_invalidate(self, raw_dataset, engine_settings):
        engine = DashboardEngine(engine_settings)
        engine.build(raw_dataset)

        engine.invalidate()
        engine.build(raw_dataset)

        assert engine.computations == 2
