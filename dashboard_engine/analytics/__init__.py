"""
Dashboard Analytics Module
"""
from .financial import (
    FinancialMetrics,
    calculate_aov,
    calculate_net_revenue,
    calculate_refund_rate,
    calculate_total_refunds,
    calculate_total_revenue,
    compute_financial_metrics,
)
from .formatting import format_currency, format_number, format_percentage
from .products import ProductRefunds, ProductSales, get_orders_by_product, get_refunds_by_product
from .results import MetricResult, compute_metric
from .revenue import RevenuePoint, aggregate_revenue_by_month, aggregate_revenue_by_year
from .traffic import TrafficMetrics, compute_traffic_metrics

__all__ = [
    "FinancialMetrics",
    "calculate_aov",
    "calculate_net_revenue",
    "calculate_refund_rate",
    "calculate_total_refunds",
    "calculate_total_revenue",
    "compute_financial_metrics",
    "format_currency",
    "format_number",
    "format_percentage",
    "ProductRefunds",
    "ProductSales",
    "get_orders_by_product",
    "get_refunds_by_product",
    "MetricResult",
    "compute_metric",
    "RevenuePoint",
    "aggregate_revenue_by_month",
    "aggregate_revenue_by_year",
    "TrafficMetrics",
    "compute_traffic_metrics",
]
