"""
Financial Metric Calculators

Pure scalar functions over cleaned orders and refunds.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict

import polars as pl


@dataclass(frozen=True)
class FinancialMetrics:
    """Headline financial KPIs"""
    total_orders: int
    total_revenue: float
    total_refunds: float
    refund_rate: float
    aov: float
    net_revenue: float

    @classmethod
    def empty(cls) -> "FinancialMetrics":
        return cls(
            total_orders=0,
            total_revenue=0.0,
            total_refunds=0.0,
            refund_rate=0.0,
            aov=0.0,
            net_revenue=0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "totalOrders": data["total_orders"],
            "totalRevenue": data["total_revenue"],
            "totalRefunds": data["total_refunds"],
            "refundRate": data["refund_rate"],
            "aov": data["aov"],
            "netRevenue": data["net_revenue"],
        }


def calculate_total_revenue(orders: pl.DataFrame) -> float:
    """Sum of order total_amount"""
    return float(orders["total_amount"].sum() or 0.0)


def calculate_total_refunds(refunds: pl.DataFrame) -> float:
    """Sum of refunded amounts"""
    return float(refunds["amount"].sum() or 0.0)


def calculate_refund_rate(orders: pl.DataFrame, refunds: pl.DataFrame) -> float:
    """Refunded share of revenue as a ratio; 0 when there is no revenue"""
    total_revenue = calculate_total_revenue(orders)
    if total_revenue <= 0:
        return 0.0
    return calculate_total_refunds(refunds) / total_revenue


def calculate_aov(orders: pl.DataFrame) -> float:
    """Average order value; 0 for an empty order set"""
    if orders.height == 0:
        return 0.0
    return calculate_total_revenue(orders) / orders.height


def calculate_net_revenue(orders: pl.DataFrame, refunds: pl.DataFrame) -> float:
    """Revenue minus refunds (may be negative)"""
    return calculate_total_revenue(orders) - calculate_total_refunds(refunds)


def compute_financial_metrics(orders: pl.DataFrame, refunds: pl.DataFrame) -> FinancialMetrics:
    """
    Compute all headline financial KPIs.

    Args:
        orders: Cleaned orders
        refunds: Cleaned refunds

    Returns:
        FinancialMetrics
    """
    total_revenue = calculate_total_revenue(orders)
    total_refunds = calculate_total_refunds(refunds)

    return FinancialMetrics(
        total_orders=orders.height,
        total_revenue=total_revenue,
        total_refunds=total_refunds,
        refund_rate=total_refunds / total_revenue if total_revenue > 0 else 0.0,
        aov=total_revenue / orders.height if orders.height > 0 else 0.0,
        net_revenue=total_revenue - total_refunds,
    )
