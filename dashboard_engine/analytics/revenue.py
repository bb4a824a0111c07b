"""
Revenue Aggregators

Groups cleaned orders into calendar buckets. Series are sparse: periods
without orders are omitted rather than zero-filled.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

import polars as pl


@dataclass(frozen=True)
class RevenuePoint:
    """Revenue for one period"""
    period: str
    revenue: float
    orders: int

    def to_dict(self) -> Dict[str, Any]:
        return {"period": self.period, "revenue": self.revenue, "orders": self.orders}


def _aggregate_revenue(orders: pl.DataFrame, period_format: str) -> List[RevenuePoint]:
    grouped = (
        orders
        .group_by(pl.col("created_at").dt.strftime(period_format).alias("period"))
        .agg(
            pl.col("total_amount").sum().alias("revenue"),
            pl.len().alias("orders"),
        )
        .sort("period")
    )

    return [
        RevenuePoint(period=row["period"], revenue=float(row["revenue"]), orders=int(row["orders"]))
        for row in grouped.iter_rows(named=True)
    ]


def aggregate_revenue_by_month(orders: pl.DataFrame) -> List[RevenuePoint]:
    """Revenue per "YYYY-MM", ascending"""
    return _aggregate_revenue(orders, "%Y-%m")


def aggregate_revenue_by_year(orders: pl.DataFrame) -> List[RevenuePoint]:
    """Revenue per "YYYY", ascending"""
    return _aggregate_revenue(orders, "%Y")
