"""
Product Aggregators

Joins order items and refunds to the product catalog by identifier and
totals them per product. Rows whose foreign keys do not resolve are left
out of every group.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProductSales:
    """Units sold and revenue for one product"""
    product_id: str
    product: str
    quantity: int
    revenue: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "product": self.product,
            "quantity": self.quantity,
            "revenue": self.revenue,
        }


@dataclass(frozen=True)
class ProductRefunds:
    """Refunded amount for one product"""
    product_id: str
    product: str
    amount: float
    refunds: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "product": self.product,
            "amount": self.amount,
            "refunds": self.refunds,
        }


def _catalog(products: pl.DataFrame) -> pl.DataFrame:
    """One row per product id (first occurrence wins)"""
    return products.select("product_id", "name").unique(
        subset="product_id", keep="first", maintain_order=True
    )


def get_orders_by_product(
    order_items: pl.DataFrame,
    products: pl.DataFrame,
) -> List[ProductSales]:
    """
    Units and revenue per product, highest revenue first.

    Args:
        order_items: Cleaned order items
        products: Cleaned products

    Returns:
        List of ProductSales
    """
    grouped = (
        order_items
        .with_columns((pl.col("price") * pl.col("quantity")).alias("revenue"))
        .join(_catalog(products), on="product_id", how="inner")
        .group_by("product_id", "name")
        .agg(
            pl.col("quantity").sum().alias("quantity"),
            pl.col("revenue").sum().alias("revenue"),
        )
        .sort(["revenue", "name"], descending=[True, False])
    )

    logger.debug("Orders grouped by product", products=grouped.height, items=order_items.height)

    return [
        ProductSales(
            product_id=row["product_id"],
            product=row["name"],
            quantity=int(row["quantity"]),
            revenue=float(row["revenue"]),
        )
        for row in grouped.iter_rows(named=True)
    ]


def get_refunds_by_product(
    refunds: pl.DataFrame,
    order_items: pl.DataFrame,
    products: pl.DataFrame,
) -> List[ProductRefunds]:
    """
    Refunded amount per product, largest first.

    Refunds resolve to products through refund -> order item -> product.

    Args:
        refunds: Cleaned refunds
        order_items: Cleaned order items
        products: Cleaned products

    Returns:
        List of ProductRefunds
    """
    item_products = (
        order_items
        .select("order_item_id", "product_id")
        .filter(pl.col("order_item_id").is_not_null())
        .unique(subset="order_item_id", keep="first", maintain_order=True)
    )

    grouped = (
        refunds
        .join(item_products, on="order_item_id", how="inner")
        .join(_catalog(products), on="product_id", how="inner")
        .group_by("product_id", "name")
        .agg(
            pl.col("amount").sum().alias("amount"),
            pl.len().alias("refunds"),
        )
        .sort(["amount", "name"], descending=[True, False])
    )

    return [
        ProductRefunds(
            product_id=row["product_id"],
            product=row["name"],
            amount=float(row["amount"]),
            refunds=int(row["refunds"]),
        )
        for row in grouped.iter_rows(named=True)
    ]
