"""
E-Commerce Dashboard Metrics Engine

Cleans the static order and website-traffic collections and derives the
financial, product and traffic metrics shown on the dashboard.
"""
from .dashboard import DashboardData, DashboardEngine
from .data import RawDataset, load_raw_dataset

__version__ = "1.0.0"

__all__ = [
    "DashboardData",
    "DashboardEngine",
    "RawDataset",
    "load_raw_dataset",
]
