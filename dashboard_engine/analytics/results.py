"""
Metric Result Type

Every derived dashboard value is computed inside its own boundary: a
failure is logged and replaced by a defined fallback, and the error is
carried alongside the value instead of propagating to the caller.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class MetricResult(Generic[T]):
    """A computed value, or its fallback plus an error tag"""
    name: str
    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def compute_metric(
    name: str,
    func: Callable[[], T],
    fallback: Callable[[], T],
) -> MetricResult[T]:
    """
    Run a metric computation, substituting the fallback on failure.

    Args:
        name: Metric name used in logs and error tags
        func: Zero-argument computation
        fallback: Factory for the value used when func raises

    Returns:
        MetricResult with either the computed value or the fallback and error
    """
    try:
        return MetricResult(name=name, value=func())
    except Exception as e:
        logger.error("Metric computation failed", metric=name, error=str(e), exc_info=True)
        return MetricResult(
            name=name,
            value=fallback(),
            error=f"{type(e).__name__}: {e}",
        )
