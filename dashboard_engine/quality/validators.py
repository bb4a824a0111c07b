"""
Data Validation Module

Rule-based integrity checks over the cleaned dashboard dataset.

Cleaners do not enforce referential integrity: an orphaned pageview is
still counted in traffic metrics and an orphaned order item is simply
left out of the product breakdown. These checks make such gaps visible
without blocking metric computation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from dashboard_engine.transformation.cleaners import CleanedDataset

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    def check(self, name: str) -> Optional[ValidationCheck]:
        return next((c for c in self.checks if c.name == name), None)

    @classmethod
    def empty(cls) -> "ValidationResult":
        return cls(
            status=ValidationStatus.PASSED,
            total_checks=0,
            passed_checks=0,
            failed_checks=0,
            warning_count=0,
        )


Check = Callable[[CleanedDataset], ValidationCheck]


class DataValidator:
    """
    Integrity validator for a cleaned dataset.

    Example:
        validator = DataValidator()
        validator.add_unique_check("sessions", "session_id")
        validator.add_referential_integrity_check("pageviews", "session_id", "sessions", "session_id")
        result = validator.validate(dataset)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Warnings count as failures
        self._checks: List[Check] = []

    def add_unique_check(
        self,
        entity: str,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        def check(dataset: CleanedDataset) -> ValidationCheck:
            df: pl.DataFrame = getattr(dataset, entity)
            total = df.height
            duplicate_count = total - df[column].n_unique()
            passed = duplicate_count == 0

            return ValidationCheck(
                name=f"unique_{entity}_{column}",
                passed=passed,
                severity=severity,
                message=f"{entity}.{column} has {duplicate_count} duplicate values" if not passed else f"{entity}.{column} values are unique",
                details={"duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        entity: str,
        column: str,
        reference_entity: str,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check that every non-null key resolves in the reference entity"""
        def check(dataset: CleanedDataset) -> ValidationCheck:
            df: pl.DataFrame = getattr(dataset, entity)
            reference: pl.DataFrame = getattr(dataset, reference_entity)

            orphans = df.filter(pl.col(column).is_not_null()).join(
                reference.select(pl.col(reference_column).alias(column)).unique(),
                on=column,
                how="anti",
            ).height
            total = df.height
            passed = orphans == 0

            return ValidationCheck(
                name=f"ref_integrity_{entity}_{column}",
                passed=passed,
                severity=severity,
                message=f"{entity}.{column} has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans, "reference": f"{reference_entity}.{reference_column}"},
                failed_rows=orphans,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def validate(self, dataset: CleanedDataset) -> ValidationResult:
        """
        Run all validation checks on the dataset.

        Args:
            dataset: Cleaned dataset

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now()
        results = []

        for check_func in self._checks:
            result = check_func(dataset)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            f"Validation complete: {status.value}",
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(),
        )


def create_integrity_validator(strict_mode: bool = False) -> DataValidator:
    """Create the pre-configured validator for the dashboard dataset"""
    return (
        DataValidator(strict_mode=strict_mode)
        .add_unique_check("sessions", "session_id")
        .add_unique_check("products", "product_id")
        .add_referential_integrity_check("pageviews", "session_id", "sessions", "session_id")
        .add_referential_integrity_check("order_items", "product_id", "products", "product_id")
        .add_referential_integrity_check("refunds", "order_item_id", "order_items", "order_item_id")
    )
