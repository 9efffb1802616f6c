"""
Data Validation Module

Rule-based data quality checks for the pipeline's relations.
Implements validation patterns inspired by Great Expectations.

Features:
- Missing value profiling
- Null and uniqueness checks
- Range checks
- Referential integrity checks
- Custom business rules
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

import polars as pl
import structlog

from transaction_census.exceptions import DataQualityError
from transaction_census.schema import (
    BUSINESS_KEY,
    CUSTOMER_ID,
    DESCRIPTION,
    MEASUREMENT_COLUMNS,
    NOISE_COLUMNS,
    QUANTITY,
    STOCK_CODE,
    UNIT_PRICE,
)

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - blocks pipeline
    WARNING = "warning"  # Non-critical - logged but continues
    INFO = "info"  # Informational only


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
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def failures(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


def profile_missing(df: pl.DataFrame, columns: Optional[List[str]] = None) -> Dict[str, int]:
    """
    Count missing values per column.

    Args:
        df: Relation to profile
        columns: Columns to count; all columns when omitted

    Returns:
        {"total_rows": n, "<column>": null_count, ...}
    """
    columns = columns or df.columns
    profile = {"total_rows": len(df)}
    for col in columns:
        profile[col] = df[col].null_count() if col in df.columns else len(df)
    return profile


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator(name="customers")
        validator.add_not_null_check("customer_id")
        validator.add_unique_check("customer_id")
        result = validator.validate(df)
    """

    def __init__(self, name: str = "relation", strict_mode: bool = False):
        self.name = name
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable] = []

    def reset(self) -> None:
        """Reset validator state"""
        self._checks = []

    def _missing_column(self, name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
        )

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"not_null_{column}", column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=f"not_null_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        columns: Union[str, List[str]],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that a column (or column combination) has no duplicates"""
        columns = [columns] if isinstance(columns, str) else list(columns)
        name = f"unique_{'_'.join(columns)}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = [c for c in columns if c not in df.columns]
            if missing:
                return self._missing_column(name, missing[0], severity)

            total = len(df)
            duplicate_count = int(df.select(columns).is_duplicated().sum())
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Columns {columns} have {duplicate_count} duplicated rows" if not passed else f"Columns {columns} are unique",
                details={"duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"range_{column}", column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=f"range_{column}",
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            # Combine conditions with OR
            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            total = len(df)
            passed = out_of_range == 0

            return ValidationCheck(
                name=f"range_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_positive_check(
        self,
        column: str,
        allow_zero: bool = True,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for positive values"""
        min_val = 0 if allow_zero else 0.0001
        return self.add_range_check(column, min_value=min_val, severity=severity)

    def add_absent_columns_check(
        self,
        columns: List[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that none of the given columns are present"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            present = [c for c in columns if c in df.columns]
            return ValidationCheck(
                name="absent_columns",
                passed=not present,
                severity=severity,
                message=f"Unexpected columns present: {present}" if present else "No unexpected columns",
                details={"present": present},
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add custom validation check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            try:
                passed = bool(check_func(df))
                return ValidationCheck(
                    name=name,
                    passed=passed,
                    severity=severity,
                    message="Check passed" if passed else message_on_fail,
                    total_rows=len(df),
                )
            except Exception as e:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Check failed with error: {str(e)}",
                )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: Optional[str] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add referential integrity check"""
        reference_column = reference_column or column

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"ref_integrity_{column}", column, severity)

            # Find orphan records
            orphans = df.filter(
                ~pl.col(column).is_in(reference_df[reference_column].unique().to_list()) & pl.col(column).is_not_null()
            ).height
            total = len(df)
            passed = orphans == 0

            return ValidationCheck(
                name=f"ref_integrity_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.utcnow()
        results = []

        logger.info(f"Running {len(self._checks)} validation checks on {len(df)} rows", relation=self.name)

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    relation=self.name,
                    message=result.message,
                    severity=result.severity.value,
                )

        completed_at = datetime.utcnow()

        # Calculate summary
        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        # Determine overall status
        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=completed_at,
        )

        logger.info(
            f"Validation complete: {status.value}",
            relation=self.name,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return validation_result

    def validate_or_raise(self, df: pl.DataFrame) -> ValidationResult:
        """Validate and raise DataQualityError when the result is FAILED"""
        result = self.validate(df)
        if result.status == ValidationStatus.FAILED:
            names = [c.name for c in result.failures]
            raise DataQualityError(f"Validation of '{self.name}' failed: {names}", result=result)
        return result


def _line_totals_exact(df: pl.DataFrame) -> bool:
    cents = (pl.col(UNIT_PRICE) * 100).round(0).cast(pl.Int64) * pl.col(QUANTITY)
    total_cents = (pl.col("total_price") * 100).round(0).cast(pl.Int64)
    return df.filter(cents != total_cents).height == 0


# Pre-built validators for the pipeline's relations
def create_cleaned_transactions_validator() -> DataValidator:
    """Create pre-configured validator for cleaned transactions"""
    return (
        DataValidator(name="cleaned_transactions")
        .add_not_null_check(CUSTOMER_ID)
        .add_not_null_check(DESCRIPTION)
        .add_not_null_check(QUANTITY)
        .add_not_null_check(UNIT_PRICE)
        .add_unique_check(BUSINESS_KEY)
        .add_positive_check(UNIT_PRICE, severity=ValidationSeverity.WARNING)
    )


def create_customers_validator() -> DataValidator:
    """Create pre-configured validator for the customers table"""
    return (
        DataValidator(name="customers")
        .add_not_null_check(CUSTOMER_ID)
        .add_unique_check(CUSTOMER_ID)
        .add_positive_check("total_purchases", allow_zero=False)
    )


def create_products_validator() -> DataValidator:
    """Create pre-configured validator for the products table"""
    return (
        DataValidator(name="products")
        .add_not_null_check(STOCK_CODE)
        .add_unique_check(STOCK_CODE)
        .add_not_null_check(DESCRIPTION)
    )


def create_invoices_validator(customers: pl.DataFrame) -> DataValidator:
    """Create pre-configured validator for the invoices table"""
    return (
        DataValidator(name="invoices")
        .add_not_null_check("invoice_id")
        .add_unique_check("invoice_id")
        .add_referential_integrity_check(CUSTOMER_ID, customers)
    )


def create_line_items_validator(invoices: pl.DataFrame, products: pl.DataFrame) -> DataValidator:
    """Create pre-configured validator for the invoice line items table"""
    return (
        DataValidator(name="invoice_details")
        .add_unique_check("invoice_detail_id")
        .add_referential_integrity_check("invoice_id", invoices)
        .add_referential_integrity_check(STOCK_CODE, products)
        .add_custom_check(
            name="line_total_equals_quantity_times_price",
            check_func=_line_totals_exact,
            message_on_fail="total_price differs from quantity * unit_price",
        )
    )


def create_joined_validator(expected_rows: int) -> DataValidator:
    """Create pre-configured validator for the joined analytical table"""
    return (
        DataValidator(name="joined_data")
        .add_unique_check("invoice_detail_id")
        .add_custom_check(
            name="line_item_grain_preserved",
            check_func=lambda df: len(df) == expected_rows,
            message_on_fail=f"Joined row count differs from {expected_rows} line items",
        )
    )


def create_census_validator() -> DataValidator:
    """Create pre-configured validator for the cleaned census table"""
    validator = DataValidator(name="cleaned_census")
    for col in MEASUREMENT_COLUMNS:
        validator.add_not_null_check(col)
    return validator.add_absent_columns_check(NOISE_COLUMNS)
