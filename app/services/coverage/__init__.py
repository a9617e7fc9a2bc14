"""Statement coverage reconciliation shared by bank accounts and credit cards."""

from app.services.coverage.models import (
    CoverageMode,
    CoverageResult,
    CoverageStatus,
    MonthBucket,
    RequiredPeriod,
    StatementRecord,
)
from app.services.coverage.period import required_period_for, shift_months
from app.services.coverage.reconciler import (
    build_month_buckets,
    compute_coverage,
    inclusive_day_count,
    overall_status,
    reconcile,
)

__all__ = [
    "CoverageMode",
    "CoverageResult",
    "CoverageStatus",
    "MonthBucket",
    "RequiredPeriod",
    "StatementRecord",
    "required_period_for",
    "shift_months",
    "build_month_buckets",
    "compute_coverage",
    "inclusive_day_count",
    "overall_status",
    "reconcile",
]
