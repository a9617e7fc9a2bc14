"""Statement coverage reconciliation.

Splits a required period into calendar month buckets and measures how much
of each bucket is evidenced by uploaded statements. Every function here is
pure: callers re-run the reconciliation against the latest statement list
after each upload or delete.
"""

import calendar
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from app.core.exceptions import InvalidRangeError
from app.services.coverage.models import (
    CoverageMode,
    CoverageResult,
    CoverageStatus,
    MonthBucket,
    RequiredPeriod,
    StatementRecord,
)
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def inclusive_day_count(start: date, end: date) -> int:
    """Number of days from start to end, counting both ends."""
    return (end - start).days + 1


def _month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def _next_month_start(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def build_month_buckets(period: RequiredPeriod) -> List[MonthBucket]:
    """Split a required period into calendar month buckets.

    The first and last buckets are clipped to the period, so they may be
    partial months. A period that ends before it starts yields no buckets.

    Args:
        period: Required period to split

    Returns:
        Buckets in chronological order
    """
    buckets: List[MonthBucket] = []
    if period.start > period.end:
        return buckets

    current = period.start.replace(day=1)
    while current <= period.end:
        bucket_start = max(current, period.start)
        bucket_end = min(_month_end(current), period.end)
        buckets.append(
            MonthBucket(
                month=bucket_start.month,
                year=bucket_start.year,
                start_date=bucket_start,
                end_date=bucket_end,
                total_days=inclusive_day_count(bucket_start, bucket_end),
            )
        )
        current = _next_month_start(current)

    return buckets


def _check_range(statement: StatementRecord) -> None:
    if statement.start_date > statement.end_date:
        raise InvalidRangeError(
            f"Statement {statement.id} ends ({statement.end_date}) "
            f"before it starts ({statement.start_date})"
        )


def _overlaps(statement: StatementRecord, bucket: MonthBucket) -> bool:
    return statement.start_date <= bucket.end_date and statement.end_date >= bucket.start_date


def _clip(statement: StatementRecord, bucket: MonthBucket) -> Tuple[date, date]:
    return max(statement.start_date, bucket.start_date), min(statement.end_date, bucket.end_date)


def _summed_days(covering: Sequence[StatementRecord], bucket: MonthBucket) -> int:
    total = 0
    for statement in covering:
        start, end = _clip(statement, bucket)
        total += inclusive_day_count(start, end)
    return total


def _union_days(covering: Sequence[StatementRecord], bucket: MonthBucket) -> int:
    # covering is sorted by start date
    total = 0
    last_covered: Optional[date] = None
    for statement in covering:
        start, end = _clip(statement, bucket)
        if last_covered is not None and start <= last_covered:
            start = last_covered + timedelta(days=1)
        if start <= end:
            total += inclusive_day_count(start, end)
        if last_covered is None or end > last_covered:
            last_covered = end
    return total


def compute_coverage(
    buckets: Sequence[MonthBucket],
    statements: Iterable[StatementRecord],
    mode: Union[CoverageMode, str] = CoverageMode.SUMMED,
) -> List[CoverageResult]:
    """Measure statement coverage of each month bucket.

    In SUMMED mode the overlap of every covering statement is added up
    without removing double-counted days, then clamped to the bucket length.
    In UNION mode only distinct covered days count, so overlapping
    statements cannot hide a gap elsewhere in the bucket.

    Args:
        buckets: Month buckets from build_month_buckets
        statements: Uploaded statements, in any order
        mode: Day counting mode

    Returns:
        One CoverageResult per bucket, in bucket order

    Raises:
        InvalidRangeError: If a statement ends before it starts
    """
    mode = CoverageMode(mode)
    ordered = sorted(statements, key=lambda s: (s.start_date, s.end_date, s.id))
    for statement in ordered:
        _check_range(statement)

    results: List[CoverageResult] = []
    for bucket in buckets:
        covering = [s for s in ordered if _overlaps(s, bucket)]
        if not covering:
            results.append(
                CoverageResult(
                    bucket=bucket,
                    covered_days=0,
                    coverage_percent=0.0,
                    is_complete=False,
                )
            )
            continue

        if mode == CoverageMode.UNION:
            raw_days = _union_days(covering, bucket)
        else:
            raw_days = _summed_days(covering, bucket)

        coverage_percent = min(100.0, raw_days / bucket.total_days * 100)
        results.append(
            CoverageResult(
                bucket=bucket,
                covered_days=min(raw_days, bucket.total_days),
                coverage_percent=coverage_percent,
                is_complete=coverage_percent >= 100.0,
                covering_statement_ids=tuple(s.id for s in covering),
            )
        )

    return results


def overall_status(results: Sequence[CoverageResult]) -> CoverageStatus:
    """Count complete months across a coverage report."""
    covered_months = sum(1 for result in results if result.is_complete)
    total_months = len(results)
    return CoverageStatus(
        covered_months=covered_months,
        total_months=total_months,
        is_fully_complete=total_months > 0 and covered_months == total_months,
    )


def reconcile(
    period: RequiredPeriod,
    statements: Iterable[StatementRecord],
    mode: Union[CoverageMode, str] = CoverageMode.SUMMED,
) -> Tuple[List[CoverageResult], CoverageStatus]:
    """Run bucket construction, coverage and summary in one call.

    Args:
        period: Required period
        statements: Uploaded statements
        mode: Day counting mode

    Returns:
        Tuple of (per-month results, overall status)
    """
    buckets = build_month_buckets(period)
    results = compute_coverage(buckets, statements, mode)
    status = overall_status(results)

    LOGGER.debug(
        f"Reconciled coverage {period.start}..{period.end}: "
        f"{status.covered_months}/{status.total_months} months complete",
        extra={"mode": CoverageMode(mode).value},
    )
    return results, status
