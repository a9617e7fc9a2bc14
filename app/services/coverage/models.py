"""Data models for statement coverage reconciliation.

These are plain value objects shared by bank accounts and credit cards.
None of them are persisted; coverage is always recomputed from the current
statement list and required period.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class CoverageMode(str, Enum):
    """How covered days are counted inside a month bucket."""
    SUMMED = "summed"  # per-statement overlaps added, then clamped
    UNION = "union"  # distinct days covered by at least one statement


@dataclass(frozen=True)
class RequiredPeriod:
    """Date window statements must evidence, both ends inclusive.

    Attributes:
        start: First required day
        end: Last required day (normally the accident date)
    """

    start: date
    end: date

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class StatementRecord:
    """One uploaded statement as seen by the reconciler.

    Attributes:
        id: Statement identifier
        start_date: First day the statement declares to cover
        end_date: Last day the statement declares to cover
        file_ref: Storage key of the uploaded file
        file_name: Original file name
        uploaded_at: Upload timestamp
    """

    id: str
    start_date: date
    end_date: date
    file_ref: str = ""
    file_name: str = ""
    uploaded_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "file_ref": self.file_ref,
            "file_name": self.file_name,
            "uploaded_at": self.uploaded_at.isoformat() if self.uploaded_at else None,
        }


@dataclass(frozen=True)
class MonthBucket:
    """Calendar month segment of a required period, clipped to its bounds."""

    month: int
    year: int
    start_date: date
    end_date: date
    total_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "year": self.year,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_days": self.total_days,
        }


@dataclass(frozen=True)
class CoverageResult:
    """Coverage of a single month bucket.

    Attributes:
        bucket: The month bucket being reported
        covered_days: Covered day count, never above bucket.total_days
        coverage_percent: Covered share of the bucket, 0-100
        is_complete: True when every day of the bucket is covered
        covering_statement_ids: Statements overlapping the bucket, by start date
    """

    bucket: MonthBucket
    covered_days: int
    coverage_percent: float
    is_complete: bool
    covering_statement_ids: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bucket": self.bucket.to_dict(),
            "covered_days": self.covered_days,
            "coverage_percent": self.coverage_percent,
            "is_complete": self.is_complete,
            "covering_statement_ids": list(self.covering_statement_ids),
        }


@dataclass(frozen=True)
class CoverageStatus:
    """Summary across all buckets of a required period."""

    covered_months: int
    total_months: int
    is_fully_complete: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "covered_months": self.covered_months,
            "total_months": self.total_months,
            "is_fully_complete": self.is_fully_complete,
        }
