"""Request and response schemas for the claim financial step."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.services.coverage.models import (
    CoverageResult,
    CoverageStatus,
    RequiredPeriod,
    StatementRecord,
)


class InstrumentKind(str, Enum):
    """Financial instruments whose statements are reconciled."""
    BANK_ACCOUNT = "bank_account"
    CREDIT_CARD = "credit_card"


class InstrumentCreateRequest(BaseModel):
    """Payload for adding a bank account or credit card to a claim."""

    kind: InstrumentKind = Field(..., description="bank_account or credit_card")
    provider_name: Optional[str] = Field(None, description="Bank or card issuer name")
    account_reference: Optional[str] = Field(None, description="Account or card number")
    last4: Optional[str] = Field(
        None,
        min_length=4,
        max_length=4,
        pattern=r"^\d{4}$",
        description="Last four digits",
    )


class InstrumentResponse(BaseModel):
    """Stored bank account or credit card."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    claim_id: UUID
    kind: InstrumentKind
    provider_name: Optional[str] = None
    account_reference: Optional[str] = None
    last4: Optional[str] = None
    created_at: Optional[datetime] = None


class StatementResponse(BaseModel):
    """Stored statement metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    instrument_id: UUID
    start_date: date
    end_date: date
    file_key: str
    file_name: str
    content_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    def to_record(self) -> StatementRecord:
        """Convert to the reconciler's value object."""
        return StatementRecord(
            id=str(self.id),
            start_date=self.start_date,
            end_date=self.end_date,
            file_ref=self.file_key,
            file_name=self.file_name,
            uploaded_at=self.uploaded_at,
        )


class MonthBucketResponse(BaseModel):
    month: int
    year: int
    start_date: date
    end_date: date
    total_days: int


class MonthCoverageResponse(BaseModel):
    """Coverage of one month of the required period."""

    bucket: MonthBucketResponse
    covered_days: int
    coverage_percent: float
    is_complete: bool
    covering_statement_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: CoverageResult) -> "MonthCoverageResponse":
        return cls(**result.to_dict())


class CoverageStatusResponse(BaseModel):
    covered_months: int
    total_months: int
    is_fully_complete: bool

    @classmethod
    def from_status(cls, status: CoverageStatus) -> "CoverageStatusResponse":
        return cls(**status.to_dict())


class RequiredPeriodResponse(BaseModel):
    start: date
    end: date

    @classmethod
    def from_period(cls, period: RequiredPeriod) -> "RequiredPeriodResponse":
        return cls(start=period.start, end=period.end)


class CoverageReportResponse(BaseModel):
    """Per-month coverage of an instrument's statements over the required period."""

    instrument_id: UUID
    accident_date: date
    mode: str
    required_period: RequiredPeriodResponse
    months: List[MonthCoverageResponse]
    status: CoverageStatusResponse
    statements: List[StatementResponse]


class StatementDownloadResponse(BaseModel):
    """Signed download link for a statement file."""

    statement_id: UUID
    file_name: str
    download_url: str
    expires_in: int
