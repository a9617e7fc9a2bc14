"""Statement service for the financial step of a claim.

Owns bank accounts, credit cards and their uploaded statements, and re-runs
the coverage reconciliation against the stored statements on request.
"""

import secrets
import time
from datetime import date
from typing import Any, List, Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    AppError,
    ConfigurationError,
    InstrumentNotFoundError,
    InvalidRangeError,
    OwnershipError,
    StatementNotFoundError,
    ValidationError,
)
from app.database.models import FinancialInstrument, Statement
from app.repositories.instrument_repository import InstrumentRepository
from app.repositories.statement_repository import StatementRepository
from app.schemas.financial import (
    CoverageReportResponse,
    CoverageStatusResponse,
    InstrumentCreateRequest,
    InstrumentKind,
    InstrumentResponse,
    MonthCoverageResponse,
    RequiredPeriodResponse,
    StatementDownloadResponse,
    StatementResponse,
)
from app.services.base_service import BaseService
from app.services.coverage import CoverageMode, reconcile, required_period_for
from app.services.storage_service import StorageService
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def build_statement_key(claim_id: UUID, instrument_id: UUID, file_name: str) -> str:
    """Storage path for a new statement file.

    Format: ``claims/financial/{claim}/{instrument}/{epoch_ms}-{hex}.{ext}``
    """
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "pdf"
    timestamp = int(time.time() * 1000)
    return f"claims/financial/{claim_id}/{instrument_id}/{timestamp}-{secrets.token_hex(16)}.{extension}"


class StatementService(BaseService):
    """Service for statement uploads and coverage reporting.

    Bank accounts and credit cards share one code path; the instrument kind
    only matters for listing.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage_service: Optional[StorageService] = None,
        bucket: Optional[str] = None,
        coverage_mode: Optional[str] = None,
        required_months: Optional[int] = None,
    ):
        """Initialize statement service.

        Args:
            session: Database session
            storage_service: File storage client, defaults to Supabase storage
            bucket: Bucket holding statement files
            coverage_mode: Default coverage counting mode
            required_months: Length of the required period in months
        """
        super().__init__()
        self.session = session
        self.instrument_repo = InstrumentRepository(session)
        self.statement_repo = StatementRepository(session)
        self.repository = self.statement_repo
        self.storage_service = storage_service or StorageService()
        self.bucket = bucket or settings.statements_bucket
        self.required_months = (
            required_months if required_months is not None else settings.required_period_months
        )
        try:
            self.coverage_mode = CoverageMode(coverage_mode or settings.coverage_mode)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown coverage mode: {coverage_mode or settings.coverage_mode}",
                original_error=e,
            )

    def validate(self, *args, **kwargs):
        """Reject malformed uploads and report requests before touching storage."""
        action = kwargs.get("action")

        if action == "upload_statement":
            file = kwargs.get("file")
            if file is None or not getattr(file, "filename", None):
                raise ValidationError("A statement file is required")

            start_date = kwargs.get("start_date")
            end_date = kwargs.get("end_date")
            if start_date is None or end_date is None:
                raise ValidationError("Statement start and end dates are required")
            if start_date > end_date:
                raise InvalidRangeError(
                    f"Statement end date {end_date} is before start date {start_date}"
                )

            content_type = getattr(file, "content_type", None)
            if content_type not in settings.allowed_statement_content_types:
                raise ValidationError(
                    f"Invalid file type {content_type}. Only PDF and image files are allowed."
                )

        elif action == "get_coverage_report":
            if kwargs.get("accident_date") is None:
                raise ValidationError("Accident date is required")
            mode = kwargs.get("mode")
            if mode is not None and mode not in {m.value for m in CoverageMode}:
                raise ValidationError(f"Unknown coverage mode: {mode}")

    async def run(self, *args, **kwargs) -> Any:
        """Route to appropriate handler based on action."""
        action = kwargs.pop("action", None)
        handlers = {
            "list_instruments": self._list_instruments_logic,
            "create_instrument": self._create_instrument_logic,
            "delete_instrument": self._delete_instrument_logic,
            "list_statements": self._list_statements_logic,
            "upload_statement": self._upload_statement_logic,
            "delete_statement": self._delete_statement_logic,
            "get_download_url": self._get_download_url_logic,
            "get_coverage_report": self._get_coverage_report_logic,
        }
        handler = handlers.get(action)
        if handler is None:
            raise AppError(f"Unknown action: {action}")
        return await handler(**kwargs)

    # Public API

    async def list_instruments(
        self, claim_id: UUID, kind: Optional[InstrumentKind] = None
    ) -> List[InstrumentResponse]:
        return await self.execute(action="list_instruments", claim_id=claim_id, kind=kind)

    async def create_instrument(
        self, claim_id: UUID, payload: InstrumentCreateRequest
    ) -> InstrumentResponse:
        return await self.execute(action="create_instrument", claim_id=claim_id, payload=payload)

    async def delete_instrument(self, claim_id: UUID, instrument_id: UUID) -> None:
        """Delete an instrument, its statements and their stored files."""
        return await self.execute(
            action="delete_instrument", claim_id=claim_id, instrument_id=instrument_id
        )

    async def list_statements(self, claim_id: UUID, instrument_id: UUID) -> List[StatementResponse]:
        return await self.execute(
            action="list_statements", claim_id=claim_id, instrument_id=instrument_id
        )

    async def upload_statement(
        self,
        claim_id: UUID,
        instrument_id: UUID,
        file: UploadFile,
        start_date: date,
        end_date: date,
    ) -> StatementResponse:
        """Store a statement file and record the period it covers.

        Args:
            claim_id: Claim from the request path
            instrument_id: Bank account or credit card receiving the statement
            file: Uploaded PDF or image
            start_date: First day the statement covers
            end_date: Last day the statement covers

        Returns:
            The stored statement

        Raises:
            ValidationError: Missing file, bad dates or unsupported file type
            InstrumentNotFoundError: Unknown instrument
            OwnershipError: Instrument belongs to another claim
            StorageError: File storage rejected the upload
        """
        return await self.execute(
            action="upload_statement",
            claim_id=claim_id,
            instrument_id=instrument_id,
            file=file,
            start_date=start_date,
            end_date=end_date,
        )

    async def delete_statement(self, claim_id: UUID, statement_id: UUID) -> StatementResponse:
        return await self.execute(
            action="delete_statement", claim_id=claim_id, statement_id=statement_id
        )

    async def get_download_url(self, claim_id: UUID, statement_id: UUID) -> StatementDownloadResponse:
        return await self.execute(
            action="get_download_url", claim_id=claim_id, statement_id=statement_id
        )

    async def get_coverage_report(
        self,
        claim_id: UUID,
        instrument_id: UUID,
        accident_date: date,
        mode: Optional[str] = None,
    ) -> CoverageReportResponse:
        """Reconcile an instrument's current statements against the required period.

        Args:
            claim_id: Claim from the request path
            instrument_id: Bank account or credit card
            accident_date: Accident date ending the required period
            mode: Optional override of the configured coverage mode

        Returns:
            Per-month coverage, overall status and the statements used
        """
        return await self.execute(
            action="get_coverage_report",
            claim_id=claim_id,
            instrument_id=instrument_id,
            accident_date=accident_date,
            mode=mode,
        )

    # Lookups

    async def _get_owned_instrument(self, claim_id: UUID, instrument_id: UUID) -> FinancialInstrument:
        instrument = await self.instrument_repo.get_by_id(instrument_id)
        if instrument is None:
            raise InstrumentNotFoundError(f"Financial instrument {instrument_id} not found")
        if instrument.claim_id != claim_id:
            raise OwnershipError(f"Financial instrument {instrument_id} does not belong to claim {claim_id}")
        return instrument

    async def _get_owned_statement(self, claim_id: UUID, statement_id: UUID) -> Statement:
        statement = await self.statement_repo.get_with_instrument(statement_id)
        if statement is None:
            raise StatementNotFoundError(f"Statement {statement_id} not found")
        if statement.instrument.claim_id != claim_id:
            raise OwnershipError(f"Statement {statement_id} does not belong to claim {claim_id}")
        return statement

    # Handlers

    async def _list_instruments_logic(
        self, claim_id: UUID, kind: Optional[InstrumentKind] = None
    ) -> List[InstrumentResponse]:
        kind_value = InstrumentKind(kind).value if kind else None
        instruments = await self.instrument_repo.list_for_claim(claim_id, kind=kind_value)
        return [InstrumentResponse.model_validate(instrument) for instrument in instruments]

    async def _create_instrument_logic(
        self, claim_id: UUID, payload: InstrumentCreateRequest
    ) -> InstrumentResponse:
        instrument = await self.instrument_repo.create_instrument(
            claim_id=claim_id,
            kind=payload.kind.value,
            provider_name=payload.provider_name,
            account_reference=payload.account_reference,
            last4=payload.last4,
        )
        return InstrumentResponse.model_validate(instrument)

    async def _delete_instrument_logic(self, claim_id: UUID, instrument_id: UUID) -> None:
        await self._get_owned_instrument(claim_id, instrument_id)
        statements = await self.statement_repo.list_for_instrument(instrument_id)
        for statement in statements:
            await self.storage_service.delete_file(self.bucket, statement.file_key)

        await self.instrument_repo.delete(instrument_id)
        LOGGER.info(
            f"Financial instrument deleted: instrument_id={instrument_id}, "
            f"statements_removed={len(statements)}",
            extra={"claim_id": str(claim_id)},
        )

    async def _list_statements_logic(self, claim_id: UUID, instrument_id: UUID) -> List[StatementResponse]:
        await self._get_owned_instrument(claim_id, instrument_id)
        statements = await self.statement_repo.list_for_instrument(instrument_id)
        return [StatementResponse.model_validate(statement) for statement in statements]

    async def _upload_statement_logic(
        self,
        claim_id: UUID,
        instrument_id: UUID,
        file: UploadFile,
        start_date: date,
        end_date: date,
    ) -> StatementResponse:
        await self._get_owned_instrument(claim_id, instrument_id)

        file_key = build_statement_key(claim_id, instrument_id, file.filename)
        await self.storage_service.upload_file(
            file, bucket=self.bucket, path=file_key, content_type=file.content_type
        )

        try:
            statement = await self.statement_repo.create_statement(
                instrument_id=instrument_id,
                start_date=start_date,
                end_date=end_date,
                file_key=file_key,
                file_name=file.filename,
                content_type=file.content_type,
            )
        except SQLAlchemyError:
            # Do not leave an unreferenced file behind
            await self.storage_service.delete_file(self.bucket, file_key)
            raise

        LOGGER.info(
            f"Statement uploaded: statement_id={statement.id}, "
            f"period={start_date}..{end_date}, path={file_key}",
            extra={"claim_id": str(claim_id), "instrument_id": str(instrument_id)},
        )
        return StatementResponse.model_validate(statement)

    async def _delete_statement_logic(self, claim_id: UUID, statement_id: UUID) -> StatementResponse:
        statement = await self._get_owned_statement(claim_id, statement_id)
        deleted = StatementResponse.model_validate(statement)

        await self.storage_service.delete_file(self.bucket, statement.file_key)
        await self.statement_repo.delete(statement_id)

        LOGGER.info(
            f"Statement deleted: statement_id={statement_id}",
            extra={"claim_id": str(claim_id), "instrument_id": str(deleted.instrument_id)},
        )
        return deleted

    async def _get_download_url_logic(self, claim_id: UUID, statement_id: UUID) -> StatementDownloadResponse:
        statement = await self._get_owned_statement(claim_id, statement_id)
        expires_in = settings.signed_url_expires_in
        download_url = await self.storage_service.get_signed_url(
            self.bucket, statement.file_key, expires_in=expires_in
        )
        return StatementDownloadResponse(
            statement_id=statement.id,
            file_name=statement.file_name,
            download_url=download_url,
            expires_in=expires_in,
        )

    async def _get_coverage_report_logic(
        self,
        claim_id: UUID,
        instrument_id: UUID,
        accident_date: date,
        mode: Optional[str] = None,
    ) -> CoverageReportResponse:
        await self._get_owned_instrument(claim_id, instrument_id)
        statements = [
            StatementResponse.model_validate(statement)
            for statement in await self.statement_repo.list_for_instrument(instrument_id)
        ]

        coverage_mode = CoverageMode(mode) if mode else self.coverage_mode
        period = required_period_for(accident_date, self.required_months)
        results, status = reconcile(
            period, [statement.to_record() for statement in statements], coverage_mode
        )

        return CoverageReportResponse(
            instrument_id=instrument_id,
            accident_date=accident_date,
            mode=coverage_mode.value,
            required_period=RequiredPeriodResponse.from_period(period),
            months=[MonthCoverageResponse.from_result(result) for result in results],
            status=CoverageStatusResponse.from_status(status),
            statements=statements,
        )
