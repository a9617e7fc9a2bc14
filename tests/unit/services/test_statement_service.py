"""Unit tests for the statement service."""

import re
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    ConfigurationError,
    DatabaseError,
    InstrumentNotFoundError,
    InvalidRangeError,
    OwnershipError,
    StatementNotFoundError,
    ValidationError,
)
from app.schemas.financial import InstrumentCreateRequest, InstrumentKind
from app.services.statement_service import StatementService, build_statement_key


@pytest.fixture
def claim_id():
    return uuid4()


@pytest.fixture
def instrument(claim_id):
    return SimpleNamespace(
        id=uuid4(),
        claim_id=claim_id,
        kind="bank_account",
        provider_name="Barclays",
        account_reference="12345678",
        last4="5678",
        created_at=datetime(2025, 7, 20, tzinfo=timezone.utc),
    )


def make_stored_statement(instrument, start, end, file_key="claims/financial/x/y/1-a.pdf"):
    return SimpleNamespace(
        id=uuid4(),
        instrument_id=instrument.id,
        instrument=instrument,
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        file_key=file_key,
        file_name="statement.pdf",
        content_type="application/pdf",
        uploaded_at=datetime(2025, 7, 21, tzinfo=timezone.utc),
    )


@pytest.fixture
def service(mock_storage_service, instrument):
    svc = StatementService(AsyncMock(), storage_service=mock_storage_service, bucket="claims")
    svc.instrument_repo = AsyncMock()
    svc.instrument_repo.get_by_id.return_value = instrument
    svc.statement_repo = AsyncMock()
    svc.statement_repo.list_for_instrument.return_value = []
    return svc


@pytest.fixture
def upload_file():
    return MagicMock(spec=UploadFile, filename="may-statement.pdf", content_type="application/pdf")


class TestBuildStatementKey:

    def test_key_layout(self):
        claim, inst = uuid4(), uuid4()
        key = build_statement_key(claim, inst, "May Statement.PDF")

        assert re.fullmatch(
            rf"claims/financial/{claim}/{inst}/\d+-[0-9a-f]{{32}}\.pdf", key
        )

    def test_missing_extension_defaults_to_pdf(self):
        assert build_statement_key(uuid4(), uuid4(), "statement").endswith(".pdf")


class TestUploadStatement:

    @pytest.mark.asyncio
    async def test_upload_success(self, service, mock_storage_service, claim_id, instrument, upload_file):
        stored = make_stored_statement(instrument, "2025-05-01", "2025-05-31")
        service.statement_repo.create_statement.return_value = stored

        result = await service.upload_statement(
            claim_id, instrument.id, upload_file, date(2025, 5, 1), date(2025, 5, 31)
        )

        assert result.id == stored.id
        assert result.start_date == date(2025, 5, 1)
        mock_storage_service.upload_file.assert_awaited_once()
        _, kwargs = mock_storage_service.upload_file.call_args
        assert kwargs["bucket"] == "claims"
        assert kwargs["path"].startswith(f"claims/financial/{claim_id}/{instrument.id}/")
        assert kwargs["path"].endswith(".pdf")

        _, create_kwargs = service.statement_repo.create_statement.call_args
        assert create_kwargs["file_key"] == kwargs["path"]
        assert create_kwargs["file_name"] == "may-statement.pdf"

    @pytest.mark.asyncio
    async def test_inverted_dates_rejected_before_upload(self, service, mock_storage_service, claim_id, instrument, upload_file):
        with pytest.raises(InvalidRangeError):
            await service.upload_statement(
                claim_id, instrument.id, upload_file, date(2025, 5, 31), date(2025, 5, 1)
            )

        mock_storage_service.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_day_statement_allowed(self, service, claim_id, instrument, upload_file):
        service.statement_repo.create_statement.return_value = make_stored_statement(
            instrument, "2025-05-01", "2025-05-01"
        )

        result = await service.upload_statement(
            claim_id, instrument.id, upload_file, date(2025, 5, 1), date(2025, 5, 1)
        )

        assert result.start_date == result.end_date

    @pytest.mark.asyncio
    async def test_unsupported_content_type(self, service, claim_id, instrument):
        spreadsheet = MagicMock(spec=UploadFile, filename="statement.xlsx", content_type="application/vnd.ms-excel")

        with pytest.raises(ValidationError, match="Invalid file type"):
            await service.upload_statement(
                claim_id, instrument.id, spreadsheet, date(2025, 5, 1), date(2025, 5, 31)
            )

    @pytest.mark.asyncio
    async def test_missing_file(self, service, claim_id, instrument):
        with pytest.raises(ValidationError, match="file is required"):
            await service.upload_statement(claim_id, instrument.id, None, date(2025, 5, 1), date(2025, 5, 31))

    @pytest.mark.asyncio
    async def test_unknown_instrument(self, service, mock_storage_service, claim_id, upload_file):
        service.instrument_repo.get_by_id.return_value = None

        with pytest.raises(InstrumentNotFoundError):
            await service.upload_statement(claim_id, uuid4(), upload_file, date(2025, 5, 1), date(2025, 5, 31))

        mock_storage_service.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_instrument_of_another_claim(self, service, instrument, upload_file):
        with pytest.raises(OwnershipError):
            await service.upload_statement(uuid4(), instrument.id, upload_file, date(2025, 5, 1), date(2025, 5, 31))

    @pytest.mark.asyncio
    async def test_database_failure_removes_uploaded_file(self, service, mock_storage_service, claim_id, instrument, upload_file):
        service.statement_repo.create_statement.side_effect = SQLAlchemyError("insert failed")

        with pytest.raises(DatabaseError):
            await service.upload_statement(
                claim_id, instrument.id, upload_file, date(2025, 5, 1), date(2025, 5, 31)
            )

        uploaded_path = mock_storage_service.upload_file.call_args.kwargs["path"]
        mock_storage_service.delete_file.assert_awaited_once_with("claims", uploaded_path)


class TestDeleteStatement:

    @pytest.mark.asyncio
    async def test_delete_removes_file_and_row(self, service, mock_storage_service, claim_id, instrument):
        stored = make_stored_statement(instrument, "2025-05-01", "2025-05-31", file_key="claims/financial/a/b/1-x.pdf")
        service.statement_repo.get_with_instrument.return_value = stored
        service.statement_repo.delete.return_value = True

        result = await service.delete_statement(claim_id, stored.id)

        assert result.id == stored.id
        mock_storage_service.delete_file.assert_awaited_once_with("claims", "claims/financial/a/b/1-x.pdf")
        service.statement_repo.delete.assert_awaited_once_with(stored.id)

    @pytest.mark.asyncio
    async def test_missing_statement(self, service, claim_id):
        service.statement_repo.get_with_instrument.return_value = None

        with pytest.raises(StatementNotFoundError):
            await service.delete_statement(claim_id, uuid4())

    @pytest.mark.asyncio
    async def test_statement_of_another_claim(self, service, mock_storage_service, instrument):
        service.statement_repo.get_with_instrument.return_value = make_stored_statement(
            instrument, "2025-05-01", "2025-05-31"
        )

        with pytest.raises(OwnershipError):
            await service.delete_statement(uuid4(), uuid4())

        mock_storage_service.delete_file.assert_not_awaited()


class TestInstruments:

    @pytest.mark.asyncio
    async def test_create_instrument(self, service, claim_id, instrument):
        service.instrument_repo.create_instrument.return_value = instrument

        result = await service.create_instrument(
            claim_id,
            InstrumentCreateRequest(kind=InstrumentKind.BANK_ACCOUNT, provider_name="Barclays", last4="5678"),
        )

        assert result.kind == InstrumentKind.BANK_ACCOUNT
        _, kwargs = service.instrument_repo.create_instrument.call_args
        assert kwargs["kind"] == "bank_account"
        assert kwargs["claim_id"] == claim_id

    @pytest.mark.asyncio
    async def test_list_instruments_by_kind(self, service, claim_id, instrument):
        service.instrument_repo.list_for_claim.return_value = [instrument]

        result = await service.list_instruments(claim_id, kind=InstrumentKind.CREDIT_CARD)

        assert len(result) == 1
        service.instrument_repo.list_for_claim.assert_awaited_once_with(claim_id, kind="credit_card")

    @pytest.mark.asyncio
    async def test_delete_instrument_removes_statement_files(self, service, mock_storage_service, claim_id, instrument):
        service.statement_repo.list_for_instrument.return_value = [
            make_stored_statement(instrument, "2025-04-01", "2025-04-30", file_key="a.pdf"),
            make_stored_statement(instrument, "2025-05-01", "2025-05-31", file_key="b.pdf"),
        ]

        await service.delete_instrument(claim_id, instrument.id)

        assert [c.args for c in mock_storage_service.delete_file.await_args_list] == [
            ("claims", "a.pdf"),
            ("claims", "b.pdf"),
        ]
        service.instrument_repo.delete.assert_awaited_once_with(instrument.id)


class TestDownloadUrl:

    @pytest.mark.asyncio
    async def test_signed_url(self, service, mock_storage_service, claim_id, instrument):
        stored = make_stored_statement(instrument, "2025-05-01", "2025-05-31", file_key="k.pdf")
        service.statement_repo.get_with_instrument.return_value = stored

        result = await service.get_download_url(claim_id, stored.id)

        assert result.download_url.startswith("https://test.supabase.co/")
        assert result.file_name == "statement.pdf"
        assert mock_storage_service.get_signed_url.call_args.args[:2] == ("claims", "k.pdf")


class TestCoverageReport:

    @pytest.mark.asyncio
    async def test_report_for_single_month(self, service, claim_id, instrument):
        may = make_stored_statement(instrument, "2025-05-01", "2025-05-31")
        service.statement_repo.list_for_instrument.return_value = [may]

        report = await service.get_coverage_report(claim_id, instrument.id, date(2025, 7, 15))

        assert report.required_period.start == date(2025, 4, 15)
        assert report.required_period.end == date(2025, 7, 15)
        assert [m.coverage_percent for m in report.months] == [0, 100, 0, 0]
        assert report.months[1].covering_statement_ids == [str(may.id)]
        assert report.status.covered_months == 1
        assert report.status.total_months == 4
        assert report.status.is_fully_complete is False
        assert report.mode == "summed"
        assert len(report.statements) == 1

    @pytest.mark.asyncio
    async def test_report_without_statements(self, service, claim_id, instrument):
        report = await service.get_coverage_report(claim_id, instrument.id, date(2025, 7, 15))

        assert all(m.coverage_percent == 0 and not m.is_complete for m in report.months)
        assert report.status.covered_months == 0

    @pytest.mark.asyncio
    async def test_union_mode_override(self, service, claim_id, instrument):
        service.statement_repo.list_for_instrument.return_value = [
            make_stored_statement(instrument, "2025-06-01", "2025-06-20"),
            make_stored_statement(instrument, "2025-06-01", "2025-06-20"),
        ]

        summed = await service.get_coverage_report(claim_id, instrument.id, date(2025, 6, 30))
        union = await service.get_coverage_report(claim_id, instrument.id, date(2025, 6, 30), mode="union")

        assert summed.months[-1].is_complete is True
        assert union.months[-1].covered_days == 20
        assert union.months[-1].is_complete is False
        assert union.mode == "union"

    @pytest.mark.asyncio
    async def test_unknown_mode(self, service, claim_id, instrument):
        with pytest.raises(ValidationError, match="Unknown coverage mode"):
            await service.get_coverage_report(claim_id, instrument.id, date(2025, 7, 15), mode="weighted")

    @pytest.mark.asyncio
    async def test_inverted_stored_statement_fails(self, service, claim_id, instrument):
        service.statement_repo.list_for_instrument.return_value = [
            make_stored_statement(instrument, "2025-06-20", "2025-06-10"),
        ]

        with pytest.raises(InvalidRangeError):
            await service.get_coverage_report(claim_id, instrument.id, date(2025, 7, 15))


def test_invalid_configured_mode(mock_storage_service):
    with pytest.raises(ConfigurationError):
        StatementService(AsyncMock(), storage_service=mock_storage_service, coverage_mode="weighted")
