"""Unit tests for statement and instrument repositories."""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from app.database.models import FinancialInstrument, Statement
from app.repositories.instrument_repository import InstrumentRepository
from app.repositories.statement_repository import StatementRepository


@pytest.fixture
def session():
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    return session


def scalars_result(rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    result.scalar_one_or_none.return_value = rows[0] if rows else None
    return result


class TestStatementRepository:

    @pytest.mark.asyncio
    async def test_create_statement(self, session):
        repo = StatementRepository(session)
        instrument_id = uuid4()

        statement = await repo.create_statement(
            instrument_id=instrument_id,
            start_date=date(2025, 5, 1),
            end_date=date(2025, 5, 31),
            file_key="claims/financial/c/i/1-a.pdf",
            file_name="may.pdf",
            content_type="application/pdf",
        )

        assert isinstance(statement, Statement)
        assert statement.instrument_id == instrument_id
        assert statement.uploaded_at is not None
        session.add.assert_called_once_with(statement)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_rolls_back_on_error(self, session):
        session.flush.side_effect = SQLAlchemyError("constraint violated")
        repo = StatementRepository(session)

        with pytest.raises(SQLAlchemyError):
            await repo.create_statement(
                instrument_id=uuid4(),
                start_date=date(2025, 5, 1),
                end_date=date(2025, 5, 31),
                file_key="k",
                file_name="f.pdf",
            )

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_for_instrument(self, session):
        rows = [MagicMock(spec=Statement), MagicMock(spec=Statement)]
        session.execute.return_value = scalars_result(rows)
        repo = StatementRepository(session)

        result = await repo.list_for_instrument(uuid4())

        assert result == rows
        query = session.execute.call_args.args[0]
        assert "ORDER BY financial_statements.start_date ASC" in str(query)

    @pytest.mark.asyncio
    async def test_delete_missing_statement(self, session):
        session.execute.return_value = scalars_result([])
        repo = StatementRepository(session)

        assert await repo.delete(uuid4()) is False
        session.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_statement(self, session):
        row = MagicMock(spec=Statement)
        session.execute.return_value = scalars_result([row])
        repo = StatementRepository(session)

        assert await repo.delete(uuid4()) is True
        session.delete.assert_awaited_once_with(row)
        session.commit.assert_awaited_once()


class TestInstrumentRepository:

    @pytest.mark.asyncio
    async def test_list_for_claim_filters_kind(self, session):
        session.execute.return_value = scalars_result([])
        repo = InstrumentRepository(session)

        await repo.list_for_claim(uuid4(), kind="credit_card")

        sql = str(session.execute.call_args.args[0])
        assert "financial_instruments.claim_id" in sql
        assert "financial_instruments.kind" in sql

    @pytest.mark.asyncio
    async def test_create_instrument(self, session):
        repo = InstrumentRepository(session)
        claim_id = uuid4()

        instrument = await repo.create_instrument(claim_id=claim_id, kind="bank_account", last4="1234")

        assert isinstance(instrument, FinancialInstrument)
        assert instrument.claim_id == claim_id
        assert instrument.kind == "bank_account"
