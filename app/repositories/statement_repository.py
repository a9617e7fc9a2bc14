"""Repository for uploaded statements."""

from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database.models import Statement
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StatementRepository(BaseRepository[Statement]):
    """Repository for managing Statement records.

    Statements are immutable once created; they are only added or removed.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, Statement)

    async def create_statement(
        self,
        instrument_id: UUID,
        start_date: date,
        end_date: date,
        file_key: str,
        file_name: str,
        content_type: Optional[str] = None,
    ) -> Statement:
        """Record an uploaded statement.

        Args:
            instrument_id: Bank account or credit card the statement belongs to
            start_date: First day covered
            end_date: Last day covered
            file_key: Storage path of the uploaded file
            file_name: Original file name
            content_type: MIME type of the file

        Returns:
            Created Statement record
        """
        return await self.create(
            instrument_id=instrument_id,
            start_date=start_date,
            end_date=end_date,
            file_key=file_key,
            file_name=file_name,
            content_type=content_type,
            uploaded_at=datetime.now(timezone.utc),
        )

    async def list_for_instrument(self, instrument_id: UUID) -> List[Statement]:
        """List an instrument's statements ordered by start date."""
        return await self.get_all(
            filters={"instrument_id": instrument_id},
            order_by=[Statement.start_date.asc(), Statement.uploaded_at.asc()],
        )

    async def get_with_instrument(self, statement_id: UUID) -> Optional[Statement]:
        """Get a statement together with its owning instrument.

        Args:
            statement_id: Statement ID

        Returns:
            Statement with ``instrument`` loaded, or None
        """
        try:
            query = (
                select(Statement)
                .options(selectinload(Statement.instrument))
                .where(Statement.id == statement_id)
            )
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error retrieving statement {statement_id}: {str(e)}",
                exc_info=True
            )
            raise
