"""Repository for bank accounts and credit cards attached to a claim."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import FinancialInstrument
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class InstrumentRepository(BaseRepository[FinancialInstrument]):
    """Repository for managing FinancialInstrument records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, FinancialInstrument)

    async def create_instrument(
        self,
        claim_id: UUID,
        kind: str,
        provider_name: Optional[str] = None,
        account_reference: Optional[str] = None,
        last4: Optional[str] = None,
    ) -> FinancialInstrument:
        """Create a bank account or credit card for a claim.

        Args:
            claim_id: Owning claim
            kind: bank_account or credit_card
            provider_name: Bank or card issuer name
            account_reference: Account or card number as entered
            last4: Last four digits shown in listings

        Returns:
            Created FinancialInstrument record
        """
        instrument = await self.create(
            claim_id=claim_id,
            kind=kind,
            provider_name=provider_name,
            account_reference=account_reference,
            last4=last4,
        )
        LOGGER.info(
            f"Financial instrument created: instrument_id={instrument.id}, kind={kind}",
            extra={"claim_id": str(claim_id)},
        )
        return instrument

    async def list_for_claim(
        self,
        claim_id: UUID,
        kind: Optional[str] = None,
    ) -> List[FinancialInstrument]:
        """List a claim's instruments, oldest first.

        Args:
            claim_id: Owning claim
            kind: Optional filter on bank_account or credit_card
        """
        filters = {"claim_id": claim_id}
        if kind:
            filters["kind"] = kind
        return await self.get_all(
            filters=filters,
            order_by=[FinancialInstrument.created_at.asc()],
        )
