"""SQLAlchemy models for claim financial instruments and their statements."""

import uuid
from datetime import date, datetime

from sqlalchemy import TIMESTAMP, Date, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base import Base


class FinancialInstrument(Base):
    """Bank account or credit card declared on a claim's financial step."""

    __tablename__ = "financial_instruments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    claim_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(
        String, nullable=False
    )  # bank_account | credit_card
    provider_name: Mapped[str | None] = mapped_column(String, nullable=True)
    account_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    last4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=False
    )

    # Relationships
    statements: Mapped[list["Statement"]] = relationship(
        "Statement",
        back_populates="instrument",
        cascade="all, delete-orphan",
        order_by="Statement.start_date",
    )


class Statement(Base):
    """Uploaded statement file with the date range it declares to cover."""

    __tablename__ = "financial_statements"
    __table_args__ = (
        Index("ix_financial_statements_instrument_start", "instrument_id", "start_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    instrument_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("financial_instruments.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    file_key: Mapped[str] = mapped_column(String, nullable=False)
    file_name: Mapped[str] = mapped_column(String, nullable=False)
    content_type: Mapped[str | None] = mapped_column(String, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=False
    )

    # Relationships
    instrument: Mapped["FinancialInstrument"] = relationship(
        "FinancialInstrument", back_populates="statements"
    )
