"""Repository layer modules."""

from app.repositories.instrument_repository import InstrumentRepository
from app.repositories.statement_repository import StatementRepository

__all__ = [
    "InstrumentRepository",
    "StatementRepository",
]
