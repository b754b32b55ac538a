"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors form the "Q" side of the CQRS-lite split: the posting and
    account services write, selectors only read.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/dtos.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: Selectors accept a Session from the caller but MUST NOT
      call session.add(), session.delete(), session.commit(), or session.flush().
    - DTO return convention: Selectors return frozen dataclasses, NOT raw ORM
      model instances.
    - Tenant scoping: every query filters on company_id.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 500


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _clamp_page(page: int, limit: int) -> tuple[int, int]:
        """Normalize 1-based page and page size; returns (page, limit)."""
        page = max(int(page), 1)
        limit = min(max(int(limit), 1), MAX_PAGE_SIZE)
        return page, limit
