"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to posted transactions and their
    entries.  Converts ORM models to frozen PostedTransaction DTOs.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only: No mutations performed on any queried data.
    - Only active transactions are listed.
    - Ordering: newest accounting date first, then newest created first.
    - Entries inside each DTO keep their submission order (line_seq).

Failure modes:
    - Returns None or an empty page when nothing matches (never raises
      on absence of data).
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.domain.dtos import Page, PostedTransaction
from ledger_kernel.models.journal import JournalTransaction
from ledger_kernel.selectors.base import DEFAULT_PAGE_SIZE, BaseSelector


class JournalSelector(BaseSelector[JournalTransaction]):
    """
    Selector for transaction listings.

    Non-goals:
        - Does NOT compute balances; use LedgerSelector for that.
    """

    def list_transactions(
        self,
        company_id: UUID,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        on_date: date | None = None,
    ) -> Page[PostedTransaction]:
        """
        One page of the company's active transactions.

        Args:
            company_id: Tenant to list.
            page: 1-based page number.
            limit: Page size (clamped to 1..500).
            on_date: Restrict to transactions dated exactly this day.
        """
        page, limit = self._clamp_page(page, limit)

        conditions = [
            JournalTransaction.company_id == company_id,
            JournalTransaction.is_active.is_(True),
        ]
        if on_date is not None:
            conditions.append(JournalTransaction.transaction_date == on_date)

        total = self.session.execute(
            select(func.count()).select_from(JournalTransaction).where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(JournalTransaction)
            .where(*conditions)
            .order_by(
                JournalTransaction.transaction_date.desc(),
                JournalTransaction.created_at.desc(),
                JournalTransaction.posted_at.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()

        return Page(
            items=tuple(PostedTransaction.from_model(t) for t in rows),
            page=page,
            limit=limit,
            total=total,
        )

    def get(self, company_id: UUID, transaction_id: UUID) -> PostedTransaction | None:
        transaction = self.session.execute(
            select(JournalTransaction).where(
                JournalTransaction.id == transaction_id,
                JournalTransaction.company_id == company_id,
            )
        ).scalar_one_or_none()
        if transaction is None:
            return None
        return PostedTransaction.from_model(transaction)
