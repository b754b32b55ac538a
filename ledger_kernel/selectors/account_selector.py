"""
Module: ledger_kernel.selectors.account_selector
Responsibility: Read-only access to the chart of accounts of one company.
Architecture position: Kernel > Selectors.

Failure modes:
    - get() returns None for an unknown account or one owned by another
      company; it never raises on absence.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.models.account import Account
from ledger_kernel.selectors.base import BaseSelector


class AccountSelector(BaseSelector[Account]):
    """Queries over accounts, always scoped by company."""

    def list_active(self, company_id: UUID) -> list[AccountInfo]:
        """Active accounts of the company, sorted by name."""
        rows = self.session.execute(
            select(Account)
            .where(Account.company_id == company_id, Account.is_active.is_(True))
            .order_by(Account.name)
        ).scalars()
        return [AccountInfo.from_model(a) for a in rows]

    def list_all(self, company_id: UUID) -> list[AccountInfo]:
        """Every account of the company, including deactivated ones."""
        rows = self.session.execute(
            select(Account)
            .where(Account.company_id == company_id)
            .order_by(Account.name)
        ).scalars()
        return [AccountInfo.from_model(a) for a in rows]

    def get(self, company_id: UUID, account_id: UUID) -> AccountInfo | None:
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.company_id == company_id,
            )
        ).scalar_one_or_none()
        return AccountInfo.from_model(account) if account is not None else None

    def get_by_name(self, company_id: UUID, name: str) -> AccountInfo | None:
        account = self.session.execute(
            select(Account).where(
                Account.company_id == company_id,
                Account.name == name.strip(),
            )
        ).scalar_one_or_none()
        return AccountInfo.from_model(account) if account is not None else None
