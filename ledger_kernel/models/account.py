"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the ledgers every
    journal entry posts against.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (company_id, name) is unique (uq_account_company_name).
    - current_balance == opening_balance + sum of every posted delta.  Only
      LedgerPostingService writes current_balance (guarded by
      db/immutability.py).
    - version increments on every UPDATE; a stale write raises StaleDataError
      instead of silently overwriting a concurrent balance change.

Failure modes:
    - IntegrityError on duplicate (company_id, name); surfaced by
      AccountService as AccountAlreadyExistsError.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"


class Account(TrackedBase):
    """
    A named ledger with a type and a running balance, owned by one company.

    Contract:
        Accounts are never deleted, only deactivated (is_active=False).
        Every read and write is scoped by company_id.

    Non-goals:
        - No negative-balance constraint; overdrawn balances are allowed.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_account_company_name"),
        Index("idx_account_company_type", "company_id", "account_type"),
        Index("idx_account_company_active", "company_id", "is_active"),
    )

    # Owning company (tenant)
    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Drives the debit/credit sign convention
    account_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    # Free-text classification label, e.g. "Current Assets"
    group: Mapped[str] = mapped_column(
        "account_group",
        String(255),
        nullable=False,
    )

    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Optimistic version counter
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Account {self.name} ({self.account_type}) balance={self.current_balance}>"

    @property
    def type_value(self) -> str:
        """Account type as its plain string value."""
        if isinstance(self.account_type, AccountType):
            return self.account_type.value
        return str(self.account_type)
