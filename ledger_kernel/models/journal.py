"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal transactions and their entries --
    the immutable record of every posting.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Balance: sum(debit) == sum(credit), checked by the posting validator
      before any row is written; is_balanced is a read-side convenience.
    - Immutability: ORM listeners in db/immutability.py block UPDATE and
      DELETE of transactions and entries once written.
    - Ordering: line_seq preserves the order entries were submitted in.

Failure modes:
    - ImmutabilityViolationError on UPDATE/DELETE of a transaction or entry.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class JournalTransaction(TrackedBase):
    """
    Journal entry header -- one balanced, posted set of entries.

    Contract:
        Created exactly once, together with the balance updates it causes,
        inside a single unit of work.  There is no draft state: a row either
        does not exist or is posted and immutable.

    Non-goals:
        - No reversal or void; is_active exists for soft-delete filtering
          but the posting engine only ever writes True.
    """

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transaction_company_date", "company_id", "date"),
        Index("idx_transaction_company_reference", "company_id", "reference"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # Accounting date
    transaction_date: Mapped[date] = mapped_column(
        "date",
        Date,
        nullable=False,
    )

    # Free text, not unique
    reference: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(4000),
        nullable=False,
    )

    # max(sum of debits, sum of credits) at posting time
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    created_by_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    posted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    entries: Mapped[list["TransactionEntry"]] = relationship(
        back_populates="transaction",
        order_by="TransactionEntry.line_seq",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<JournalTransaction {self.id} ref={self.reference!r} total={self.total_amount}>"

    @property
    def total_debits(self) -> Decimal:
        return sum((e.debit for e in self.entries), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((e.credit for e in self.entries), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        """Read-side check that debits equal credits."""
        return self.total_debits == self.total_credits


class TransactionEntry(TrackedBase):
    """
    One (account, debit, credit) line embedded in a JournalTransaction.

    Contract:
        Entries are only reachable through their parent transaction.  Both
        debit and credit are >= 0; either may be zero.
    """

    __tablename__ = "transaction_entries"

    __table_args__ = (
        Index("idx_entry_transaction", "transaction_id"),
        Index("idx_entry_account", "account_id"),
    )

    transaction_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("transactions.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    # Submission order within the transaction
    line_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    transaction: Mapped["JournalTransaction"] = relationship(
        back_populates="entries",
    )

    account: Mapped["Account"] = relationship()

    def __repr__(self) -> str:
        return f"<TransactionEntry account={self.account_id} dr={self.debit} cr={self.credit}>"
