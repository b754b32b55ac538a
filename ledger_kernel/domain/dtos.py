"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow through the posting
    pipeline: EntryInput (input), ValidationResult (validator output),
    PostedEntry and PostedTransaction (posting output), AccountInfo and
    Page (read side).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies, database access, and external services.
    from_model() class methods exist as boundary converters but are only
    invoked from the service and selector layers.

Invariants enforced:
    - EntryInput amounts are Decimal (floats converted through their string
      form by money_from_value before they get here).
    - PostedTransaction.entries preserves submission order.

Data flow:
    EntryInput -> ValidationResult -> PostedTransaction
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from math import ceil
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import UUID

from ledger_kernel.db.types import format_money

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel
    from ledger_kernel.models.journal import JournalTransaction as TransactionModel

T = TypeVar("T")


@dataclass(frozen=True)
class EntryInput:
    """
    One submitted (account, debit, credit) line, before validation.

    account_id is None when the caller omitted the account reference; the
    validator reports that as an invalid entry field.
    """

    account_id: UUID | None
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")


@dataclass(frozen=True)
class ValidationResult:
    """
    Totals computed by the posting validator for a valid entry set.

    entries holds the normalized entries (UUID account ids, Decimal amounts)
    in submission order; date is the parsed accounting date.
    """

    total_debits: Decimal
    total_credits: Decimal
    total_amount: Decimal
    entries: tuple[EntryInput, ...] = ()
    date: date | None = None


@dataclass(frozen=True)
class PostedEntry:
    account_id: UUID
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class PostedTransaction:
    """
    The persisted, immutable record of one posting.

    Returned by LedgerPostingService.post() and by the journal selector.
    """

    id: UUID
    company_id: UUID
    date: date
    reference: str
    description: str
    entries: tuple[PostedEntry, ...]
    total_amount: Decimal
    created_by: UUID
    is_active: bool
    posted_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, model: TransactionModel) -> PostedTransaction:
        return cls(
            id=model.id,
            company_id=model.company_id,
            date=model.transaction_date,
            reference=model.reference,
            description=model.description,
            entries=tuple(
                PostedEntry(
                    account_id=entry.account_id,
                    debit=entry.debit,
                    credit=entry.credit,
                )
                for entry in model.entries
            ),
            total_amount=model.total_amount,
            created_by=model.created_by_id,
            is_active=model.is_active,
            posted_at=model.posted_at,
            created_at=model.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation with camelCase keys and string amounts."""
        return {
            "id": str(self.id),
            "company": str(self.company_id),
            "date": self.date.isoformat(),
            "reference": self.reference,
            "description": self.description,
            "entries": [
                {
                    "account": str(e.account_id),
                    "debit": format_money(e.debit),
                    "credit": format_money(e.credit),
                }
                for e in self.entries
            ],
            "totalAmount": format_money(self.total_amount),
            "createdBy": str(self.created_by),
            "isActive": self.is_active,
            "postedAt": self.posted_at.isoformat() if self.posted_at else None,
        }


@dataclass(frozen=True)
class AccountInfo:
    """Read-side snapshot of an account."""

    id: UUID
    company_id: UUID
    name: str
    account_type: str
    group: str
    opening_balance: Decimal
    current_balance: Decimal
    is_active: bool

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            name=model.name,
            account_type=model.type_value,
            group=model.group,
            opening_balance=model.opening_balance,
            current_balance=model.current_balance,
            is_active=model.is_active,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "company": str(self.company_id),
            "name": self.name,
            "type": self.account_type,
            "group": self.group,
            "openingBalance": format_money(self.opening_balance),
            "currentBalance": format_money(self.current_balance),
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paginated listing."""

    items: tuple[T, ...]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": self.pages,
        }


@dataclass(frozen=True)
class BalanceCheck:
    """
    Result of recomputing one account's balance from its posted entries.

    expected = opening_balance + sum of deltas; drift = current - expected.
    """

    account_id: UUID
    name: str
    opening_balance: Decimal
    current_balance: Decimal
    expected_balance: Decimal
    entry_count: int = 0

    @property
    def drift(self) -> Decimal:
        return self.current_balance - self.expected_balance

    @property
    def is_consistent(self) -> bool:
        return self.drift == 0


@dataclass(frozen=True)
class BalanceReport:
    """Balance checks for every account of one company."""

    company_id: UUID
    checks: tuple[BalanceCheck, ...] = field(default_factory=tuple)

    @property
    def inconsistent(self) -> tuple[BalanceCheck, ...]:
        return tuple(c for c in self.checks if not c.is_consistent)

    @property
    def is_consistent(self) -> bool:
        return not self.inconsistent
