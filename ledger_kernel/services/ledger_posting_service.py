"""
LedgerPostingService -- the double-entry posting engine.

Responsibility:
    Accepts a balanced set of debit/credit entries, persists it as one
    immutable transaction record and applies each entry's balance delta to
    its account, all inside a single unit of work.

Architecture position:
    Kernel > Services.  Owns its unit of work (begin / commit / rollback);
    the only writer of Account.current_balance.

Posting sequence:
    1. validate()                      -- pure, no storage touched on failure
    2. unit_of_work.begin()
    3. insert + flush JournalTransaction
    4. for each entry, in submission order:
           SELECT account ... WHERE id = ? AND company_id = ? FOR UPDATE
           missing / other company -> AccountNotFoundError
           inactive                -> AccountInactiveError
           current_balance += delta(type, debit, credit); flush
    5. unit_of_work.commit()

    Any failure in 3-5 rolls back every write of the unit of work.

Invariants enforced:
    - current_balance == opening_balance + sum of deltas, per account.
    - All-or-nothing: a transaction record exists iff its balance updates
      were committed with it.
    - Lost-update prevention: account rows are locked in entry order;
      Account.version catches any write that bypassed the lock.

Failure modes:
    - PostingValidationError subclasses (no side effects).
    - AccountNotFoundError / AccountInactiveError (rolled back).
    - CommitFailedError for storage failures, optimistic-lock conflicts and
      timeouts (rolled back).  The storage exception is chained, never shown.
"""

import time
from collections.abc import Mapping, Sequence
from decimal import Decimal, localcontext
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.db.immutability import POSTING_SESSION_FLAG
from ledger_kernel.db.types import MONEY_CONTEXT, ZERO
from ledger_kernel.db.unit_of_work import UnitOfWork
from ledger_kernel.domain.balance_rule import delta
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntryInput, PostedTransaction, ValidationResult
from ledger_kernel.domain.posting_validator import validate
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    CommitFailedError,
    LedgerKernelError,
    PostingValidationError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalTransaction, TransactionEntry

logger = get_logger("services.ledger_posting")


class LedgerPostingService:
    """
    Posts balanced journal entries and maintains account balances.

    Contract:
        Each post() call is independent: it opens its own unit of work and
        creates a new transaction.  There is no idempotency key and no
        automatic retry; a CommitFailedError left nothing behind and the
        caller may re-submit.

    Non-goals:
        - No reversal, void or edit of posted transactions.
        - No multi-currency.
    """

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        clock: Clock | None = None,
        balance_tolerance: Decimal = ZERO,
    ):
        self._unit_of_work = unit_of_work
        self._clock = clock or SystemClock()
        self._balance_tolerance = balance_tolerance

    def post(
        self,
        company_id: UUID,
        created_by: UUID,
        date: Any,
        reference: str,
        description: str,
        entries: Sequence[EntryInput | Mapping[str, Any]],
    ) -> PostedTransaction:
        """
        Validate and atomically post one transaction.

        Args:
            company_id: Tenant that owns the transaction and every account.
            created_by: User recorded as the creator.
            date: Accounting date (date or ISO-8601 string).
            reference: Free-text reference; not unique.
            description: Free-text description.
            entries: At least two EntryInput objects or mappings with
                account/debit/credit.

        Returns:
            PostedTransaction for the committed record.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            company_id=str(company_id),
            actor_id=str(created_by),
        ):
            logger.info(
                "posting_started",
                extra={
                    "reference": reference,
                    "entry_count": len(entries) if isinstance(entries, Sequence) else None,
                },
            )
            t0 = time.monotonic()

            try:
                result = validate(
                    entries,
                    date,
                    reference,
                    description,
                    tolerance=self._balance_tolerance,
                )
            except PostingValidationError as exc:
                logger.warning(
                    "posting_validation_failed",
                    extra={"error_code": exc.code, "detail": str(exc)},
                )
                raise

            logger.info(
                "posting_validated",
                extra={
                    "total_debits": str(result.total_debits),
                    "total_credits": str(result.total_credits),
                    "total_amount": str(result.total_amount),
                },
            )

            handle = self._unit_of_work.begin()
            handle.session.info[POSTING_SESSION_FLAG] = True
            try:
                posted = self._write(
                    handle.session,
                    company_id=company_id,
                    created_by=created_by,
                    reference=str(reference).strip(),
                    description=str(description).strip(),
                    result=result,
                )
            except LedgerKernelError as exc:
                self._unit_of_work.rollback(handle)
                logger.warning(
                    "posting_rolled_back",
                    extra={
                        "error_code": exc.code,
                        "detail": str(exc),
                        "duration_ms": _elapsed_ms(t0),
                    },
                )
                raise
            except SQLAlchemyError as exc:
                self._unit_of_work.rollback(handle)
                logger.error(
                    "posting_commit_failed",
                    extra={"reason": "storage_failure", "duration_ms": _elapsed_ms(t0)},
                    exc_info=True,
                )
                raise CommitFailedError("storage_failure") from exc
            except BaseException as exc:
                self._unit_of_work.rollback(handle)
                logger.error(
                    "posting_rolled_back",
                    extra={
                        "error_code": type(exc).__name__,
                        "duration_ms": _elapsed_ms(t0),
                    },
                    exc_info=True,
                )
                raise

            try:
                self._unit_of_work.commit(handle)
            except CommitFailedError as exc:
                logger.error(
                    "posting_commit_failed",
                    extra={"reason": exc.reason, "duration_ms": _elapsed_ms(t0)},
                    exc_info=exc.__cause__ is not None,
                )
                raise

            logger.info(
                "posting_completed",
                extra={
                    "transaction_id": str(posted.id),
                    "total_amount": str(posted.total_amount),
                    "entry_count": len(posted.entries),
                    "duration_ms": _elapsed_ms(t0),
                },
            )
            return posted

    def _write(
        self,
        session: Session,
        company_id: UUID,
        created_by: UUID,
        reference: str,
        description: str,
        result: ValidationResult,
    ) -> PostedTransaction:
        transaction = JournalTransaction(
            company_id=company_id,
            transaction_date=result.date,
            reference=reference,
            description=description,
            total_amount=result.total_amount,
            created_by_id=created_by,
            posted_at=self._clock.now_utc(),
            is_active=True,
        )
        session.add(transaction)
        session.flush()

        with LogContext.bind(transaction_id=str(transaction.id)):
            for line_seq, entry in enumerate(result.entries):
                account = self._lock_account(session, company_id, entry.account_id)
                with localcontext(MONEY_CONTEXT):
                    change = delta(account.account_type, entry.debit, entry.credit)
                    account.current_balance = account.current_balance + change
                transaction.entries.append(
                    TransactionEntry(
                        account_id=account.id,
                        debit=entry.debit,
                        credit=entry.credit,
                        line_seq=line_seq,
                    )
                )
                session.flush()
                logger.info(
                    "account_balance_updated",
                    extra={
                        "account_id": str(account.id),
                        "account_type": account.account_type,
                        "delta": str(change),
                        "new_balance": str(account.current_balance),
                    },
                )

        return PostedTransaction.from_model(transaction)

    def _lock_account(self, session: Session, company_id: UUID, account_id: UUID) -> Account:
        """Load an account of this company with a row lock."""
        account = session.execute(
            select(Account)
            .where(Account.id == account_id, Account.company_id == company_id)
            .with_for_update()
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        if not account.is_active:
            raise AccountInactiveError(str(account_id))
        return account


def _elapsed_ms(t0: float) -> float:
    return round((time.monotonic() - t0) * 1000, 2)
