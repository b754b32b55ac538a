"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Two write rules hold for the whole life of the ledger:

  1. A posted transaction (and every entry in it) is never modified or
     deleted.  There is no update path and no reversal in this kernel.
  2. An account's current_balance changes only as the side effect of a
     posting.  Any other writer would break
     current_balance == opening_balance + sum(deltas).

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check both rules:

    session.flush()
         |
         v
    [before_flush]  --> _check_account_balance_writes() --> ImmutabilityViolationError
         |
         v
    [before_update] --> _check_*_immutability() ----------> ImmutabilityViolationError
    [before_delete] --> _check_*_delete() ----------------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

The posting service marks its session with POSTING_SESSION_FLAG; balance
changes in any other session are rejected.

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Session.info key set by LedgerPostingService on the sessions it owns
POSTING_SESSION_FLAG = "ledger_posting_unit_of_work"

_AUDIT_FIELDS = ("updated_at",)


def _blocked(entity_type: str, entity_id, operation: str, reason: str, **extra):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            **extra,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_account_balance_writes(session, flush_context, instances):
    """
    Reject balance writes outside the posting service.

    New accounts must start with current_balance == opening_balance.
    Existing accounts may only change current_balance in a session carrying
    POSTING_SESSION_FLAG, and opening_balance never changes after insert.
    """
    from ledger_kernel.models.account import Account

    posting_session = bool(session.info.get(POSTING_SESSION_FLAG))

    for obj in session.new:
        if isinstance(obj, Account):
            opening = obj.opening_balance
            current = obj.current_balance
            if opening is not None and current is not None and opening != current:
                raise _blocked(
                    "Account",
                    obj.id,
                    "INSERT",
                    "New accounts must start with current_balance equal to opening_balance",
                )

    for obj in session.dirty:
        if not isinstance(obj, Account):
            continue
        insp = inspect(obj)
        if insp.attrs.opening_balance.history.has_changes():
            raise _blocked(
                "Account",
                obj.id,
                "UPDATE",
                "opening_balance cannot change after the account is created",
                field="opening_balance",
            )
        if insp.attrs.current_balance.history.has_changes() and not posting_session:
            raise _blocked(
                "Account",
                obj.id,
                "UPDATE",
                "current_balance may only change through a ledger posting",
                field="current_balance",
            )

    for obj in session.deleted:
        if isinstance(obj, Account):
            raise _blocked(
                "Account",
                obj.id,
                "DELETE",
                "Accounts are never deleted; deactivate them instead",
            )


def _check_transaction_immutability(mapper, connection, target):
    """Posted transactions accept no field changes except audit timestamps."""
    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in _AUDIT_FIELDS or attr.key == "entries":
            continue
        if attr.history.has_changes():
            raise _blocked(
                "JournalTransaction",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on posted transaction",
                field=attr.key,
            )


def _check_transaction_delete(mapper, connection, target):
    raise _blocked(
        "JournalTransaction",
        target.id,
        "DELETE",
        "Posted transactions cannot be deleted",
    )


def _check_entry_immutability(mapper, connection, target):
    raise _blocked(
        "TransactionEntry",
        target.id,
        "UPDATE",
        "Transaction entries cannot be modified after posting",
    )


def _check_entry_delete(mapper, connection, target):
    raise _blocked(
        "TransactionEntry",
        target.id,
        "DELETE",
        "Transaction entries cannot be deleted after posting",
    )


def _listeners():
    from ledger_kernel.models.journal import JournalTransaction, TransactionEntry

    return (
        (Session, "before_flush", _check_account_balance_writes),
        (JournalTransaction, "before_update", _check_transaction_immutability),
        (JournalTransaction, "before_delete", _check_transaction_delete),
        (TransactionEntry, "before_update", _check_entry_immutability),
        (TransactionEntry, "before_delete", _check_entry_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners (idempotent).

    Call this after all models are imported but before any database
    operations begin.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
