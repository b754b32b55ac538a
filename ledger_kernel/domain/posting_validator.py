"""
Posting Validator -- pure checks applied before any storage is touched.

Responsibility:
    Decides whether a submitted entry set may be posted: header fields are
    present, there are at least two entries, every entry names an account
    and carries finite non-negative amounts that fit the stored precision
    (9 decimal places, 29 integer digits), and total debits equal total
    credits.  Returns the totals and the normalized entries.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Balance: |sum(debit) - sum(credit)| <= tolerance (exact by default).
    - Minimum two entries per transaction.

Failure modes:
    - MissingFieldError, InvalidFieldError, InsufficientEntriesError,
      EntryFieldInvalidError, UnbalancedEntryError.  Checks run in that
      order and the first failure wins.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, localcontext
from typing import Any
from uuid import UUID

from ledger_kernel.db.types import (
    MONEY_CONTEXT,
    ZERO,
    check_money_precision,
    money_from_value,
)
from ledger_kernel.domain.dtos import EntryInput, ValidationResult
from ledger_kernel.exceptions import (
    EntryFieldInvalidError,
    InsufficientEntriesError,
    InvalidFieldError,
    MissingFieldError,
    UnbalancedEntryError,
)

MIN_ENTRIES = 2
MAX_TOLERANCE = Decimal("0.01")

# Keys accepted for the account reference of a mapping entry, in priority order
ACCOUNT_KEYS = ("account", "ledger", "account_id")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def parse_date(value: Any) -> date:
    """
    Parse an accounting date.

    Accepts date, datetime (date part) and ISO-8601 strings, either a bare
    date or a full timestamp ("2024-03-01T00:00:00.000Z").

    Raises:
        InvalidFieldError: If the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError as exc:
            raise InvalidFieldError("date", f"not an ISO-8601 date: {value!r}") from exc
    raise InvalidFieldError("date", f"unsupported type {type(value).__name__}")


def _parse_account(index: int, value: Any) -> UUID:
    if _is_blank(value):
        raise EntryFieldInvalidError(index, "account", "account reference is required")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError as exc:
        raise EntryFieldInvalidError(index, "account", f"not a valid id: {value!r}") from exc


def _parse_amount(index: int, field: str, value: Any) -> Decimal:
    try:
        amount = check_money_precision(money_from_value(value))
    except ValueError as exc:
        raise EntryFieldInvalidError(index, field, str(exc)) from exc
    if amount < 0:
        raise EntryFieldInvalidError(index, field, "amount must not be negative")
    return amount


def normalize_entry(index: int, raw: EntryInput | Mapping[str, Any]) -> EntryInput:
    """Convert one submitted entry into an EntryInput with UUID and Decimal fields."""
    if isinstance(raw, EntryInput):
        account, debit, credit = raw.account_id, raw.debit, raw.credit
    elif isinstance(raw, Mapping):
        account = next((raw[k] for k in ACCOUNT_KEYS if not _is_blank(raw.get(k))), None)
        debit, credit = raw.get("debit"), raw.get("credit")
    else:
        raise EntryFieldInvalidError(index, "entry", f"unsupported type {type(raw).__name__}")

    return EntryInput(
        account_id=_parse_account(index, account),
        debit=_parse_amount(index, "debit", debit),
        credit=_parse_amount(index, "credit", credit),
    )


def validate(
    entries: Sequence[EntryInput | Mapping[str, Any]] | None,
    date: Any,
    reference: Any,
    description: Any,
    tolerance: Decimal = ZERO,
) -> ValidationResult:
    """
    Validate a submitted posting.

    Args:
        entries: EntryInput objects or mappings with account/debit/credit.
        date: Accounting date (date or ISO-8601 string).
        reference: Free-text reference; required.
        description: Free-text description; required.
        tolerance: Largest accepted |debits - credits|; 0 means exact.

    Returns:
        ValidationResult with totals, total_amount = max(debits, credits),
        the normalized entries and the parsed date.
    """
    if tolerance < 0 or tolerance > MAX_TOLERANCE:
        raise ValueError(f"tolerance must be between 0 and {MAX_TOLERANCE}")

    for name, value in (("date", date), ("reference", reference), ("description", description)):
        if _is_blank(value):
            raise MissingFieldError(name)
    parsed_date = parse_date(date)

    if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
        raise InsufficientEntriesError(0, MIN_ENTRIES)
    if len(entries) < MIN_ENTRIES:
        raise InsufficientEntriesError(len(entries), MIN_ENTRIES)

    normalized = tuple(normalize_entry(i, raw) for i, raw in enumerate(entries))

    with localcontext(MONEY_CONTEXT):
        total_debits = sum((e.debit for e in normalized), ZERO)
        total_credits = sum((e.credit for e in normalized), ZERO)
        difference = abs(total_debits - total_credits)
    if difference > tolerance:
        raise UnbalancedEntryError(str(total_debits), str(total_credits))

    return ValidationResult(
        total_debits=total_debits,
        total_credits=total_credits,
        total_amount=max(total_debits, total_credits),
        entries=normalized,
        date=parsed_date,
    )
