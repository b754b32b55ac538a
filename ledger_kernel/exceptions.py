"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers key their retry and user-messaging behaviour off the category of a
failure: a validation error is the client's to fix, a missing account may be
corrected and resubmitted, a storage failure left nothing behind and may be
retried by re-running the whole posting.  Parsing message strings for that
decision is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Every exception has an HTTP_STATUS attribute (transport mapping)
  4. Exceptions carry structured DATA (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- PostingValidationError                  400
    |   +-- MissingFieldError
    |   +-- InvalidFieldError
    |   +-- InsufficientEntriesError
    |   +-- EntryFieldInvalidError
    |   +-- UnbalancedEntryError
    |   +-- InvalidAccountTypeError
    |
    +-- AccountError
    |   +-- AccountNotFoundError                404
    |   |   +-- AccountInactiveError
    |   +-- AccountAlreadyExistsError           409
    |
    +-- StorageError                            500
    |   +-- CommitFailedError
    |
    +-- ImmutabilityError                       500
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                 | When Raised
-------------|----------------------|---------------------------------------------
Validation   | MISSING_FIELD        | date / reference / description empty
             | INVALID_FIELD        | Unparseable date or company/user id
             | INSUFFICIENT_ENTRIES | Fewer than two entries
             | ENTRY_FIELD_INVALID  | Missing account, bad or negative amount
             | UNBALANCED_ENTRY     | Debits != Credits
             | INVALID_ACCOUNT_TYPE | Account type outside the five known types
-------------|----------------------|---------------------------------------------
Account      | ACCOUNT_NOT_FOUND    | Account id unknown within the company
             | ACCOUNT_INACTIVE     | Account is soft-deleted
             | ALREADY_EXISTS       | Duplicate account name within a company
-------------|----------------------|---------------------------------------------
Storage      | COMMIT_FAILED        | Constraint, connectivity, timeout, conflict
-------------|----------------------|---------------------------------------------
Immutability | IMMUTABILITY_VIOLATION | Modifying a posted transaction or writing
             |                      | a balance outside the posting service

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        posted = posting_service.post(...)
    except PostingValidationError as e:
        return 400, {"error": str(e), "code": e.code}
    except AccountNotFoundError as e:
        return 404, {"error": str(e), "code": e.code}
    except CommitFailedError as e:
        # Nothing was written; the caller may re-run the whole post.
        return 500, {"error": "Internal server error", "code": e.code}
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification and an `http_status` for transport mapping.
    """

    code: str = "LEDGER_KERNEL_ERROR"
    http_status: int = 500


# Validation exceptions


class PostingValidationError(LedgerKernelError):
    """Base exception for client-caused validation failures."""

    code: str = "VALIDATION_ERROR"
    http_status: int = 400


class MissingFieldError(PostingValidationError):
    """A required header field is empty or absent."""

    code: str = "MISSING_FIELD"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Required field is missing: {field}")


class InvalidFieldError(PostingValidationError):
    """A header field is present but cannot be parsed."""

    code: str = "INVALID_FIELD"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Field '{field}' is invalid: {reason}")


class InsufficientEntriesError(PostingValidationError):
    """Fewer than two entries were submitted."""

    code: str = "INSUFFICIENT_ENTRIES"

    def __init__(self, entry_count: int, minimum: int = 2):
        self.entry_count = entry_count
        self.minimum = minimum
        super().__init__(
            f"At least {minimum} entries are required, got {entry_count}"
        )


class EntryFieldInvalidError(PostingValidationError):
    """An entry has a missing account reference or an invalid amount."""

    code: str = "ENTRY_FIELD_INVALID"

    def __init__(self, entry_index: int, field: str, reason: str):
        self.entry_index = entry_index
        self.field = field
        self.reason = reason
        super().__init__(f"Entry {entry_index} field '{field}' is invalid: {reason}")


class UnbalancedEntryError(PostingValidationError):
    """Total debits do not equal total credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Total debits must equal total credits: debits={debits}, credits={credits}"
        )


class InvalidAccountTypeError(PostingValidationError):
    """Account type is not one of asset, liability, equity, income, expense."""

    code: str = "INVALID_ACCOUNT_TYPE"

    def __init__(self, account_type: str):
        self.account_type = account_type
        super().__init__(f"Invalid account type: {account_type!r}")


# Account-related exceptions


class AccountError(LedgerKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account was not found within the company."""

    code: str = "ACCOUNT_NOT_FOUND"
    http_status: int = 404

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class AccountInactiveError(AccountNotFoundError):
    """Account exists but has been deactivated."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str):
        self.account_id = account_id
        LedgerKernelError.__init__(self, f"Account is inactive: {account_id}")


class AccountAlreadyExistsError(AccountError):
    """An account with the same name already exists in the company."""

    code: str = "ALREADY_EXISTS"
    http_status: int = 409

    def __init__(self, company_id: str, name: str):
        self.company_id = company_id
        self.name = name
        super().__init__(f"Account with this name already exists: {name}")


# Storage-related exceptions


class StorageError(LedgerKernelError):
    """Base exception for storage and transactional failures."""

    code: str = "STORAGE_ERROR"
    http_status: int = 500


class CommitFailedError(StorageError):
    """
    The atomic unit of work could not be committed and was rolled back.

    The message never includes storage internals; the underlying exception
    is chained as __cause__ for logs.
    """

    code: str = "COMMIT_FAILED"

    def __init__(self, reason: str = "storage_failure"):
        self.reason = reason
        super().__init__(f"Posting failed and was rolled back ({reason})")


# Immutability-related exceptions


class ImmutabilityError(LedgerKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify a posted record or a balance outside posting."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
