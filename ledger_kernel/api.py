"""
Request/response contract for an HTTP layer.

The web framework, routing and authentication live outside the kernel.  A
route handler authenticates the caller, then delegates here with the
caller's company and user ids and the decoded JSON body; the returned
ApiResponse carries the status code and a JSON-ready body.

Status mapping:
    201  created
    400  PostingValidationError (code in body)
    404  AccountNotFoundError / AccountInactiveError
    409  AccountAlreadyExistsError
    500  storage failures; the body never carries storage details
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.db.unit_of_work import UnitOfWork
from ledger_kernel.domain.posting_validator import parse_date
from ledger_kernel.exceptions import InvalidFieldError, LedgerKernelError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.base import DEFAULT_PAGE_SIZE
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.ledger_posting_service import LedgerPostingService

logger = get_logger("api")

INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(frozen=True)
class ApiResponse:
    status: int
    body: Any


def _error_response(exc: LedgerKernelError) -> ApiResponse:
    if exc.http_status >= 500:
        return ApiResponse(exc.http_status, {"error": INTERNAL_ERROR_MESSAGE, "code": exc.code})
    return ApiResponse(exc.http_status, {"error": str(exc), "code": exc.code})


def parse_uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidFieldError(field, f"not a valid id: {value!r}") from exc


def _require_mapping(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise InvalidFieldError("body", "request body must be a JSON object")
    return body


def _query_int(query: dict[str, Any], key: str, default: int) -> int:
    raw = query.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidFieldError(key, f"not an integer: {raw!r}") from exc


def handle_post_transaction(
    service: LedgerPostingService,
    company_id: Any,
    user_id: Any,
    body: Any,
) -> ApiResponse:
    """
    POST /transactions (also served as POST /journal-entries).

    Body: {date, reference, description, entries: [{account, debit, credit}]}.
    The entry account key may also be spelled ``ledger``.
    """
    try:
        body = _require_mapping(body)
        posted = service.post(
            company_id=parse_uuid(company_id, "company"),
            created_by=parse_uuid(user_id, "user"),
            date=body.get("date"),
            reference=body.get("reference"),
            description=body.get("description"),
            entries=body.get("entries"),
        )
    except LedgerKernelError as exc:
        return _error_response(exc)
    return ApiResponse(
        201,
        {"message": "Transaction created successfully", "transaction": posted.to_dict()},
    )


def handle_list_transactions(
    session_factory: Callable[[], Session],
    company_id: Any,
    query: dict[str, Any] | None = None,
) -> ApiResponse:
    """
    GET /transactions?page=&limit=&date=

    Response: {transactions: [...], pagination: {page, limit, total, pages}}.
    """
    query = query or {}
    try:
        company = parse_uuid(company_id, "company")
        page = _query_int(query, "page", 1)
        limit = _query_int(query, "limit", DEFAULT_PAGE_SIZE)
        on_date: date | None = None
        if query.get("date"):
            on_date = parse_date(query["date"])
    except LedgerKernelError as exc:
        return _error_response(exc)

    with session_factory() as session:
        result = JournalSelector(session).list_transactions(
            company, page=page, limit=limit, on_date=on_date
        )
    return ApiResponse(
        200,
        {
            "transactions": [t.to_dict() for t in result.items],
            "pagination": result.pagination(),
        },
    )


def handle_list_accounts(
    session_factory: Callable[[], Session],
    company_id: Any,
) -> ApiResponse:
    """GET /ledgers -- active accounts of the company, sorted by name."""
    try:
        company = parse_uuid(company_id, "company")
    except LedgerKernelError as exc:
        return _error_response(exc)

    with session_factory() as session:
        accounts = AccountSelector(session).list_active(company)
    return ApiResponse(200, [a.to_dict() for a in accounts])


def handle_create_account(
    unit_of_work: UnitOfWork,
    company_id: Any,
    body: Any,
) -> ApiResponse:
    """
    POST /ledgers

    Body: {name, type, group, openingBalance?}.  409 on a duplicate name.
    """
    try:
        body = _require_mapping(body)
        company = parse_uuid(company_id, "company")
        with unit_of_work.scope() as session:
            account = AccountService(session).create_account(
                company_id=company,
                name=body.get("name"),
                account_type=body.get("type"),
                group=body.get("group"),
                opening_balance=body.get("openingBalance", 0),
            )
    except LedgerKernelError as exc:
        if exc.http_status >= 500:
            logger.error("account_create_failed", extra={"error_code": exc.code}, exc_info=True)
        return _error_response(exc)
    return ApiResponse(201, account.to_dict())
