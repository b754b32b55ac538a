"""
AccountService -- chart-of-accounts maintenance.

Responsibility:
    Creates accounts (with current_balance starting at opening_balance) and
    deactivates them.  Never touches current_balance after creation; that
    belongs to LedgerPostingService.

Architecture position:
    Kernel > Services.  Flush-only: the caller commits.

Invariants enforced:
    - (company_id, name) unique per company -> AccountAlreadyExistsError.
    - account_type is one of the five account types.

Failure modes:
    - MissingFieldError for blank name or group.
    - InvalidAccountTypeError for an unknown type.
    - AccountAlreadyExistsError for a duplicate name (pre-check, and the
      unique constraint for concurrent creators).
    - AccountNotFoundError when deactivating an unknown account.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ledger_kernel.db.types import check_money_precision, money_from_value
from ledger_kernel.domain.balance_rule import ACCOUNT_TYPES
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    InvalidAccountTypeError,
    InvalidFieldError,
    MissingFieldError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account")


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


class AccountService(BaseService):
    """Creates and deactivates accounts within the caller's transaction."""

    def create_account(
        self,
        company_id: UUID,
        name: str,
        account_type: Any,
        group: str,
        opening_balance: Any = Decimal("0"),
    ) -> AccountInfo:
        """
        Create an account with current_balance = opening_balance.

        Args:
            company_id: Owning company.
            name: Account name, unique within the company (trimmed).
            account_type: AccountType or its string value.
            group: Free-text classification label (trimmed).
            opening_balance: Starting balance; may be negative.

        Returns:
            AccountInfo for the new account.
        """
        name = _clean(name)
        group = _clean(group)
        if not name:
            raise MissingFieldError("name")
        type_value = _clean(getattr(account_type, "value", account_type)).lower()
        if not type_value:
            raise MissingFieldError("type")
        if not group:
            raise MissingFieldError("group")

        if type_value not in ACCOUNT_TYPES:
            raise InvalidAccountTypeError(str(account_type))

        try:
            opening = check_money_precision(money_from_value(opening_balance))
        except ValueError as exc:
            raise InvalidFieldError("openingBalance", str(exc)) from exc

        if self._name_taken(company_id, name):
            raise AccountAlreadyExistsError(str(company_id), name)

        account = Account(
            company_id=company_id,
            name=name,
            account_type=type_value,
            group=group,
            opening_balance=opening,
            current_balance=opening,
            is_active=True,
        )

        # Savepoint so a lost race on the unique constraint leaves the
        # caller's transaction usable
        savepoint = self.session.begin_nested()
        try:
            self.session.add(account)
            self.session.flush()
            savepoint.commit()
        except IntegrityError as exc:
            savepoint.rollback()
            logger.warning(
                "account_create_conflict",
                extra={"company_id": str(company_id), "account_name": name},
            )
            raise AccountAlreadyExistsError(str(company_id), name) from exc

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "company_id": str(company_id),
                "account_name": name,
                "account_type": type_value,
                "opening_balance": str(opening),
            },
        )
        return AccountInfo.from_model(account)

    def _name_taken(self, company_id: UUID, name: str) -> bool:
        return (
            self.session.execute(
                select(Account.id).where(
                    Account.company_id == company_id,
                    Account.name == name,
                )
            ).scalar_one_or_none()
            is not None
        )

    def deactivate_account(self, company_id: UUID, account_id: UUID) -> AccountInfo:
        """Soft-delete an account.  Deactivating twice is a no-op."""
        account = self.session.execute(
            select(Account)
            .where(Account.id == account_id, Account.company_id == company_id)
            .with_for_update()
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))

        if account.is_active:
            account.is_active = False
            self.session.flush()
            logger.info(
                "account_deactivated",
                extra={"account_id": str(account_id), "company_id": str(company_id)},
            )
        return AccountInfo.from_model(account)
