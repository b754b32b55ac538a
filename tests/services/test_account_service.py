"""Tests for AccountService: creation rules and deactivation."""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    InvalidAccountTypeError,
    InvalidFieldError,
    MissingFieldError,
)
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.services.account_service import AccountService


class TestCreateAccount:
    def test_current_balance_starts_at_opening(self, unit_of_work, session, company_id):
        with unit_of_work.scope() as sess:
            info = AccountService(sess).create_account(
                company_id=company_id,
                name="  Cash  ",
                account_type="asset",
                group=" Current Assets ",
                opening_balance="1000.25",
            )

        assert info.name == "Cash"
        assert info.group == "Current Assets"
        assert info.account_type == "asset"
        assert info.is_active is True

        stored = session.get(Account, info.id)
        assert stored.company_id == company_id
        assert stored.opening_balance == Decimal("1000.25")
        assert stored.current_balance == Decimal("1000.25")
        assert stored.version == 1

    def test_enum_type_accepted(self, create_account):
        info = create_account("Retained Earnings", AccountType.EQUITY)
        assert info.account_type == "equity"

    def test_type_is_case_insensitive(self, create_account):
        assert create_account("Wages", "Expense").account_type == "expense"

    def test_negative_opening_balance_allowed(self, create_account):
        info = create_account("Overdraft", "asset", opening_balance=-25)
        assert info.current_balance == Decimal("-25")

    @pytest.mark.parametrize(
        "field, kwargs",
        [
            ("name", {"name": " "}),
            ("type", {"account_type": ""}),
            ("group", {"group": None}),
        ],
    )
    def test_required_fields(self, create_account, field, kwargs):
        params = {"name": "Cash", "account_type": "asset", "group": "Assets"}
        params.update(kwargs)
        with pytest.raises(MissingFieldError) as exc_info:
            create_account(**params)
        assert exc_info.value.field == field

    def test_invalid_type(self, create_account):
        with pytest.raises(InvalidAccountTypeError) as exc_info:
            create_account("Sales", "revenue")
        assert exc_info.value.http_status == 400

    def test_invalid_opening_balance(self, create_account):
        with pytest.raises(InvalidFieldError):
            create_account("Cash", "asset", opening_balance="lots")

    def test_opening_balance_beyond_storage_precision(self, create_account):
        with pytest.raises(InvalidFieldError) as exc_info:
            create_account("Cash", "asset", opening_balance="10.0000000001")
        assert exc_info.value.field == "openingBalance"

    def test_duplicate_name_in_company(self, create_account, company_id):
        create_account("Cash", "asset")
        with pytest.raises(AccountAlreadyExistsError) as exc_info:
            create_account("Cash", "liability")
        assert exc_info.value.code == "ALREADY_EXISTS"
        assert exc_info.value.http_status == 409

    def test_same_name_in_other_company(self, create_account, other_company_id):
        create_account("Cash", "asset")
        other = create_account("Cash", "asset", company=other_company_id)
        assert other.company_id == other_company_id

    def test_unique_constraint_backs_duplicate_check(self, unit_of_work, company_id, monkeypatch):
        with unit_of_work.scope() as sess:
            sess.add(
                Account(
                    company_id=company_id,
                    name="Cash",
                    account_type="asset",
                    group="Assets",
                    opening_balance=Decimal("0"),
                    current_balance=Decimal("0"),
                )
            )

        with unit_of_work.scope() as sess:
            service = AccountService(sess)
            # Simulate losing the race: the pre-check sees no row
            monkeypatch.setattr(service, "_name_taken", lambda company, name: False)
            with pytest.raises(AccountAlreadyExistsError) as exc_info:
                service.create_account(company_id, "Cash", "asset", "Assets")
            assert exc_info.value.__cause__ is not None
            assert sess.is_active

    def test_created_event_logged(self, create_account, captured_logs):
        info = create_account("Cash", "asset", opening_balance="10")
        created = [r for r in captured_logs() if r["message"] == "account_created"]
        assert created[0]["account_id"] == str(info.id)
        assert created[0]["opening_balance"] == "10"


class TestDeactivateAccount:
    def test_deactivate(self, create_account, unit_of_work, session, company_id):
        info = create_account("Petty Cash", "asset")
        with unit_of_work.scope() as sess:
            result = AccountService(sess).deactivate_account(company_id, info.id)

        assert result.is_active is False
        assert session.get(Account, info.id).is_active is False

    def test_deactivate_twice_is_noop(self, create_account, unit_of_work, company_id):
        info = create_account("Petty Cash", "asset")
        for _ in range(2):
            with unit_of_work.scope() as sess:
                result = AccountService(sess).deactivate_account(company_id, info.id)
        assert result.is_active is False

    def test_unknown_account(self, unit_of_work, company_id):
        with pytest.raises(AccountNotFoundError):
            with unit_of_work.scope() as sess:
                AccountService(sess).deactivate_account(company_id, uuid4())

    def test_other_company_cannot_deactivate(
        self, create_account, unit_of_work, other_company_id
    ):
        info = create_account("Cash", "asset")
        with pytest.raises(AccountNotFoundError):
            with unit_of_work.scope() as sess:
                AccountService(sess).deactivate_account(other_company_id, info.id)
