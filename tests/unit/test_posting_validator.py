"""
Unit tests for the posting validator.

Verifies:
- Required header fields and the two-entry minimum
- Per-entry account and amount checks, with the failing index reported
- Exact balance by default, optional tolerance
- Totals and normalization of the returned result
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from ledger_kernel.domain.dtos import EntryInput
from ledger_kernel.domain.posting_validator import parse_date, validate
from ledger_kernel.exceptions import (
    EntryFieldInvalidError,
    InsufficientEntriesError,
    InvalidFieldError,
    MissingFieldError,
    PostingValidationError,
    UnbalancedEntryError,
)

A = uuid4()
B = uuid4()


def _entries(*amounts):
    accounts = [A, B]
    return [
        {"account": str(accounts[i % 2]), "debit": debit, "credit": credit}
        for i, (debit, credit) in enumerate(amounts)
    ]


def _validate(entries, **overrides):
    kwargs = {
        "date": "2024-03-01",
        "reference": "TXN001",
        "description": "Sale",
    }
    kwargs.update(overrides)
    return validate(entries, **kwargs)


class TestHeaderFields:
    @pytest.mark.parametrize("field", ["date", "reference", "description"])
    def test_missing_field(self, field):
        with pytest.raises(MissingFieldError) as exc_info:
            _validate(_entries((100, 0), (0, 100)), **{field: None})
        assert exc_info.value.field == field
        assert exc_info.value.code == "MISSING_FIELD"

    @pytest.mark.parametrize("field", ["date", "reference", "description"])
    def test_whitespace_only_is_missing(self, field):
        with pytest.raises(MissingFieldError):
            _validate(_entries((100, 0), (0, 100)), **{field: "   "})

    def test_unparseable_date(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            _validate(_entries((100, 0), (0, 100)), date="01/03/2024")
        assert exc_info.value.field == "date"

    def test_header_checked_before_entries(self):
        with pytest.raises(MissingFieldError):
            _validate([], reference="")


class TestEntryCount:
    def test_single_entry_rejected(self):
        with pytest.raises(InsufficientEntriesError) as exc_info:
            _validate(_entries((100, 100)))
        assert exc_info.value.entry_count == 1

    def test_no_entries_rejected(self):
        with pytest.raises(InsufficientEntriesError):
            _validate([])

    def test_missing_entries_rejected(self):
        with pytest.raises(InsufficientEntriesError):
            _validate(None)

    @pytest.mark.parametrize("not_a_list", [5, True, 1.5, "entries", {"account": "x"}])
    def test_non_list_entries_rejected(self, not_a_list):
        with pytest.raises(InsufficientEntriesError) as exc_info:
            _validate(not_a_list)
        assert exc_info.value.entry_count == 0


class TestEntryFields:
    def test_missing_account(self):
        entries = _entries((100, 0), (0, 100))
        del entries[1]["account"]
        with pytest.raises(EntryFieldInvalidError) as exc_info:
            _validate(entries)
        assert exc_info.value.entry_index == 1
        assert exc_info.value.field == "account"

    def test_malformed_account_id(self):
        entries = _entries((100, 0), (0, 100))
        entries[0]["account"] = "not-an-id"
        with pytest.raises(EntryFieldInvalidError) as exc_info:
            _validate(entries)
        assert exc_info.value.entry_index == 0

    def test_ledger_key_accepted_as_account(self):
        entries = [
            {"ledger": str(A), "debit": 100},
            {"ledger": str(B), "credit": 100},
        ]
        result = _validate(entries)
        assert [e.account_id for e in result.entries] == [A, B]

    def test_negative_amount(self):
        with pytest.raises(EntryFieldInvalidError) as exc_info:
            _validate(_entries((100, 0), (-100, 0)))
        assert exc_info.value.field == "debit"

    @pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity", True, [1]])
    def test_non_numeric_amount(self, bad):
        entries = _entries((100, 0), (0, 100))
        entries[1]["credit"] = bad
        with pytest.raises(EntryFieldInvalidError) as exc_info:
            _validate(entries)
        assert exc_info.value.field == "credit"

    def test_sub_storage_precision_rejected(self):
        entries = [
            {"account": str(A), "debit": "0.0000000004"},
            {"account": str(A), "debit": "0.0000000004"},
            {"account": str(B), "credit": "0.0000000008"},
        ]
        with pytest.raises(EntryFieldInvalidError) as exc_info:
            _validate(entries)
        assert exc_info.value.entry_index == 0
        assert exc_info.value.field == "debit"

    def test_trailing_zeros_past_storage_precision_allowed(self):
        result = _validate(_entries(("1.50000000000", 0), (0, "1.5")))
        assert result.total_amount == Decimal("1.5")

    def test_too_many_integer_digits_rejected(self):
        huge = "1" + "0" * 29
        with pytest.raises(EntryFieldInvalidError) as exc_info:
            _validate(_entries((huge, 0), (0, huge)))
        assert exc_info.value.field == "debit"

    def test_largest_storable_amounts_balance_exactly(self):
        big = "9" * 29 + ".999999999"
        result = _validate(_entries((big, 0), (0, big)))
        assert result.total_debits == Decimal(big)

        off_by_one = "9" * 29 + ".999999998"
        with pytest.raises(UnbalancedEntryError):
            _validate(_entries((big, 0), (0, off_by_one)))

    def test_missing_amounts_default_to_zero(self):
        entries = [
            {"account": str(A), "debit": "100"},
            {"account": str(B), "credit": "100"},
        ]
        result = _validate(entries)
        assert result.entries[0].credit == Decimal("0")
        assert result.entries[1].debit == Decimal("0")


class TestBalance:
    def test_unbalanced_rejected(self):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            _validate(_entries((100, 0), (0, 99)))
        assert exc_info.value.debits == "100"
        assert exc_info.value.credits == "99"

    def test_balanced_returns_totals(self):
        result = _validate(_entries(("100.00", 0), (0, "100.00")))
        assert result.total_debits == Decimal("100.00")
        assert result.total_credits == Decimal("100.00")
        assert result.total_amount == Decimal("100.00")

    def test_float_amounts_use_shortest_repr(self):
        result = _validate(_entries((0.1, 0), (0.2, 0), (0, 0.3)))
        assert result.total_debits == Decimal("0.3")
        assert result.total_credits == Decimal("0.3")

    def test_exact_by_default(self):
        with pytest.raises(UnbalancedEntryError):
            _validate(_entries(("100.00", 0), (0, "99.995")))

    def test_tolerance_accepts_small_difference(self):
        result = validate(
            _entries(("100.00", 0), (0, "99.995")),
            date="2024-03-01",
            reference="R",
            description="D",
            tolerance=Decimal("0.01"),
        )
        assert result.total_amount == Decimal("100.00")

    def test_tolerance_still_rejects_large_difference(self):
        with pytest.raises(UnbalancedEntryError):
            validate(
                _entries((100, 0), (0, 99)),
                date="2024-03-01",
                reference="R",
                description="D",
                tolerance=Decimal("0.01"),
            )

    def test_tolerance_range_enforced(self):
        with pytest.raises(ValueError):
            _validate(_entries((100, 0), (0, 100)), tolerance=Decimal("0.5"))

    def test_zero_amount_transaction_is_balanced(self):
        result = _validate(_entries((0, 0), (0, 0)))
        assert result.total_amount == Decimal("0")


class TestResult:
    def test_entry_inputs_pass_through(self):
        entries = [
            EntryInput(account_id=A, debit=Decimal("10")),
            EntryInput(account_id=B, credit=Decimal("10")),
        ]
        result = _validate(entries)
        assert result.entries == tuple(entries)
        assert result.date == date(2024, 3, 1)

    def test_entries_keep_submission_order(self):
        result = _validate(_entries((30, 0), (0, 10), (0, 20)))
        assert [e.credit for e in result.entries] == [Decimal("0"), Decimal("10"), Decimal("20")]
        assert all(isinstance(e.account_id, UUID) for e in result.entries)

    def test_all_errors_are_validation_errors(self):
        with pytest.raises(PostingValidationError):
            _validate(_entries((1, 0), (0, 2)))


class TestParseDate:
    def test_plain_date(self):
        assert parse_date("2024-03-01") == date(2024, 3, 1)

    def test_javascript_timestamp(self):
        assert parse_date("2024-03-01T00:00:00.000Z") == date(2024, 3, 1)

    def test_date_object(self):
        assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)
