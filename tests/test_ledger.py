"""Tests for ledger updates from parsed records."""

from dataclasses import replace
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal

import pytest

from finledger.domain.entities import (
    MAX_HISTORY_ENTRIES,
    AccountRecord,
    Category,
    HistoryEntry,
    HistorySource,
)
from finledger.domain.errors import ValidationError
from finledger.domain.ledger import (
    Ledger,
    OutcomeAction,
    append_history,
    create_account,
    record_balance,
    replace_account,
    validate_effective_date,
)
from finledger.domain.matching import MatchTier
from finledger.domain.parsing import build_records


def _record(name: str, balance: str, category: Category = Category.CASH) -> AccountRecord:
    return AccountRecord(name=name, balance=Decimal(balance), category=category)


class TestHistory:
    def test_history_cap_evicts_oldest(self):
        start = date(2020, 1, 1)
        history = tuple(
            HistoryEntry(start + timedelta(days=i), Decimal(i), HistorySource.SCREENSHOT)
            for i in range(MAX_HISTORY_ENTRIES)
        )
        newest = HistoryEntry(
            start + timedelta(days=MAX_HISTORY_ENTRIES), Decimal("1"), HistorySource.SCREENSHOT
        )

        result = append_history(history, newest)

        assert len(result) == MAX_HISTORY_ENTRIES
        assert result[0].date == start + timedelta(days=1)
        assert result[-1] == newest

    def test_backdated_entry_inserted_in_date_order(self):
        history = (
            HistoryEntry(date(2024, 1, 1), Decimal("1"), HistorySource.MANUAL),
            HistoryEntry(date(2024, 3, 1), Decimal("3"), HistorySource.MANUAL),
        )
        result = append_history(
            history, HistoryEntry(date(2024, 2, 1), Decimal("2"), HistorySource.MANUAL)
        )
        assert [e.balance for e in result] == [Decimal("1"), Decimal("2"), Decimal("3")]

    def test_backdated_entry_past_cap_is_the_one_evicted(self):
        start = date(2020, 1, 1)
        history = tuple(
            HistoryEntry(start + timedelta(days=i), Decimal(i), HistorySource.SCREENSHOT)
            for i in range(MAX_HISTORY_ENTRIES)
        )
        ancient = HistoryEntry(date(2000, 1, 1), Decimal("5"), HistorySource.MANUAL)

        result = append_history(history, ancient)

        assert len(result) == MAX_HISTORY_ENTRIES
        assert ancient not in result


class TestRecordBalance:
    def _account(self):
        return create_account(
            "Brokerage", Category.INVESTMENTS, Decimal("100"), date(2024, 5, 1), HistorySource.SCREENSHOT
        )

    def test_newer_balance_replaces_current(self):
        updated, changed = record_balance(
            self._account(), Decimal("150"), date(2024, 6, 1), HistorySource.SCREENSHOT
        )
        assert changed
        assert updated.balance == Decimal("150")
        assert updated.balance_date == date(2024, 6, 1)
        assert len(updated.history) == 2

    def test_same_day_balance_replaces_current(self):
        updated, changed = record_balance(
            self._account(), Decimal("120"), date(2024, 5, 1), HistorySource.SCREENSHOT
        )
        assert changed
        assert updated.balance == Decimal("120")

    def test_backdated_balance_goes_to_history_only(self):
        updated, changed = record_balance(
            self._account(), Decimal("80"), date(2024, 4, 1), HistorySource.SCREENSHOT
        )
        assert not changed
        assert updated.balance == Decimal("100")
        assert updated.history[0].balance == Decimal("80")

    def test_bumps_updated_at(self):
        account = self._account()
        now = datetime(2030, 1, 1, tzinfo=UTC)
        updated, _ = record_balance(account, Decimal("1"), date(2024, 6, 1), HistorySource.MANUAL, now=now)
        assert updated.updated_at == now
        assert updated.created_at == account.created_at

    def test_balance_rounded_to_cents(self):
        updated, _ = record_balance(
            self._account(), Decimal("99.995"), date(2024, 6, 1), HistorySource.MANUAL
        )
        assert updated.balance == Decimal("100.00")
        assert updated.history[-1].balance == Decimal("100.00")


class TestReplaceAccount:
    def test_swaps_account_with_same_id(self, account_factory):
        first, second = account_factory("Checking"), account_factory("Savings")
        accounts = [first, second]

        replace_account(accounts, replace(first, balance=Decimal("5")))

        assert [acc.name for acc in accounts] == ["Checking", "Savings"]
        assert accounts[0].balance == Decimal("5")

    def test_appends_new_account(self, account_factory):
        accounts = [account_factory("Checking")]
        replace_account(accounts, account_factory("Savings"))
        assert [acc.name for acc in accounts] == ["Checking", "Savings"]


class TestValidateEffectiveDate:
    def test_defaults_to_today(self):
        assert validate_effective_date(None) == date.today()

    def test_past_date_allowed(self):
        assert validate_effective_date(date(2020, 1, 31)) == date(2020, 1, 31)

    def test_future_date_rejected(self):
        with pytest.raises(ValidationError):
            validate_effective_date(date.today() + timedelta(days=1))


class TestLedger:
    def test_unmatched_record_creates_account(self):
        ledger = Ledger([])
        outcome = ledger.apply_record(_record("Joint Checking", "25000"), date(2024, 5, 1))

        assert outcome.action is OutcomeAction.CREATED
        (account,) = ledger.accounts
        assert account.id == outcome.account_id
        assert account.name == "Joint Checking"
        assert account.balance == Decimal("25000")
        assert account.history == (
            HistoryEntry(date(2024, 5, 1), Decimal("25000"), HistorySource.SCREENSHOT),
        )

    def test_matched_record_updates_account(self, account_factory):
        existing = account_factory("My Personal Cash Account", balance="900")
        ledger = Ledger([existing])

        outcome = ledger.apply_record(_record("My Personal Cash", "1000"), date(2024, 5, 1))

        assert outcome.action is OutcomeAction.UPDATED
        assert outcome.match.tier is MatchTier.SUBSTRING
        (account,) = ledger.accounts
        assert account.id == existing.id
        assert account.name == "My Personal Cash Account"
        assert account.balance == Decimal("1000")

    def test_matched_record_keeps_category(self, account_factory):
        existing = account_factory("Brokerage", category=Category.INVESTMENTS)
        ledger = Ledger([existing])
        ledger.apply_record(_record("Brokerage", "5", Category.CASH), date(2024, 5, 1))
        assert ledger.accounts[0].category is Category.INVESTMENTS

    def test_batch_self_matching(self):
        ledger = Ledger([])
        outcomes = ledger.apply_records(
            [_record("Vacation Fund", "100"), _record("Vacation Fund", "150")], date(2024, 5, 1)
        )

        assert [o.action for o in outcomes] == [OutcomeAction.CREATED, OutcomeAction.UPDATED]
        (account,) = ledger.accounts
        assert account.balance == Decimal("150")
        assert len(account.history) == 2

    def test_does_not_mutate_input(self, account_factory):
        existing = [account_factory("Brokerage")]
        ledger = Ledger(existing)
        ledger.apply_record(_record("Brokerage", "999"), date(2024, 5, 1))
        assert existing[0].balance == Decimal("100")

    def test_end_to_end_lines(self):
        lines = [
            "Cash",
            "My Personal Cash Account  $1,000",
            "Individual",
            "Investments",
            "My Roth IRA  $5,000",
        ]
        records = build_records(lines)
        assert records == [
            AccountRecord("My Personal Cash Account", Decimal("1000"), Category.CASH),
            AccountRecord("My Roth IRA", Decimal("5000"), Category.INVESTMENTS),
        ]

        ledger = Ledger([])
        ledger.apply_records(records, date(2024, 5, 1))
        assert {(a.name, a.category) for a in ledger.accounts} == {
            ("My Personal Cash Account", Category.CASH),
            ("My Roth IRA", Category.INVESTMENTS),
        }


class TestLedgerService:
    def test_import_persists_accounts(self, ledger_service, temp_db, yesterday):
        summary = ledger_service.import_records(
            [_record("Checking", "100"), _record("Mortgage", "300", Category.LIABILITIES)],
            yesterday,
        )

        assert summary.created == 2
        assert summary.updated == 0
        assert summary.net_worth == Decimal("-200")
        assert summary.describe() == "2 new account(s) created, 0 updated"

        stored = {acc.name: acc for acc in temp_db.load_accounts()}
        assert stored["Checking"].balance == Decimal("100")
        assert stored["Mortgage"].history[0].date == yesterday

    def test_second_upload_updates(self, ledger_service, temp_db):
        ledger_service.import_records([_record("Checking", "100")])
        summary = ledger_service.import_records([_record("Checking", "250")])

        assert summary.created == 0
        assert summary.updated == 1
        (account,) = temp_db.load_accounts()
        assert account.balance == Decimal("250")
        assert len(account.history) == 2

    def test_backdated_upload_keeps_current_balance(self, ledger_service, temp_db):
        ledger_service.import_records([_record("Checking", "100")])
        summary = ledger_service.import_records(
            [_record("Checking", "40")], date.today() - timedelta(days=30)
        )

        assert not summary.outcomes[0].balance_changed
        (account,) = temp_db.load_accounts()
        assert account.balance == Decimal("100")
        assert [e.balance for e in account.history] == [Decimal("40"), Decimal("100")]

    def test_empty_upload_does_not_save(self, ledger_service, temp_db, monkeypatch):
        ledger_service.import_records([_record("Checking", "100")])

        def fail_save(accounts):
            raise AssertionError("store must not be written")

        monkeypatch.setattr(temp_db, "save_accounts", fail_save)
        summary = ledger_service.import_records([])

        assert summary.is_empty
        assert summary.created == 0
        assert summary.net_worth == Decimal("100")

    def test_future_date_rejected(self, ledger_service, temp_db):
        with pytest.raises(ValidationError):
            ledger_service.import_records(
                [_record("Checking", "100")], date.today() + timedelta(days=2)
            )
        assert temp_db.load_accounts() == []

    def test_ambiguous_match_reported(self, ledger_service, temp_db):
        ledger_service.import_records([_record("Visa Card", "10"), _record("Visa Rewards", "20")])

        summary = ledger_service.import_records([_record("Visa", "30")])

        assert summary.updated == 1
        (outcome,) = summary.ambiguous
        assert len(outcome.match.candidates) == 2
        assert len(temp_db.load_accounts()) == 2
