"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from finledger.database.models import (
    Account as ORMAccount,
    AccountAlias as ORMAccountAlias,
    HistoryEntry as ORMHistoryEntry,
)
from finledger.database.mappers import account_to_domain, account_to_orm, as_utc
from finledger.domain.entities import Account, Category, HistoryEntry, HistorySource


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test converting ORM Account to domain Account."""
        created_at = datetime(2024, 5, 1, 9, 0)
        orm_account = ORMAccount(
            id="abc",
            name="Joint Checking",
            display_name=None,
            category="cash",
            balance=Decimal("25000.00"),
            created_at=created_at,
            updated_at=created_at,
            aliases=[ORMAccountAlias(name="JNT CHK", position=0)],
            history=[
                ORMHistoryEntry(date=date(2024, 5, 1), balance=Decimal("25000.00"), source="screenshot", position=1),
                ORMHistoryEntry(date=date(2024, 4, 1), balance=Decimal("20000.00"), source="manual", position=0),
            ],
            merged=[],
        )
        domain_account = account_to_domain(orm_account)

        assert isinstance(domain_account, Account)
        assert domain_account.id == "abc"
        assert domain_account.category is Category.CASH
        assert domain_account.previous_names == ("JNT CHK",)
        assert domain_account.created_at == datetime(2024, 5, 1, 9, 0, tzinfo=UTC)
        assert [e.date for e in domain_account.history] == [date(2024, 4, 1), date(2024, 5, 1)]
        assert domain_account.history[0].source is HistorySource.MANUAL

    def test_account_to_orm(self):
        """Test converting domain Account to ORM Account with children."""
        stamp = datetime(2024, 5, 1, tzinfo=UTC)
        account = Account(
            id="abc",
            name="Mortgage",
            category=Category.LIABILITIES,
            balance=Decimal("310000"),
            created_at=stamp,
            updated_at=stamp,
            previous_names=("Home Loan",),
            history=(HistoryEntry(date(2024, 5, 1), Decimal("310000"), HistorySource.SCREENSHOT),),
        )

        orm_account = account_to_orm(account)

        assert orm_account.category == "liabilities"
        assert [a.name for a in orm_account.aliases] == ["Home Loan"]
        assert orm_account.history[0].source == "screenshot"
        assert orm_account.history[0].position == 0


def test_as_utc():
    naive = datetime(2024, 1, 1, 12, 0)
    assert as_utc(naive).tzinfo is UTC
    assert as_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
