"""Net worth and balance history reporting."""

from bisect import bisect_right
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from finledger.database.base import AccountStore
from finledger.domain.entities import (
    Account,
    Category,
    HistoryEntry,
    NetWorthPoint,
    NetWorthReport,
)
from finledger.domain.errors import NotFoundError, account_not_found


def _in_range(day: date, start_date: Optional[date], end_date: Optional[date]) -> bool:
    if start_date is not None and day < start_date:
        return False
    if end_date is not None and day > end_date:
        return False
    return True


def balance_on(account: Account, day: date) -> Optional[Decimal]:
    """Balance of an account as of a date, from its history.

    Returns None when the account has no history on or before the date.
    When several entries share a date the last one recorded wins.
    """
    dates = [entry.date for entry in account.history]
    index = bisect_right(dates, day)
    if index == 0:
        return None
    return account.history[index - 1].balance


class SummaryService:
    """Service for building net worth reports."""

    def __init__(self, store: AccountStore):
        """Initialize summary service.

        Args:
            store: Account store instance
        """
        self.store = store

    def net_worth_report(self) -> NetWorthReport:
        """Current balance totals per category."""
        return self.build_report(self.store.load_accounts())

    @staticmethod
    def build_report(accounts: Sequence[Account]) -> NetWorthReport:
        totals = {category: Decimal("0") for category in Category}
        for acc in accounts:
            totals[acc.category] += acc.balance
        return NetWorthReport(totals=totals, account_count=len(accounts))

    def account_history(
        self,
        account_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[HistoryEntry]:
        """Balance history of one account, oldest first.

        Raises:
            NotFoundError: If the account does not exist
        """
        for acc in self.store.load_accounts():
            if acc.id == account_id:
                return [e for e in acc.history if _in_range(e.date, start_date, end_date)]
        raise NotFoundError(account_not_found(account_id))

    def net_worth_history(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[NetWorthPoint]:
        """One point per date that has any balance entry.

        Each point sums every account's latest balance on or before that
        date, so an account that was not updated on a given day still counts
        with its previous balance.
        """
        return self.build_net_worth_history(self.store.load_accounts(), start_date, end_date)

    @staticmethod
    def build_net_worth_history(
        accounts: Sequence[Account],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[NetWorthPoint]:
        dates = sorted(
            {
                entry.date
                for acc in accounts
                for entry in acc.history
                if _in_range(entry.date, start_date, end_date)
            }
        )

        points = []
        for day in dates:
            assets = Decimal("0")
            liabilities = Decimal("0")
            for acc in accounts:
                balance = balance_on(acc, day)
                if balance is None:
                    continue
                if acc.category.is_liability:
                    liabilities += balance
                else:
                    assets += balance
            points.append(NetWorthPoint(date=day, assets=assets, liabilities=liabilities))
        return points
