"""Domain model entities for finledger.

These are pure data classes representing ledger concepts, independent of the
storage backend. Both the SQLAlchemy store and the encrypted file store map
to and from these types, so the parsing and matching logic never sees a
database row.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

MAX_HISTORY_ENTRIES = 1000


class Category(Enum):
    """Top-level balance-sheet grouping of an account."""

    CASH = "cash"
    INVESTMENTS = "investments"
    REAL_ESTATE = "real_estate"
    LIABILITIES = "liabilities"

    @property
    def is_liability(self) -> bool:
        return self is Category.LIABILITIES

    @property
    def title(self) -> str:
        """Human-readable label, e.g. 'Real estate'."""
        return self.value.replace("_", " ").capitalize()

    @classmethod
    def from_label(cls, label: str) -> Optional["Category"]:
        """Map a header label or known synonym to a category.

        Matching is exact on the lowercased, trimmed label. Returns None for
        anything else so callers can keep their current category.
        """
        return _CATEGORY_LABELS.get(label.strip().lower())


_CATEGORY_LABELS = {
    "cash": Category.CASH,
    "investments": Category.INVESTMENTS,
    "investment": Category.INVESTMENTS,
    "real estate": Category.REAL_ESTATE,
    "real_estate": Category.REAL_ESTATE,
    "real-estate": Category.REAL_ESTATE,
    "realestate": Category.REAL_ESTATE,
    "liabilities": Category.LIABILITIES,
    "liability": Category.LIABILITIES,
    "debts": Category.LIABILITIES,
    "debt": Category.LIABILITIES,
}


class HistorySource(Enum):
    """Where a balance snapshot came from."""

    MANUAL = "manual"
    SCREENSHOT = "screenshot"


@dataclass(frozen=True)
class AccountRecord:
    """Account line parsed from one screenshot. Never persisted."""

    name: str
    balance: Decimal
    category: Category


@dataclass(frozen=True)
class HistoryEntry:
    """Balance of an account as of an effective date."""

    date: date
    balance: Decimal
    source: HistorySource


@dataclass(frozen=True)
class Account:
    """Persistent ledger account."""

    id: str
    name: str
    category: Category
    balance: Decimal
    created_at: datetime
    updated_at: datetime
    display_name: Optional[str] = None
    previous_names: tuple[str, ...] = ()
    history: tuple[HistoryEntry, ...] = ()
    merged: tuple["MergedAccount", ...] = ()

    @property
    def label(self) -> str:
        """Name shown to the admin: display name if set, else the original name."""
        return self.display_name or self.name

    @property
    def match_keys(self) -> tuple[str, ...]:
        """Names the matcher may compare against (never the display name)."""
        return (self.name,) + self.previous_names

    @property
    def balance_date(self) -> Optional[date]:
        """Effective date of the newest history entry."""
        if not self.history:
            return None
        return self.history[-1].date

    @property
    def signed_balance(self) -> Decimal:
        """Balance as it contributes to net worth."""
        return -self.balance if self.category.is_liability else self.balance


@dataclass(frozen=True)
class MergedAccount:
    """Snapshot of an account absorbed by a merge, kept so it can be restored."""

    account: Account
    merged_at: datetime


class AuditAction(Enum):
    """Kind of ledger-wide change recorded in the audit log."""

    ACCOUNTS_MERGED = "accounts_merged"
    ACCOUNTS_UNMERGED = "accounts_unmerged"


@dataclass(frozen=True)
class AuditEntry:
    """Persisted record of a merge or unmerge.

    ``account_id``/``account_name`` name the surviving (merge) or source
    (unmerge) account. ``related_ids``/``related_names`` list the accounts
    absorbed by the merge or recreated by the unmerge.
    """

    action: AuditAction
    timestamp: datetime
    account_id: str
    account_name: str
    related_ids: tuple[str, ...] = ()
    related_names: tuple[str, ...] = ()

    def involves(self, account_id: str) -> bool:
        return account_id == self.account_id or account_id in self.related_ids


@dataclass(frozen=True)
class NetWorthPoint:
    """Aggregated balances across all accounts on one date."""

    date: date
    assets: Decimal
    liabilities: Decimal

    @property
    def net_worth(self) -> Decimal:
        return self.assets - self.liabilities


@dataclass(frozen=True)
class NetWorthReport:
    """Current totals per category and overall."""

    totals: dict[Category, Decimal] = field(default_factory=dict)
    account_count: int = 0

    @property
    def assets(self) -> Decimal:
        return sum(
            (amount for category, amount in self.totals.items() if not category.is_liability),
            Decimal("0"),
        )

    @property
    def liabilities(self) -> Decimal:
        return self.totals.get(Category.LIABILITIES, Decimal("0"))

    @property
    def net_worth(self) -> Decimal:
        return self.assets - self.liabilities
