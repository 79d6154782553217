"""Ledger updates from parsed screenshot records."""

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, UTC
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from finledger.database.base import AccountStore
from finledger.domain.entities import (
    MAX_HISTORY_ENTRIES,
    Account,
    AccountRecord,
    Category,
    HistoryEntry,
    HistorySource,
)
from finledger.domain.errors import ValidationError, future_effective_date
from finledger.domain.matching import MatchPolicy, MatchResult, match_account
from finledger.logging_setup import get_logger
from finledger.utils.amount_parser import to_cents

logger = get_logger("finledger.domain.ledger")


class OutcomeAction(Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class RecordOutcome:
    """What happened to one parsed record."""

    action: OutcomeAction
    account_id: str
    record: AccountRecord
    match: Optional[MatchResult] = None
    balance_changed: bool = True


@dataclass(frozen=True)
class ImportSummary:
    """Result of applying one upload to the ledger."""

    outcomes: tuple[RecordOutcome, ...]
    accounts: tuple[Account, ...]

    @property
    def created(self) -> int:
        return sum(1 for o in self.outcomes if o.action is OutcomeAction.CREATED)

    @property
    def updated(self) -> int:
        return sum(1 for o in self.outcomes if o.action is OutcomeAction.UPDATED)

    @property
    def ambiguous(self) -> tuple[RecordOutcome, ...]:
        return tuple(o for o in self.outcomes if o.match is not None and o.match.is_ambiguous)

    @property
    def net_worth(self) -> Decimal:
        return sum((acc.signed_balance for acc in self.accounts), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.outcomes

    def describe(self) -> str:
        """One-line summary for the admin, e.g. '2 new account(s) created, 5 updated'."""
        return f"{self.created} new account(s) created, {self.updated} updated"


def new_account_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(UTC)


def append_history(
    history: Sequence[HistoryEntry], entry: HistoryEntry
) -> tuple[HistoryEntry, ...]:
    """Add an entry, keep date order, and evict the oldest past the cap."""
    entries = sorted([*history, entry], key=lambda e: e.date)
    if len(entries) > MAX_HISTORY_ENTRIES:
        entries = entries[-MAX_HISTORY_ENTRIES:]
    return tuple(entries)


def record_balance(
    account: Account,
    balance: Decimal,
    effective_date: date,
    source: HistorySource,
    now: Optional[datetime] = None,
) -> tuple[Account, bool]:
    """Record a balance snapshot on an account.

    The current balance only moves when the snapshot is not older than the
    newest one already recorded; a backdated snapshot lands in history only.
    The balance is rounded to cents.

    Returns:
        Tuple of (updated account, whether the current balance changed)
    """
    balance = to_cents(balance)
    latest = account.balance_date
    moves_balance = latest is None or effective_date >= latest
    history = append_history(account.history, HistoryEntry(effective_date, balance, source))
    updated = replace(
        account,
        balance=balance if moves_balance else account.balance,
        history=history,
        updated_at=now or utc_now(),
    )
    return updated, moves_balance


def create_account(
    name: str,
    category: Category,
    balance: Decimal,
    effective_date: date,
    source: HistorySource,
    now: Optional[datetime] = None,
) -> Account:
    """Build a new account seeded with one history entry, rounded to cents."""
    stamp = now or utc_now()
    balance = to_cents(balance)
    return Account(
        id=new_account_id(),
        name=name,
        category=category,
        balance=balance,
        created_at=stamp,
        updated_at=stamp,
        history=(HistoryEntry(effective_date, balance, source),),
    )


def replace_account(accounts: list[Account], account: Account) -> None:
    """Swap in an account by id, appending it when the id is new."""
    for i, existing in enumerate(accounts):
        if existing.id == account.id:
            accounts[i] = account
            return
    accounts.append(account)


def validate_effective_date(effective_date: Optional[date]) -> date:
    """Default to today and reject dates in the future."""
    today = date.today()
    if effective_date is None:
        return today
    if effective_date > today:
        raise ValidationError(future_effective_date(effective_date))
    return effective_date


class Ledger:
    """In-memory snapshot of all accounts for one batch of updates.

    Records are applied one after another against the same list, so an
    account created by an earlier record is visible to later ones.
    """

    def __init__(self, accounts: Iterable[Account], policy: MatchPolicy = MatchPolicy()):
        self._accounts: list[Account] = list(accounts)
        self.policy = policy

    @property
    def accounts(self) -> tuple[Account, ...]:
        return tuple(self._accounts)

    def apply_record(self, record: AccountRecord, effective_date: date) -> RecordOutcome:
        """Fold one record into the ledger.

        Args:
            record: Parsed account record
            effective_date: Date the screenshot balances are valid for

        Returns:
            RecordOutcome describing whether an account was created or updated
        """
        match = match_account(record, self._accounts, self.policy)

        if match.account is None:
            account = create_account(
                name=record.name,
                category=record.category,
                balance=record.balance,
                effective_date=effective_date,
                source=HistorySource.SCREENSHOT,
            )
            self._accounts.append(account)
            logger.info("Created account '%s' (%s)", account.name, account.category.value)
            return RecordOutcome(
                action=OutcomeAction.CREATED,
                account_id=account.id,
                record=record,
                match=match,
            )

        updated, changed = record_balance(
            match.account, record.balance, effective_date, HistorySource.SCREENSHOT
        )
        replace_account(self._accounts, updated)
        logger.info(
            "Updated account '%s' from '%s' via %s match%s",
            updated.name,
            record.name,
            match.tier.name.lower(),
            "" if changed else " (history only, older than current balance)",
        )
        return RecordOutcome(
            action=OutcomeAction.UPDATED,
            account_id=updated.id,
            record=record,
            match=match,
            balance_changed=changed,
        )

    def apply_records(
        self, records: Iterable[AccountRecord], effective_date: date
    ) -> list[RecordOutcome]:
        """Apply records in order and return one outcome per record."""
        return [self.apply_record(record, effective_date) for record in records]


class LedgerService:
    """Service for applying parsed records to a persisted account store."""

    def __init__(self, store: AccountStore, policy: MatchPolicy = MatchPolicy()):
        """Initialize ledger service.

        Args:
            store: Account store instance
            policy: Matching options
        """
        self.store = store
        self.policy = policy

    def import_records(
        self, records: Sequence[AccountRecord], effective_date: Optional[date] = None
    ) -> ImportSummary:
        """Apply one upload's records under the store lock.

        Args:
            records: Parsed records, in screenshot order
            effective_date: As-of date of the balances (defaults to today)

        Returns:
            ImportSummary with per-record outcomes and the saved accounts

        Raises:
            ValidationError: If effective_date is in the future
        """
        effective_date = validate_effective_date(effective_date)

        with self.store.lock():
            accounts = self.store.load_accounts()
            if not records:
                logger.info("No account records to import")
                return ImportSummary(outcomes=(), accounts=tuple(accounts))

            ledger = Ledger(accounts, self.policy)
            outcomes = ledger.apply_records(records, effective_date)
            self.store.save_accounts(ledger.accounts)

        summary = ImportSummary(outcomes=tuple(outcomes), accounts=ledger.accounts)
        logger.info("Import as of %s: %s", effective_date.isoformat(), summary.describe())
        return summary
