"""Account domain service."""

from collections import Counter
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Sequence, TypeVar

from finledger.database.base import AccountStore
from finledger.domain.entities import (
    Account,
    AuditAction,
    AuditEntry,
    Category,
    HistorySource,
    MergedAccount,
)
from finledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_name_taken,
    account_not_found,
    merge_needs_two_accounts,
    nothing_to_unmerge,
)
from finledger.domain.ledger import (
    append_history,
    create_account,
    new_account_id,
    record_balance,
    replace_account,
    utc_now,
    validate_effective_date,
)
from finledger.logging_setup import get_logger

logger = get_logger("finledger.domain.account")

T = TypeVar("T")


@dataclass(frozen=True)
class MergeResult:
    """Result of merging duplicate accounts into one."""

    survivor: Account
    merged_names: tuple[str, ...]
    audit_entry: AuditEntry

    @property
    def merged_count(self) -> int:
        return len(self.merged_names)


@dataclass(frozen=True)
class UnmergeResult:
    """Result of restoring accounts absorbed by earlier merges."""

    source: Account
    restored: tuple[Account, ...]
    audit_entry: AuditEntry

    @property
    def restored_count(self) -> int:
        return len(self.restored)


def _find(accounts: Sequence[Account], account_id: str) -> Account:
    for acc in accounts:
        if acc.id == account_id:
            return acc
    raise NotFoundError(account_not_found(account_id))


def _name_in_use(accounts: Sequence[Account], name: str, exclude_id: Optional[str] = None) -> bool:
    folded = name.strip().lower()
    return any(
        key.strip().lower() == folded
        for acc in accounts
        if acc.id != exclude_id
        for key in acc.match_keys
    )


class AccountService:
    """Service for managing accounts outside of screenshot imports."""

    def __init__(self, store: AccountStore):
        """Initialize account service.

        Args:
            store: Account store instance
        """
        self.store = store

    def _mutate(
        self,
        change: Callable[[list[Account]], T],
        audit: Optional[Callable[[T], AuditEntry]] = None,
    ) -> T:
        """Run a change against all accounts under the store lock and save.

        Args:
            change: Edits the loaded accounts in place and returns a result
            audit: Builds the audit entry saved with the change from its result
        """
        with self.store.lock():
            accounts = self.store.load_accounts()
            result = change(accounts)
            entries = (audit(result),) if audit is not None else ()
            self.store.save_accounts(accounts, audit=entries)
            return result

    def list_accounts(self, category: Optional[Category] = None) -> list[Account]:
        """List accounts, grouped by category then name.

        Args:
            category: Optional category filter

        Returns:
            List of account entities
        """
        order = list(Category)
        accounts = self.store.load_accounts()
        if category is not None:
            accounts = [acc for acc in accounts if acc.category is category]
        return sorted(accounts, key=lambda acc: (order.index(acc.category), acc.label.lower()))

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        for acc in self.store.load_accounts():
            if acc.id == account_id:
                return acc
        return None

    def create_account(
        self,
        name: str,
        category: Category,
        balance: Decimal,
        effective_date: Optional[date] = None,
    ) -> Account:
        """Create an account by hand.

        Args:
            name: Account name
            category: Account category
            balance: Opening balance (non-negative; liabilities as magnitudes)
            effective_date: As-of date of the balance (defaults to today)

        Returns:
            The new account

        Raises:
            ValidationError: If the name is empty, the balance negative or the date in the future
            ConflictError: If the name is already used as a name or alias
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty")
        if balance < 0:
            raise ValidationError("Balance cannot be negative")
        effective_date = validate_effective_date(effective_date)

        def change(accounts: list[Account]) -> Account:
            if _name_in_use(accounts, name):
                raise ConflictError(account_name_taken(name))
            account = create_account(name, category, balance, effective_date, HistorySource.MANUAL)
            accounts.append(account)
            return account

        account = self._mutate(change)
        logger.info("Created account '%s' manually", account.name)
        return account

    def update_balance(
        self, account_id: str, balance: Decimal, effective_date: Optional[date] = None
    ) -> tuple[Account, bool]:
        """Record a manual balance.

        A backdated balance is added to history without replacing the
        current balance when a newer one exists.

        Returns:
            Tuple of (updated account, whether the current balance changed)

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the balance is negative or the date in the future
        """
        if balance < 0:
            raise ValidationError("Balance cannot be negative")
        effective_date = validate_effective_date(effective_date)

        def change(accounts: list[Account]) -> tuple[Account, bool]:
            updated, changed = record_balance(
                _find(accounts, account_id), balance, effective_date, HistorySource.MANUAL
            )
            replace_account(accounts, updated)
            return updated, changed

        return self._mutate(change)

    def set_display_name(self, account_id: str, display_name: Optional[str]) -> Account:
        """Set or clear (None or blank) the display name of an account.

        The original name and aliases are untouched, so later uploads still
        match the account.

        Raises:
            NotFoundError: If the account does not exist
        """
        cleaned = display_name.strip() if display_name else ""

        def change(accounts: list[Account]) -> Account:
            updated = replace(
                _find(accounts, account_id), display_name=cleaned or None, updated_at=utc_now()
            )
            replace_account(accounts, updated)
            return updated

        return self._mutate(change)

    def add_alias(self, account_id: str, alias: str) -> Account:
        """Add a previous name that future uploads should match.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the alias is empty
            ConflictError: If another account already uses the name
        """
        alias = alias.strip()
        if not alias:
            raise ValidationError("Alias cannot be empty")

        def change(accounts: list[Account]) -> Account:
            account = _find(accounts, account_id)
            if _name_in_use(accounts, alias, exclude_id=account_id):
                raise ConflictError(account_name_taken(alias))
            if any(key.lower() == alias.lower() for key in account.match_keys):
                return account
            updated = replace(
                account, previous_names=account.previous_names + (alias,), updated_at=utc_now()
            )
            replace_account(accounts, updated)
            return updated

        return self._mutate(change)

    def merge_accounts(self, account_ids: Sequence[str]) -> MergeResult:
        """Merge duplicate accounts into the most recently updated one.

        The surviving account keeps its id, name, category and balance. The
        names and aliases of the other accounts become aliases of the
        survivor, their history is folded into the survivor's, and a
        snapshot of each is kept so the merge can be undone. The merge is
        saved to the audit log together with the accounts.

        Raises:
            ValidationError: If fewer than two distinct accounts are given
            NotFoundError: If any account does not exist
        """
        ids = list(dict.fromkeys(account_ids))
        if len(ids) < 2:
            raise ValidationError(merge_needs_two_accounts(len(ids)))

        def change(accounts: list[Account]) -> MergeResult:
            selected = [_find(accounts, account_id) for account_id in ids]
            survivor = max(selected, key=lambda acc: acc.updated_at)
            absorbed = [acc for acc in selected if acc.id != survivor.id]
            now = utc_now()

            names = list(survivor.previous_names)
            history = survivor.history
            for acc in absorbed:
                for key in acc.match_keys:
                    if key != survivor.name and key not in names:
                        names.append(key)
                for entry in acc.history:
                    history = append_history(history, entry)

            merged = replace(
                survivor,
                previous_names=tuple(names),
                history=history,
                merged=survivor.merged
                + tuple(MergedAccount(account=acc, merged_at=now) for acc in absorbed),
                updated_at=now,
            )
            accounts[:] = [acc for acc in accounts if acc.id not in ids or acc.id == survivor.id]
            replace_account(accounts, merged)
            return MergeResult(
                survivor=merged,
                merged_names=tuple(acc.name for acc in absorbed),
                audit_entry=AuditEntry(
                    action=AuditAction.ACCOUNTS_MERGED,
                    timestamp=now,
                    account_id=merged.id,
                    account_name=merged.name,
                    related_ids=tuple(acc.id for acc in absorbed),
                    related_names=tuple(acc.name for acc in absorbed),
                ),
            )

        result = self._mutate(change, audit=lambda r: r.audit_entry)
        logger.info(
            "Merged %s into '%s'",
            ", ".join(f"'{name}'" for name in result.merged_names),
            result.survivor.name,
        )
        return result

    def unmerge_account(self, account_id: str) -> UnmergeResult:
        """Restore every account previously merged into this one.

        Restored accounts come back with their own ids and history as they
        were at merge time. Their names are removed from the source's aliases
        and their history entries from the source's history. The unmerge is
        saved to the audit log together with the accounts.

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the account has no merged accounts
        """

        def change(accounts: list[Account]) -> UnmergeResult:
            source = _find(accounts, account_id)
            if not source.merged:
                raise ValidationError(nothing_to_unmerge(account_id))

            existing_ids = {acc.id for acc in accounts}
            restored: list[Account] = []
            restored_keys: set[str] = set()
            contributed: Counter = Counter()
            for snapshot in source.merged:
                account = snapshot.account
                if account.id in existing_ids:
                    account = replace(account, id=new_account_id())
                restored.append(replace(account, updated_at=utc_now()))
                restored_keys.update(account.match_keys)
                contributed.update(account.history)

            history = []
            for entry in source.history:
                if contributed[entry] > 0:
                    contributed[entry] -= 1
                else:
                    history.append(entry)

            updated = replace(
                source,
                previous_names=tuple(n for n in source.previous_names if n not in restored_keys),
                history=tuple(history),
                merged=(),
                updated_at=utc_now(),
            )
            replace_account(accounts, updated)
            accounts.extend(restored)
            return UnmergeResult(
                source=updated,
                restored=tuple(restored),
                audit_entry=AuditEntry(
                    action=AuditAction.ACCOUNTS_UNMERGED,
                    timestamp=updated.updated_at,
                    account_id=updated.id,
                    account_name=updated.name,
                    related_ids=tuple(acc.id for acc in restored),
                    related_names=tuple(acc.name for acc in restored),
                ),
            )

        result = self._mutate(change, audit=lambda r: r.audit_entry)
        logger.info(
            "Restored %d account(s) from '%s'", result.restored_count, result.source.name
        )
        return result

    def audit_log(self, account_id: Optional[str] = None) -> list[AuditEntry]:
        """List merges and unmerges, newest first.

        Args:
            account_id: Only entries naming this account, as survivor, source,
                absorbed or recreated account

        Returns:
            List of audit entries
        """
        entries = self.store.load_audit_log()
        if account_id is not None:
            entries = [entry for entry in entries if entry.involves(account_id)]
        return list(reversed(entries))

    def delete_account(self, account_id: str) -> Account:
        """Delete an account.

        Returns:
            The deleted account

        Raises:
            NotFoundError: If the account does not exist
        """

        def change(accounts: list[Account]) -> Account:
            account = _find(accounts, account_id)
            accounts.remove(account)
            return account

        account = self._mutate(change)
        logger.info("Deleted account '%s'", account.name)
        return account
