"""Abstract account store interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from finledger.domain.entities import Account, AuditEntry
from finledger.database.locking import store_lock


class AccountStore(ABC):
    """Abstract persistence interface for ledger accounts.

    Stores are read and written whole: callers load every account, change
    the in-memory list, and save it back. ``lock()`` guards that cycle.
    """

    @property
    @abstractmethod
    def identity(self) -> str:
        """Stable key identifying the underlying storage (URL or file path)."""
        pass

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Create tables or files the store needs."""
        pass

    @abstractmethod
    def load_accounts(self) -> list[Account]:
        """Load all accounts."""
        pass

    @abstractmethod
    def save_accounts(
        self, accounts: Sequence[Account], audit: Sequence[AuditEntry] = ()
    ) -> None:
        """Replace all stored accounts with the given ones.

        Args:
            accounts: Every account of the ledger
            audit: Entries appended to the audit log in the same write
        """
        pass

    @abstractmethod
    def load_audit_log(self) -> list[AuditEntry]:
        """Load the audit log, oldest entry first."""
        pass

    @property
    def lock_path(self) -> Optional[Path]:
        """Sidecar file locked while the store is being changed.

        None means the store cannot be shared with another process, and only
        threads of this process are serialized.
        """
        return None

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold the advisory lock for this store's identity."""
        with store_lock(self.identity, self.lock_path):
            yield
