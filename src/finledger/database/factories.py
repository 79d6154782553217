"""Store factory functions."""

import os
from pathlib import Path
from typing import Optional

from finledger.database.base import AccountStore
from finledger.database.encrypted_file import EncryptedFileAccountStore
from finledger.database.sqlalchemy_db import SQLAlchemyAccountStore
from finledger.domain.errors import ValidationError

STORE_BACKENDS = ("sqlite", "encrypted")


def _default_dir() -> Path:
    """Return ~/.finledger, creating it if needed."""
    data_dir = Path.home() / ".finledger"
    data_dir.mkdir(exist_ok=True)
    return data_dir


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyAccountStore:
    """Create a SQLite-backed account store.

    Args:
        database_path: Path to SQLite database file. If None, checks FINLEDGER_DB_PATH
            environment variable, then defaults to ~/.finledger/finledger.db

    Returns:
        SQLAlchemyAccountStore configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("FINLEDGER_DB_PATH")

    if database_path is None:
        database_path = str(_default_dir() / "finledger.db")

    return SQLAlchemyAccountStore(f"sqlite:///{database_path}")


def create_encrypted_store(
    data_path: Optional[str] = None, key_path: Optional[str] = None
) -> EncryptedFileAccountStore:
    """Create an encrypted JSON file account store.

    Args:
        data_path: Ledger file path. Falls back to FINLEDGER_DATA_PATH, then
            ~/.finledger/finance_data
        key_path: Key file path. Falls back to FINLEDGER_KEY_PATH, then
            ~/.finledger/.finance_key

    Returns:
        EncryptedFileAccountStore instance
    """
    if data_path is None:
        data_path = os.environ.get("FINLEDGER_DATA_PATH")
    if key_path is None:
        key_path = os.environ.get("FINLEDGER_KEY_PATH")

    if data_path is None:
        data_path = str(_default_dir() / "finance_data")
    if key_path is None:
        key_path = str(_default_dir() / ".finance_key")

    return EncryptedFileAccountStore(data_path=data_path, key_path=key_path)


def create_store(
    backend: str = "sqlite",
    database_path: Optional[str] = None,
    data_path: Optional[str] = None,
    key_path: Optional[str] = None,
) -> AccountStore:
    """Create a store for the named backend ('sqlite' or 'encrypted').

    Raises:
        ValidationError: If the backend name is unknown
    """
    if backend == "sqlite":
        return create_sqlite_store(database_path=database_path)
    if backend == "encrypted":
        return create_encrypted_store(data_path=data_path, key_path=key_path)
    raise ValidationError(
        f"Unknown store backend '{backend}'. Supported backends: {', '.join(STORE_BACKENDS)}"
    )
