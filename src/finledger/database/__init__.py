"""Storage layer for finledger."""

from finledger.database.base import AccountStore
from finledger.database.factories import (
    create_encrypted_store,
    create_sqlite_store,
    create_store,
)

__all__ = ["AccountStore", "create_sqlite_store", "create_encrypted_store", "create_store"]
