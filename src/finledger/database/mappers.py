"""Mapper functions between domain entities, SQLAlchemy models and JSON.

The SQLAlchemy store converts rows with the ``*_to_domain`` / ``*_to_orm``
helpers. The encrypted file store and merge snapshots use the plain-dict
helpers, which keep amounts as strings so no precision is lost.
"""

from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any

from finledger.domain import entities as domain
from finledger.database.models import (
    Account as ORMAccount,
    AccountAlias as ORMAccountAlias,
    AuditLogEntry as ORMAuditLogEntry,
    HistoryEntry as ORMHistoryEntry,
    MergedAccount as ORMMergedAccount,
)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def history_entry_to_dict(entry: domain.HistoryEntry) -> dict[str, Any]:
    return {
        "date": entry.date.isoformat(),
        "balance": str(entry.balance),
        "source": entry.source.value,
    }


def history_entry_from_dict(data: dict[str, Any]) -> domain.HistoryEntry:
    return domain.HistoryEntry(
        date=date.fromisoformat(data["date"]),
        balance=Decimal(data["balance"]),
        source=domain.HistorySource(data["source"]),
    )


def merged_account_to_dict(merged: domain.MergedAccount) -> dict[str, Any]:
    return {
        "account": account_to_dict(merged.account),
        "mergedAt": merged.merged_at.isoformat(),
    }


def merged_account_from_dict(data: dict[str, Any]) -> domain.MergedAccount:
    return domain.MergedAccount(
        account=account_from_dict(data["account"]),
        merged_at=as_utc(datetime.fromisoformat(data["mergedAt"])),
    )


def account_to_dict(account: domain.Account) -> dict[str, Any]:
    """Convert a domain Account to a JSON-ready dict."""
    return {
        "id": account.id,
        "name": account.name,
        "displayName": account.display_name,
        "previousNames": list(account.previous_names),
        "category": account.category.value,
        "balance": str(account.balance),
        "createdAt": account.created_at.isoformat(),
        "updatedAt": account.updated_at.isoformat(),
        "history": [history_entry_to_dict(e) for e in account.history],
        "merged": [merged_account_to_dict(m) for m in account.merged],
    }


def account_from_dict(data: dict[str, Any]) -> domain.Account:
    """Convert a dict produced by account_to_dict back to a domain Account."""
    history = sorted(
        (history_entry_from_dict(e) for e in data.get("history", ())),
        key=lambda e: e.date,
    )
    return domain.Account(
        id=data["id"],
        name=data["name"],
        display_name=data.get("displayName"),
        previous_names=tuple(data.get("previousNames", ())),
        category=domain.Category(data["category"]),
        balance=Decimal(data["balance"]),
        created_at=as_utc(datetime.fromisoformat(data["createdAt"])),
        updated_at=as_utc(datetime.fromisoformat(data["updatedAt"])),
        history=tuple(history),
        merged=tuple(merged_account_from_dict(m) for m in data.get("merged", ())),
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    history = sorted(
        (
            domain.HistoryEntry(
                date=h.date,
                balance=Decimal(h.balance),
                source=domain.HistorySource(h.source),
            )
            for h in orm_account.history
        ),
        key=lambda e: e.date,
    )
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        display_name=orm_account.display_name,
        previous_names=tuple(alias.name for alias in orm_account.aliases),
        category=domain.Category(orm_account.category),
        balance=Decimal(orm_account.balance),
        created_at=as_utc(orm_account.created_at),
        updated_at=as_utc(orm_account.updated_at),
        history=tuple(history),
        merged=tuple(merged_account_from_dict(m.snapshot) for m in orm_account.merged),
    )


def account_to_orm(account: domain.Account) -> ORMAccount:
    """Build a SQLAlchemy Account (with children) from a domain Account."""
    return ORMAccount(
        id=account.id,
        name=account.name,
        display_name=account.display_name,
        category=account.category.value,
        balance=account.balance,
        created_at=account.created_at,
        updated_at=account.updated_at,
        aliases=[
            ORMAccountAlias(name=name, position=i) for i, name in enumerate(account.previous_names)
        ],
        history=[
            ORMHistoryEntry(date=e.date, balance=e.balance, source=e.source.value, position=i)
            for i, e in enumerate(account.history)
        ],
        merged=[
            ORMMergedAccount(snapshot=merged_account_to_dict(m), position=i)
            for i, m in enumerate(account.merged)
        ],
    )


def audit_entry_to_dict(entry: domain.AuditEntry) -> dict[str, Any]:
    return {
        "type": entry.action.value,
        "timestamp": entry.timestamp.isoformat(),
        "accountId": entry.account_id,
        "accountName": entry.account_name,
        "relatedAccountIds": list(entry.related_ids),
        "relatedAccountNames": list(entry.related_names),
    }


def audit_entry_from_dict(data: dict[str, Any]) -> domain.AuditEntry:
    return domain.AuditEntry(
        action=domain.AuditAction(data["type"]),
        timestamp=as_utc(datetime.fromisoformat(data["timestamp"])),
        account_id=data["accountId"],
        account_name=data["accountName"],
        related_ids=tuple(data.get("relatedAccountIds", ())),
        related_names=tuple(data.get("relatedAccountNames", ())),
    )


def audit_entry_to_domain(orm_entry: ORMAuditLogEntry) -> domain.AuditEntry:
    """Convert SQLAlchemy AuditLogEntry model to domain AuditEntry."""
    return domain.AuditEntry(
        action=domain.AuditAction(orm_entry.action),
        timestamp=as_utc(orm_entry.timestamp),
        account_id=orm_entry.account_id,
        account_name=orm_entry.account_name,
        related_ids=tuple(orm_entry.related_ids),
        related_names=tuple(orm_entry.related_names),
    )


def audit_entry_to_orm(entry: domain.AuditEntry) -> ORMAuditLogEntry:
    return ORMAuditLogEntry(
        action=entry.action.value,
        timestamp=entry.timestamp,
        account_id=entry.account_id,
        account_name=entry.account_name,
        related_ids=list(entry.related_ids),
        related_names=list(entry.related_names),
    )
