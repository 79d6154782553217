"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested account does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as a duplicate account name."""


class StorageError(DomainError):
    """Ledger data could not be read or written."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_name_taken(name: str) -> str:
    """Return message for a name already used as a name or alias."""
    return f"Account with name '{name}' already exists"


def future_effective_date(effective_date) -> str:
    """Return message for an as-of date after today."""
    return f"Effective date {effective_date.isoformat()} is in the future"


def merge_needs_two_accounts(count: int) -> str:
    """Return message when fewer than two accounts are given to merge."""
    return f"At least two accounts are required to merge (got {count})"


def nothing_to_unmerge(account_id: str) -> str:
    """Return message when an account has no merged snapshots."""
    return f"Account {account_id} has no merged accounts to restore"


def unsupported_image(path: str, reason: str) -> str:
    """Return message for an upload that is not an accepted image file."""
    return f"Unsupported screenshot '{path}': {reason}"
