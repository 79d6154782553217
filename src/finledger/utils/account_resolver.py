"""Utility for resolving account references to IDs."""

from finledger.domain.account import AccountService
from finledger.domain.errors import NotFoundError, ValidationError

# Shortest id prefix accepted from the command line
MIN_ID_PREFIX = 6


def resolve_account(account_service: AccountService, account: str) -> str:
    """Resolve an account reference to an account ID.

    The reference is tried, in order, as a full ID, a unique ID prefix, and
    then a name: original name, display name or previous name, compared
    case-insensitively.

    Args:
        account_service: AccountService instance
        account: Account ID, ID prefix or name

    Returns:
        Account ID

    Raises:
        NotFoundError: If no account matches
        ValidationError: If the reference matches more than one account
    """
    reference = account.strip()
    accounts = account_service.list_accounts()

    for acc in accounts:
        if acc.id == reference:
            return acc.id

    if len(reference) >= MIN_ID_PREFIX:
        by_prefix = [acc for acc in accounts if acc.id.startswith(reference.lower())]
        if len(by_prefix) == 1:
            return by_prefix[0].id

    folded = reference.lower()
    by_name = [
        acc
        for acc in accounts
        if folded == acc.label.lower() or any(folded == key.lower() for key in acc.match_keys)
    ]
    if len(by_name) == 1:
        return by_name[0].id
    if len(by_name) > 1:
        ids = ", ".join(acc.id for acc in by_name)
        raise ValidationError(f"Account '{account}' is ambiguous; use one of the IDs: {ids}")

    raise NotFoundError(f"Account '{account}' not found")
