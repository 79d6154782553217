"""Fuzzy matching of parsed records against existing accounts.

OCR output drifts between screenshots: names get truncated, pick up or lose
an icon letter, or gain stray punctuation. Matching therefore runs three
tiers, strongest first, and the first tier that finds any account wins:

1. exact: equal names
2. substring: one name contains the other (truncation in either direction)
3. normalized: as 1 and 2 after dropping punctuation and extra whitespace

Each tier is a pure predicate over two strings so it can be tested and tuned
on its own. Only ``Account.name`` and ``Account.previous_names`` are compared;
a display name set by the admin never takes part.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from finledger.domain.entities import Account, AccountRecord
from finledger.logging_setup import get_logger

logger = get_logger("finledger.domain.matching")

_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z\s]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class MatchPolicy:
    """Tunable matching behavior.

    Attributes:
        case_sensitive: Compare names with their original case. Off by default,
            since OCR often changes the case of a single letter.
    """

    case_sensitive: bool = False

    def fold(self, text: str) -> str:
        text = text.strip()
        return text if self.case_sensitive else text.lower()


class MatchTier(Enum):
    EXACT = 1
    SUBSTRING = 2
    NORMALIZED = 3


def normalize_for_match(text: str) -> str:
    """Drop non-alphanumerics and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", _NON_ALNUM_RE.sub("", text)).strip()


def exact_match(candidate: str, key: str, policy: MatchPolicy) -> bool:
    a, b = policy.fold(candidate), policy.fold(key)
    return bool(a) and a == b


def substring_match(candidate: str, key: str, policy: MatchPolicy) -> bool:
    a, b = policy.fold(candidate), policy.fold(key)
    if not a or not b:
        return False
    return a in b or b in a


def normalized_match(candidate: str, key: str, policy: MatchPolicy) -> bool:
    a = policy.fold(normalize_for_match(candidate))
    b = policy.fold(normalize_for_match(key))
    if not a or not b:
        return False
    return a == b or a in b or b in a


MatchPredicate = Callable[[str, str, MatchPolicy], bool]

MATCH_TIERS: tuple[tuple[MatchTier, MatchPredicate], ...] = (
    (MatchTier.EXACT, exact_match),
    (MatchTier.SUBSTRING, substring_match),
    (MatchTier.NORMALIZED, normalized_match),
)


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one record.

    ``candidates`` lists every account that qualified at the winning tier,
    most recently updated first; ``account`` is the first of them.
    """

    account: Optional[Account] = None
    tier: Optional[MatchTier] = None
    candidates: tuple[Account, ...] = ()

    @property
    def matched(self) -> bool:
        return self.account is not None

    @property
    def is_ambiguous(self) -> bool:
        return len(self.candidates) > 1


def account_matches(
    name: str, account: Account, predicate: MatchPredicate, policy: MatchPolicy
) -> bool:
    """Check a name against an account's original name and aliases."""
    return any(predicate(name, key, policy) for key in account.match_keys)


def match_account(
    record: AccountRecord,
    existing_accounts: Optional[Sequence[Account]],
    policy: MatchPolicy = MatchPolicy(),
) -> MatchResult:
    """Find the existing account a parsed record belongs to.

    Args:
        record: Parsed account record
        existing_accounts: Accounts to search
        policy: Matching options

    Returns:
        MatchResult; ``account`` is None when nothing qualifies and a new
        account should be created.

    Raises:
        TypeError: If existing_accounts is None
    """
    if existing_accounts is None:
        raise TypeError("existing_accounts must be a sequence of accounts, not None")

    for tier, predicate in MATCH_TIERS:
        candidates = [
            acc for acc in existing_accounts if account_matches(record.name, acc, predicate, policy)
        ]
        if not candidates:
            continue

        # Most recently updated wins a tie; sorted() is stable for equal stamps
        candidates = sorted(candidates, key=lambda acc: acc.updated_at, reverse=True)
        result = MatchResult(account=candidates[0], tier=tier, candidates=tuple(candidates))
        if result.is_ambiguous:
            logger.warning(
                "Ambiguous %s match for '%s': %s; using '%s'",
                tier.name.lower(),
                record.name,
                ", ".join(f"'{acc.name}'" for acc in candidates),
                candidates[0].name,
            )
        return result

    return MatchResult()
