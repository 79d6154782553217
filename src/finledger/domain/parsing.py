"""Screenshot text parsing.

Turns the raw text an OCR engine extracted from an account-aggregator
screenshot into account records. The pipeline is line based:

    normalize -> classify -> tokenize -> build_records

Aggregator apps list accounts under section headers ("Cash", "Investments",
"Real estate", "Liabilities"), each account line ending in its balance and
usually followed by a subtitle line (institution, "Individual", "2 days ago").
Subtitle lines either carry no amount or hit the skip list, so only the
account lines survive.

None of these functions raise on messy input: a line that cannot be
understood is skipped.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from functools import reduce
from typing import Iterable, Optional

from finledger.domain.entities import AccountRecord, Category
from finledger.logging_setup import get_logger
from finledger.utils.amount_parser import parse_amount, split_trailing_amount

logger = get_logger("finledger.domain.parsing")

_WHITESPACE_RE = re.compile(r"\s+")
_LOWERCASE_ICON_RE = re.compile(r"^[a-z]{1,3}(?=[A-Z])")
_LETTER_ICON_RE = re.compile(r"^([A-Z])\s")

# Single letters that are real words at the start of a name ("A Special Account")
PROTECTED_LEADING_LETTERS = frozenset({"a", "i"})

MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

SKIP_PHRASES = MONTH_NAMES + (
    "ago",
    "just now",
    "yesterday",
    "today",
    "apy",
    "employer plan",
    "wealthfront",
    "temporarily down",
    "all worth",
    "net worth",
    "goals",
    "redfin",
)

_SKIP_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(phrase) for phrase in SKIP_PHRASES) + r")\b"
)
_PERCENT_CHANGE_RE = re.compile(r"^[+\-]\s?\d+(?:\.\d+)?%")


class LineKind(Enum):
    """Classification of a normalized line."""

    CATEGORY = "category"
    SKIP = "skip"
    CANDIDATE = "candidate"


@dataclass(frozen=True)
class LineClassification:
    kind: LineKind
    category: Optional[Category] = None


@dataclass(frozen=True)
class Tokenized:
    """Name and non-negative balance split from a candidate line."""

    name: str
    balance: Decimal


@dataclass(frozen=True)
class ParsedScreenshot:
    """Everything extracted from one screenshot's text."""

    records: tuple[AccountRecord, ...]
    net_worth: Optional[Decimal] = None
    group_totals: dict[Category, Decimal] = field(default_factory=dict)
    lines_read: int = 0
    lines_skipped: int = 0


def normalize(raw_line: str) -> str:
    """Strip OCR noise from a single line.

    Collapses whitespace and removes icon glyphs that OCR reads as letters:
    one to three lowercase letters glued to a capitalised word
    ("anHome Projects" -> "Home Projects"), or a lone capital letter followed
    by a space ("G My Personal Cash Account" -> "My Personal Cash Account").
    A lone "A" or "I" is kept because it is usually a real word.

    The rules are applied until nothing changes, so normalizing twice gives
    the same result as normalizing once.
    """
    line = _WHITESPACE_RE.sub(" ", raw_line or "").strip()
    while True:
        cleaned = _LOWERCASE_ICON_RE.sub("", line, count=1)
        letter = _LETTER_ICON_RE.match(cleaned)
        if letter and letter.group(1).lower() not in PROTECTED_LEADING_LETTERS:
            cleaned = cleaned[letter.end():]
        cleaned = cleaned.strip()
        if cleaned == line:
            return line
        line = cleaned


def classify(line: str) -> LineClassification:
    """Decide whether a normalized line is a header, noise, or an account line.

    Headers are recognised by exact label equality only, after dropping the
    group total aggregators print beside them ("Cash  $10,000"). A name that
    merely contains a category word, like "Cash Account", stays a candidate.
    """
    text = line.strip()
    lowered = text.lower()
    if not lowered:
        return LineClassification(LineKind.SKIP)

    split = split_trailing_amount(text)
    label = split[0] if split is not None else text
    category = Category.from_label(label)
    if category is not None:
        return LineClassification(LineKind.CATEGORY, category)

    if _PERCENT_CHANGE_RE.match(lowered) or _SKIP_RE.search(lowered):
        return LineClassification(LineKind.SKIP)

    return LineClassification(LineKind.CANDIDATE)


def tokenize(line: str) -> Optional[Tokenized]:
    """Split a candidate line into its name and trailing balance.

    Returns None when the line has no trailing amount, the name is empty, or
    the amount is negative. Liabilities are listed as positive magnitudes;
    their sign comes from the category, never from the token.
    """
    split = split_trailing_amount(line.strip())
    if split is None:
        return None
    name, amount_text = split
    if not name:
        return None
    try:
        balance = parse_amount(amount_text)
    except ValueError:
        return None
    if balance < 0:
        return None
    return Tokenized(name=name, balance=balance)


def _fold_line(
    state: tuple[Optional[Category], tuple[AccountRecord, ...]], raw_line: str
) -> tuple[Optional[Category], tuple[AccountRecord, ...]]:
    current_category, records = state
    line = normalize(raw_line)
    classification = classify(line)

    if classification.kind is LineKind.CATEGORY:
        return classification.category, records
    if classification.kind is LineKind.SKIP or current_category is None:
        return current_category, records

    tokens = tokenize(line)
    if tokens is None:
        return current_category, records

    record = AccountRecord(name=tokens.name, balance=tokens.balance, category=current_category)
    return current_category, records + (record,)


def build_records(lines: Iterable[str]) -> list[AccountRecord]:
    """Build account records from OCR lines in one forward pass.

    The only state is the category of the nearest preceding header. Account
    lines seen before any header are dropped. Output order follows input
    order.
    """
    _, records = reduce(_fold_line, lines, (None, ()))
    return list(records)


def parse_screenshot_text(raw_text: str) -> ParsedScreenshot:
    """Parse the full OCR text of one screenshot.

    Besides the account records, picks up the headline net worth (the first
    line consisting only of an amount, before any section header) and the
    group total printed on each section header.
    """
    lines = (raw_text or "").splitlines()
    net_worth: Optional[Decimal] = None
    group_totals: dict[Category, Decimal] = {}
    seen_header = False
    skipped = 0

    for raw_line in lines:
        line = normalize(raw_line)
        if not line:
            continue
        classification = classify(line)
        split = split_trailing_amount(line)

        if classification.kind is LineKind.CATEGORY:
            seen_header = True
            if split is not None:
                try:
                    group_totals[classification.category] = parse_amount(split[1])
                except ValueError:
                    pass
            continue

        if classification.kind is LineKind.SKIP:
            skipped += 1
            continue

        if not seen_header and net_worth is None and split is not None and not split[0]:
            try:
                net_worth = parse_amount(split[1])
            except ValueError:
                pass
            continue

        if tokenize(line) is None:
            skipped += 1

    records = build_records(lines)
    logger.debug(
        "Parsed %d record(s) from %d line(s), %d skipped", len(records), len(lines), skipped
    )
    return ParsedScreenshot(
        records=tuple(records),
        net_worth=net_worth,
        group_totals=group_totals,
        lines_read=len(lines),
        lines_skipped=skipped,
    )
