"""Amount parsing utilities."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import re

# Trailing amount at the end of an OCR line, preceded by whitespace or the
# start of the line: "$1,234.56", "1,234", "-$500", "$-500", "1234", "(12.00)".
# A minus sign must touch the amount or its currency symbol; in
# "Credit Card - $500" the dash is a separator.
TRAILING_AMOUNT_RE = re.compile(
    r"(?:^|(?<=\s))"
    r"(?P<amount>\(?-?[$€£¥]?\s?-?\d{1,3}(?:,\d{3})+(?:\.\d+)?\)?"
    r"|\(?-?[$€£¥]?\s?-?\d+(?:\.\d+)?\)?)"
    r"\s*$"
)

# Dash, colon or bar left between a name and its amount
_SEPARATOR_TAIL_RE = re.compile(r"[\s\-–—:|]+$")

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round an amount to whole cents, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "$-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount, rounded to cents

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥\s]", "", amount_str)
    amount_str = amount_str.replace(",", "")

    # A sign may sit on either side of the currency symbol
    if amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]

    if not re.fullmatch(r"\d+(?:\.\d+)?", amount_str):
        raise ValueError(f"Could not parse amount '{amount_str}'")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    amount = to_cents(amount)
    return -amount if is_negative else amount


def split_trailing_amount(line: str) -> tuple[str, str] | None:
    """Split a line into (prefix, amount text) when it ends in an amount.

    Returns None when the line has no trailing amount token. A separator
    between the prefix and the amount ("Credit Card - $500") is dropped.
    """
    match = TRAILING_AMOUNT_RE.search(line)
    if match is None:
        return None
    prefix = _SEPARATOR_TAIL_RE.sub("", line[: match.start()])
    return prefix.strip(), match.group("amount")
