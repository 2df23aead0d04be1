"""
Balance normalizer for comparing statement balances as literal text.

Balances are never parsed into numbers. A raw balance such as "R$ 74.710,15"
is reduced to the digits and decimal commas it contains ("74710,15") so that
differently formatted renderings of the same printed value compare equal,
while any difference in the digits themselves (including trailing zeros)
keeps two balances apart.
"""
import re
from typing import Optional

# Anything that is not an ASCII digit or a comma
_NON_BALANCE_CHARS = re.compile(r'[^0-9,]')


def normalize_balance(raw_balance_text: Optional[str]) -> str:
    """
    Reduce a raw balance string to its comparable form.

    Handles:
    - Thousands separators: "2.417.764,24" -> "2417764,24"
    - Currency symbols and codes: "R$ 1.000,00" -> "1000,00"
    - Spacing and letters: "1 000,00 CR" -> "1000,00"

    Every comma is kept, so "1,000,00" stays "1,000,00" and will not match
    a cleanly formatted value.

    Args:
        raw_balance_text: Balance exactly as extracted from the document

    Returns:
        String of ASCII digits and commas, empty for empty input
    """
    if not raw_balance_text:
        return ""
    return _NON_BALANCE_CHARS.sub('', str(raw_balance_text))


def has_balance_digits(raw_balance_text: Optional[str]) -> bool:
    """
    Check whether a raw balance contains at least one digit.

    Args:
        raw_balance_text: A candidate balance string

    Returns:
        True if the normalized form has a digit, False otherwise
    """
    return any(ch.isdigit() for ch in normalize_balance(raw_balance_text))
