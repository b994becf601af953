"""Built-in filters.

Filters rewrite input values before constraints are checked. Each filter is a
plain function named ``filter_<name>``; the registry exposes it under
``<name>`` so profiles can list filters by name:

    {"filters": ["trim"], "field_filters": {"zip": "digit"}}

Numeric filters extract the first number of the requested shape from their
input and return an empty string when there is none, which makes the field
absent for the rest of the evaluation.
"""

import re
from collections.abc import Callable
from functools import wraps
from typing import Any


def _textual(func: Callable[[str], str]) -> Callable[[Any], str]:
    """Coerce non-string input (numbers from JSON, for example) to str."""

    @wraps(func)
    def wrapper(value: Any) -> str:
        if not isinstance(value, str):
            value = str(value)
        return func(value)

    return wrapper


def _extract(value: str, keep: str, pattern: str) -> str:
    value = re.sub(f"[^{keep}]", "", value)
    match = re.search(pattern, value)
    return match.group(1) if match else ""


@_textual
def filter_trim(value: str) -> str:
    """Remove white space at the front and end of the input."""
    return value.strip()


@_textual
def filter_strip(value: str) -> str:
    """Replace runs of white space by a single space."""
    return re.sub(r"\s+", " ", value)


@_textual
def filter_digit(value: str) -> str:
    """Remove non digit characters from the input."""
    return re.sub(r"\D", "", value)


@_textual
def filter_alphanum(value: str) -> str:
    """Remove non alphanumeric characters from the input."""
    return re.sub(r"\W", "", value)


@_textual
def filter_integer(value: str) -> str:
    """Extract a valid integer number from the input."""
    return _extract(value, r"0-9+\-", r"([-+]?\d+)")


@_textual
def filter_pos_integer(value: str) -> str:
    """Extract a valid positive integer number from the input."""
    return _extract(value, r"0-9+", r"(\+?\d+)")


@_textual
def filter_neg_integer(value: str) -> str:
    """Extract a valid negative integer number from the input."""
    return _extract(value, r"0-9\-", r"(-\d+)")


@_textual
def filter_decimal(value: str) -> str:
    """Extract a valid decimal number from the input; a comma is a decimal point."""
    return _extract(value.replace(",", "."), r"0-9.+\-", r"([-+]?\d+\.?\d*)")


@_textual
def filter_pos_decimal(value: str) -> str:
    """Extract a valid positive decimal number from the input."""
    return _extract(value.replace(",", "."), r"0-9.+", r"(\+?\d+\.?\d*)")


@_textual
def filter_neg_decimal(value: str) -> str:
    """Extract a valid negative decimal number from the input."""
    return _extract(value.replace(",", "."), r"0-9.\-", r"(-\d+\.?\d*)")


@_textual
def filter_dollars(value: str) -> str:
    """Extract a dollar amount with at most two decimals from the input."""
    return _extract(value.replace(",", "."), r"0-9.+\-", r"(\d+\.?\d?\d?)")


@_textual
def filter_phone(value: str) -> str:
    """Keep only characters valid in a phone number.

    Digits, space, comma, minus, parentheses, period and pound (#) are kept.
    """
    return re.sub(r"[^\d,().\s\-#]", "", value)


@_textual
def filter_sql_wildcard(value: str) -> str:
    """Turn the shell glob wildcard (*) into the SQL LIKE wildcard (%)."""
    return value.replace("*", "%")


@_textual
def filter_quotemeta(value: str) -> str:
    """Backslash-escape every non-word character."""
    return re.sub(r"(\W)", r"\\\1", value)


@_textual
def filter_lc(value: str) -> str:
    """Convert to lowercase."""
    return value.lower()


@_textual
def filter_uc(value: str) -> str:
    """Convert to uppercase."""
    return value.upper()


@_textual
def filter_ucfirst(value: str) -> str:
    """Uppercase the first character."""
    return value[:1].upper() + value[1:]
