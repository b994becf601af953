"""Built-in constraints.

Every built-in constraint is a matcher named ``match_<name>``: it returns the
value to keep (used when untainting) or None when the input is rejected. A
plain predicate ``valid_<name>`` is derived from each matcher for direct use.
The registry exposes both under ``<name>``:

    {"constraints": {"email": "email", "zip": "zip_or_postcode"}}

Validator packages follow the same naming convention; see
Registry.merge_package.
"""

import re
from collections.abc import Callable
from datetime import date
from typing import Any

_STATES = frozenset(
    """
    AL AK AZ AR CA CO CT DE FL GA HI ID IL IN IA KS KY LA ME MD
    MA MI MN MS MO MT NE NV NH NJ NM NY NC ND OH OK OR PA PR RI
    SC SD TN TX UT VT VA WA WV WI WY DC AP FP FPO APO GU VI
    """.split()
)

_PROVINCES = frozenset("AB BC MB NB NF NS NT ON PE QC SK YT YK".split())

_EMAIL_RE = re.compile(r"[\040-\176]+@[-A-Za-z0-9.]+\.[A-Za-z]+")
_POSTCODE_RE = re.compile(r"^[ABCEGHJKLMNPRSTVXYabceghjklmnprstvxy]\d[A-Za-z][- ]?\d[A-Za-z]\d$")
_ZIP_RE = re.compile(r"^\s*(\d{5}(?:-\d{4})?)\s*$")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def match_email(value: Any) -> str | None:
    """Check that the input LOOKS LIKE an email address.

    The input must contain an @ followed by a two level domain name. The
    address part is checked liberally: ``%?&/$()@nowhere.net`` passes.
    """
    match = _EMAIL_RE.search(_text(value))
    return match.group(0) if match else None


def match_state(value: Any) -> str | None:
    """Two letter abbreviation of an American state (case-insensitive)."""
    text = _text(value).strip()
    return text if text.upper() in _STATES else None


def match_province(value: Any) -> str | None:
    """Two letter abbreviation of a Canadian province (case-insensitive)."""
    text = _text(value).strip()
    return text if text.upper() in _PROVINCES else None


def match_state_or_province(value: Any) -> str | None:
    """American state or Canadian province abbreviation."""
    return match_state(value) or match_province(value)


def match_postcode(value: Any) -> str | None:
    """Canadian postal code; punctuation and underscores are ignored."""
    text = re.sub(r"[_\W]+", "", _text(value))
    return text if _POSTCODE_RE.match(text) else None


def match_zip(value: Any) -> str | None:
    """American zip code: 5 digits with an optional 4 digit mailbox number."""
    match = _ZIP_RE.match(_text(value))
    return match.group(1) if match else None


def match_zip_or_postcode(value: Any) -> str | None:
    """American zip code or Canadian postal code."""
    return match_zip(value) or match_postcode(value)


def match_phone(value: Any) -> str | None:
    """Looks like a phone number: at least 6 digits."""
    text = _text(value)
    return text if sum(ch.isdigit() for ch in text) >= 6 else None


def match_american_phone(value: Any) -> str | None:
    """Possible North American phone number: at least 7 digits."""
    text = _text(value)
    return text if sum(ch.isdigit() for ch in text) >= 7 else None


def match_cc_number(the_card: Any, card_type: Any = None) -> str | None:  # noqa: C901
    """Plausible credit card number for the given card type.

    Takes two parameters, so declare it with a structured constraint:

        {"constraint": "cc_number", "params": ["cc_no", "cc_type"]}

    The prefix and number of digits must fit the card type (Amex, Discover,
    MasterCard or Visa) and the checksum must match. This only weeds out
    typos; it does not check that an account exists.
    """
    card = _text(the_card)
    kind = _text(card_type)
    if not card:
        return None
    if not re.match(r"[admv]", kind, re.IGNORECASE):
        return None

    kind = kind[0].lower()
    if (
        (kind == "v" and card[:1] != "4")
        or (kind == "m" and card[:1] != "5")
        or (kind == "d" and card[:4] != "6011")
        or (kind == "a" and card[:2] not in ("34", "37"))
    ):
        return None

    number = re.sub(r"\s", "", card)
    if not re.fullmatch(r"\d+", number):
        return None

    first = int(number[0])
    index = len(number) - 1
    if (
        (first == 3 and index != 14)
        or (first == 4 and index not in (12, 15))
        or (first == 5 and index != 15)
        or (first == 6 and index not in (13, 15))
    ):
        return None

    total = 0
    multiplier = 2
    for position in range(index - 1, -1, -1):
        product = multiplier * int(number[position])
        total += product - 9 if product > 9 else product
        multiplier = 3 - multiplier
    total %= 10
    if total:
        total = 10 - total

    return number if total == int(number[-1]) else None


def match_cc_exp(value: Any) -> str | None:
    """Expiry date as MM/YY or MM/YYYY that is not in the past."""
    text = _text(value)
    month_text, _, year_text = text.partition("/")
    if not month_text.isdigit() or not year_text.isdigit():
        return None

    month = int(month_text)
    year = int(year_text)
    if month < 1 or month > 12:
        return None
    if year < 1900:
        year += 2000 if year < 70 else 1900

    today = date.today()
    if year < today.year or (year == today.year and month < today.month):
        return None
    return text


def match_cc_type(value: Any) -> str | None:
    """Card type starting with M(asterCard), V(isa), A(merican Express) or D(iscover)."""
    text = _text(value)
    return text if re.match(r"[MVAD]", text, re.IGNORECASE) else None


def _predicate(matcher: Callable[..., Any]) -> Callable[..., bool]:
    def predicate(*args: Any) -> bool:
        return matcher(*args) is not None

    predicate.__name__ = matcher.__name__.replace("match_", "valid_", 1)
    predicate.__doc__ = matcher.__doc__
    return predicate


valid_email = _predicate(match_email)
valid_state = _predicate(match_state)
valid_province = _predicate(match_province)
valid_state_or_province = _predicate(match_state_or_province)
valid_postcode = _predicate(match_postcode)
valid_zip = _predicate(match_zip)
valid_zip_or_postcode = _predicate(match_zip_or_postcode)
valid_phone = _predicate(match_phone)
valid_american_phone = _predicate(match_american_phone)
valid_cc_number = _predicate(match_cc_number)
valid_cc_exp = _predicate(match_cc_exp)
valid_cc_type = _predicate(match_cc_type)
