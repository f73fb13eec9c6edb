"""
Normalization rules for lookup hashing and duplicate detection.

Every function here is pure and total: it never raises, and invalid-looking
input still normalizes to something. Validation (digit-count range, email
shape) is a separate, caller-side concern; see ``is_valid_phone`` and
``is_valid_email``.

The output of these functions feeds a keyed hash that is compared across
independent call sites, so any change to a rule invalidates every stored
lookup key produced under the old rule.
"""

import re

_NON_DIGIT = re.compile(r"[^0-9]")
_WHITESPACE_RUN = re.compile(r"\s+")
_EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ASCII_UPPER_TO_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)
# Fullwidth digits typed on CJK keyboards
_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")


def normalize_phone(value: str | None) -> str:
    """Return the digit-only form of a phone number (``"+65 9123-4567"`` -> ``"6591234567"``)."""
    if not value:
        return ""
    return _NON_DIGIT.sub("", value.translate(_FULLWIDTH_DIGITS))


def normalize_email(value: str | None) -> str:
    """
    Trim and ASCII-lowercase an email address.

    Only ``A``-``Z`` are folded; non-ASCII characters in the local part are
    left untouched.
    """
    if not value:
        return ""
    return value.strip().translate(_ASCII_UPPER_TO_LOWER)


def normalize_name(value: str | None) -> str:
    """
    Return the uppercased first token of a full name.

    This is a deliberately loose duplicate signal, not an identity check:
    ``"John Smith"`` and ``"John Doe"`` both normalize to ``"JOHN"``, while
    ``"Doe John"`` normalizes to ``"DOE"``.
    """
    if not value:
        return ""
    tokens = _WHITESPACE_RUN.split(value.strip(), maxsplit=1)
    return tokens[0].upper() if tokens else ""


def normalize_text(value: str | None) -> str:
    """Fallback rule for hashed fields without a dedicated rule: trim only."""
    if not value:
        return ""
    return value.strip()


NORMALIZERS = {
    "phone": normalize_phone,
    "email": normalize_email,
    "name": normalize_name,
}


def normalize_for_purpose(purpose: str, value: str | None) -> str:
    """Apply the normalization rule registered for a lookup purpose."""
    return NORMALIZERS.get(purpose, normalize_text)(value)


def is_valid_phone(digits: str, min_digits: int = 8, max_digits: int = 15) -> bool:
    """Caller-side check that a normalized phone has an accepted digit count."""
    return digits.isascii() and digits.isdigit() and min_digits <= len(digits) <= max_digits


def is_valid_email(value: str) -> bool:
    """Caller-side check of the basic ``local@domain.tld`` shape."""
    return bool(_EMAIL_SHAPE.match(value.strip()))
