"""Validator set — confirm that a raw regex hit really is its category.

Each ``check_*`` raises ``ValidationError`` with a reason; ``validate``
is the boolean front door used by the detector.
"""

from __future__ import annotations
import logging
import re
from typing import Callable

from .errors import ValidationError
from .patterns import has_context
from .types import Category

logger = logging.getLogger(__name__)

_NON_DIGIT = re.compile(r"\D")
_EMAIL = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_PAN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
_IFSC = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
_SWIFT = re.compile(r"^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}(?:[A-Z0-9]{3})?$")

_PHONE_LEADING = frozenset("6789")
_PAN_STATUS_CODES = frozenset("ABCFGHLJPTK")
_NHS_WEIGHTS = (10, 9, 8, 7, 6, 5, 4, 3, 2)

# (network, prefixes): first hit wins
_CARD_PREFIXES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("visa", ("4",)),
    ("mastercard", ("51", "52", "53", "54", "55")),
    ("amex", ("34", "37")),
    ("discover", ("6011", "644", "65")),
    ("maestro", ("5018", "5020", "5038", "5893", "6304", "6759", "6761", "6762", "6763")),
    ("jcb", ("3528", "3529", "353", "354", "355", "356", "357", "358")),
    ("diners", ("36", "300", "301", "302", "303", "304", "305")),
)


def digits_of(text: str) -> str:
    return _NON_DIGIT.sub("", text)


# ── Checksums ────────────────────────────────────────────────────────

def luhn_checksum(digits: str) -> bool:
    """Luhn: double every second digit from the right, fold >9, sum mod 10."""
    if not digits or not digits.isdigit():
        return False
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def nhs_checksum(digits: str) -> bool:
    """Modulus-11 check over a 10-digit health-service number."""
    if len(digits) != 10 or not digits.isdigit():
        return False
    total = sum(int(d) * w for d, w in zip(digits[:9], _NHS_WEIGHTS))
    check_digit = (11 - total % 11) % 11
    return check_digit == int(digits[9])


def card_network(digits: str) -> str | None:
    for network, prefixes in _CARD_PREFIXES:
        if digits.startswith(prefixes):
            return network
    return None


# ── Per-category checks ──────────────────────────────────────────────

def check_email(text: str, context: str = "") -> None:
    if not _EMAIL.match(text):
        raise ValidationError(Category.EMAILS, "not an address")
    local, _, domain = text.partition("@")
    if not local or "." not in domain:
        raise ValidationError(Category.EMAILS, "domain has no dot")


def check_phone(text: str, context: str = "") -> None:
    digits = digits_of(text)
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    elif len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    if len(digits) != 10:
        raise ValidationError(Category.PHONE_NUMBERS, f"{len(digits)} digits")
    if digits[0] not in _PHONE_LEADING:
        raise ValidationError(Category.PHONE_NUMBERS, "leading digit not 6-9")


def check_aadhaar(text: str, context: str = "") -> None:
    # Digit count only; no Verhoeff check.
    if len(digits_of(text)) != 12:
        raise ValidationError(Category.AADHAAR, "not 12 digits")


def check_pan(text: str, context: str = "") -> None:
    if not _PAN.match(text):
        raise ValidationError(Category.PAN, "bad grammar")
    if not text[0].isalpha():
        raise ValidationError(Category.PAN, "first character not a letter")
    if text[3] not in _PAN_STATUS_CODES:
        raise ValidationError(Category.PAN, f"unknown status code {text[3]!r}")


def check_account_number(text: str, context: str = "") -> None:
    digits = digits_of(text)
    if not 9 <= len(digits) <= 18:
        raise ValidationError(Category.ACCOUNT_NUMBERS, f"{len(digits)} digits")
    if not has_context(Category.ACCOUNT_NUMBERS, context):
        raise ValidationError(Category.ACCOUNT_NUMBERS, "no account keyword nearby")


def check_ifsc(text: str, context: str = "") -> None:
    if not _IFSC.match(text):
        raise ValidationError(Category.IFSC_CODES, "bad grammar")


def check_swift(text: str, context: str = "") -> None:
    if len(text) not in (8, 11):
        raise ValidationError(Category.SWIFT_CODES, f"length {len(text)}")
    if not _SWIFT.match(text):
        raise ValidationError(Category.SWIFT_CODES, "bad grammar")


def check_credit_card(text: str, context: str = "") -> None:
    digits = digits_of(text)
    if len(digits) == 12 and is_valid(Category.AADHAAR, text):
        raise ValidationError(Category.CREDIT_CARDS, "looks like a national ID")
    if not 13 <= len(digits) <= 19:
        raise ValidationError(Category.CREDIT_CARDS, f"{len(digits)} digits")
    if card_network(digits) is None:
        raise ValidationError(Category.CREDIT_CARDS, "unknown issuer prefix")
    if not luhn_checksum(digits):
        raise ValidationError(Category.CREDIT_CARDS, "luhn checksum failed")


def check_ssn(text: str, context: str = "") -> None:
    digits = digits_of(text)
    if len(digits) != 9:
        raise ValidationError(Category.SSN, f"{len(digits)} digits")
    area, group, serial = digits[:3], digits[3:5], digits[5:]
    if area in ("000", "666") or area.startswith("9"):
        raise ValidationError(Category.SSN, f"invalid area {area}")
    if group == "00":
        raise ValidationError(Category.SSN, "group 00")
    if serial == "0000":
        raise ValidationError(Category.SSN, "serial 0000")


def check_nhs_number(text: str, context: str = "") -> None:
    digits = digits_of(text)
    if len(digits) != 10:
        raise ValidationError(Category.NHS_NUMBERS, f"{len(digits)} digits")
    if digits[0] in _PHONE_LEADING and not has_context(Category.NHS_NUMBERS, context):
        raise ValidationError(Category.NHS_NUMBERS, "phone-like without health context")
    if not nhs_checksum(digits):
        raise ValidationError(Category.NHS_NUMBERS, "mod-11 checksum failed")


def _structural_only(text: str, context: str = "") -> None:
    return None


VALIDATORS: dict[Category, Callable[[str, str], None]] = {
    Category.EMAILS: check_email,
    Category.PHONE_NUMBERS: check_phone,
    Category.AADHAAR: check_aadhaar,
    Category.PAN: check_pan,
    Category.ACCOUNT_NUMBERS: check_account_number,
    Category.IFSC_CODES: check_ifsc,
    Category.SWIFT_CODES: check_swift,
    Category.CREDIT_CARDS: check_credit_card,
    Category.SSN: check_ssn,
    Category.NHS_NUMBERS: check_nhs_number,
    Category.PASSPORT_NUMBERS: _structural_only,
    Category.GPS_COORDINATES: _structural_only,
}


def is_valid(category: Category, text: str, context: str = "") -> bool:
    """Run the validator for *category* without logging."""
    try:
        VALIDATORS[Category(category)](text, context)
    except ValidationError:
        return False
    return True


def validate(category: Category, text: str, context: str = "") -> bool:
    """True if *text* is a genuine instance of *category*.

    *context* is the text surrounding the match; some categories need a
    nearby keyword before a bare number counts.
    """
    try:
        VALIDATORS[Category(category)](text, context)
    except ValidationError as exc:
        logger.debug("rejected %s candidate: %s", exc.category, exc.reason)
        return False
    return True
