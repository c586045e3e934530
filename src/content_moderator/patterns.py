"""Pattern library — category → ordered regexes, plus the content-policy templates.

Every pattern for a category is tried in order and the matches are
unioned.  A pattern may define a ``value`` group when its surface form
carries a keyword prefix (``a/c no: 12345...``); only the group is
reported.
"""

from __future__ import annotations
import re

from .types import Category


def _compile(*sources: str, flags: int = 0) -> list[re.Pattern]:
    return [re.compile(s, flags) for s in sources]


PATTERNS: dict[Category, list[re.Pattern]] = {
    # Regional mobile: 10 digits starting 6-9, optional +91 / 0 prefix
    Category.PHONE_NUMBERS: _compile(
        r"(?<![\w+])(?:\+91[\s\-]?)?[6-9]\d{9}\b",
        r"\b0?[6-9]\d{9}\b",
        r"\b[6-9]\d{2}[\s\-]?\d{3}[\s\-]?\d{4}\b",
    ),

    Category.EMAILS: _compile(
        r"\b[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}\b",
    ),

    # National ID: 12 digits, often grouped in fours
    Category.AADHAAR: _compile(
        r"\b\d{4}\s?\d{4}\s?\d{4}\b",
    ),

    # Tax ID: 5 letters, 4 digits, 1 letter
    Category.PAN: _compile(
        r"\b[A-Z]{5}[0-9]{4}[A-Z]\b",
    ),

    # Bank account: 9 to 18 digits, bare or after an a/c / bank keyword
    Category.ACCOUNT_NUMBERS: (
        _compile(r"\b(?P<value>\d{9,18})\b")
        + _compile(
            r"\ba/c\s?(?:no|#|:|=)?\s?(?P<value>\d{9,18})\b",
            r"\bbank\s?(?:no|#|:|=)?\s?(?P<value>\d{9,18})\b",
            flags=re.IGNORECASE,
        )
    ),

    # Domestic routing code: 4 letters, literal 0, 6 alphanumerics
    Category.IFSC_CODES: _compile(
        r"\b[A-Z]{4}0[A-Z0-9]{6}\b",
    ),

    # SWIFT/BIC: bank(4) country(2) location(2) [branch(3)]
    Category.SWIFT_CODES: _compile(
        r"\b[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}(?:[A-Z0-9]{3})?\b",
    ),

    Category.CREDIT_CARDS: _compile(
        r"\b(?:\d{4}[\s\-]?){3}\d{4}\b",
        r"\b(?:4[0-9]{12}(?:[0-9]{3})?|5[1-5][0-9]{14}|3[47][0-9]{13}"
        r"|3(?:0[0-5]|[68][0-9])[0-9]{11}|6(?:011|5[0-9]{2})[0-9]{12}"
        r"|(?:2131|1800|35\d{3})\d{11})\b",
    ),

    # 3-2-4
    Category.SSN: _compile(
        r"\b\d{3}[\-\s]?\d{2}[\-\s]?\d{4}\b",
    ),

    # Health-service number: 10 digits, 3-3-4
    Category.NHS_NUMBERS: _compile(
        r"\b\d{3}[\s\-]?\d{3}[\s\-]?\d{4}\b",
    ),

    Category.PASSPORT_NUMBERS: _compile(
        r"\b[A-Z]{1,2}\d{6,9}\b",
        r"\b[A-Z][0-9]{7}\b",
    ),

    # Decimal lat,long
    Category.GPS_COORDINATES: _compile(
        r"(?<![\w.])-?\d{1,2}\.\d{1,8},\s*-?\d{1,3}\.\d{1,8}\b",
    ),
}


# Words that make a numeric match more believable for its category.
CONTEXT_KEYWORDS: dict[Category, tuple[str, ...]] = {
    Category.PHONE_NUMBERS: ("phone", "mobile", "cell", "call", "contact", "tel", "telephone"),
    Category.EMAILS: ("email", "mail", "contact", "address", "@"),
    Category.AADHAAR: ("aadhaar", "aadhar", "uid", "unique id", "identity", "identification"),
    Category.PAN: ("pan", "permanent account", "tax", "income tax", "it department"),
    Category.ACCOUNT_NUMBERS: ("account", "bank", "a/c", "acc", "savings", "current", "deposit"),
    Category.IFSC_CODES: ("ifsc", "bank", "branch", "rtgs", "neft", "transfer"),
    Category.SWIFT_CODES: ("swift", "bic", "bank", "international", "transfer", "foreign"),
    Category.CREDIT_CARDS: ("credit", "card", "debit", "visa", "mastercard", "amex", "payment"),
    Category.SSN: ("social security", "ssn", "social insurance", "national id"),
    Category.NHS_NUMBERS: ("nhs", "national health", "health service", "medical", "patient"),
    Category.PASSPORT_NUMBERS: ("passport", "travel", "document", "visa", "international"),
    Category.GPS_COORDINATES: ("gps", "location", "coordinates", "latitude", "longitude", "position", "map"),
}


# Sentence-level hate-speech templates.
HATE_SPEECH_PATTERNS: list[re.Pattern] = _compile(
    # violence / elimination
    r"\b(?:kill|eliminate|destroy|murder|slaughter|genocide)\s+(?:all|every|each)\s+"
    r"(?:\w+\s+)*(?:people|group|community|race|ethnicity)\b",
    r"\b(?:death|die|eliminate|exterminate)\s+to\s+(?:all|every)\s+"
    r"(?:\w+\s+)*(?:people|group|community|race|ethnicity)\b",
    # dehumanization
    r"\b(?:all|every|those)\s+(?:\w+\s+)*(?:people|group|community|race|ethnicity)\s+"
    r"(?:are|is)\s+(?:animals|vermin|cockroaches|rats|trash|garbage)\b",
    # calls to violent action
    r"\b(?:we|they|people|everyone)\s+should\s+(?:kill|eliminate|eradicate|remove|cleanse)\s+"
    r"(?:all|every|the|those)\s+(?:\w+\s+)*(?:people|group|community|race|ethnicity)\b",
    # explicit hate
    r"\b(?:hate|despise|loathe)\s+(?:all|every|those|these)\s+"
    r"(?:\w+\s+)*(?:people|group|community|race|ethnicity)\b",
    # should be banned / deported / eliminated
    r"\b(?:all|every|each)\s+(?:\w+\s+)*(?:people|group|community|race|ethnicity)\s+"
    r"(?:should|must|need to)\s+(?:be|get)\s+(?:banned|deported|removed|eliminated|killed)\b",
    flags=re.IGNORECASE,
)


# Profanity and slurs, including masked spellings (f*ck, a$$).  Bounded by
# (?<!\w)/(?!\w) rather than \b so that tokens ending in * or $ still match.
PROFANITY_PATTERNS: list[re.Pattern] = _compile(
    r"(?<!\w)a[s$][s$](?!\w)",
    r"(?<!\w)b[i!]t?ch(?!\w)",
    r"(?<!\w)f[u*][c*]k(?:er|ing|ed)?(?!\w)",
    r"(?<!\w)s[h*][i*]t(?!\w)",
    r"(?<!\w)d[a*]mn(?!\w)",
    r"(?<!\w)h[e*]ll(?!\w)",
    r"(?<!\w)cr[a*]p(?!\w)",
    r"(?<!\w)d[i*]ck(?!\w)",
    # Hindi/Urdu
    r"(?<!\w)g[a*][a*]nd(?!\w)",
    r"(?<!\w)ch[u*]t[i*]ya(?!\w)",
    r"(?<!\w)b[e*][h*][e*]n ?ch[o*]d(?!\w)",
    # slurs
    r"(?<!\w)n[i*]gg[e*]r(?!\w)",
    r"(?<!\w)f[a*]g(?!\w)",
    r"(?<!\w)c[u*]nt(?!\w)",
    # starred-out spellings
    r"(?<!\w)f\*\*k(?!\w)",
    r"(?<!\w)s\*\*t(?!\w)",
    r"(?<!\w)a\*\*(?!\w)",
    r"(?<!\w)b\*\*\*h(?!\w)",
    flags=re.IGNORECASE,
)


def patterns_for(category: Category) -> list[re.Pattern]:
    """Ordered patterns for a sensitive category (empty for policy kinds)."""
    return list(PATTERNS.get(Category(category), ()))


def context_keywords(category: Category) -> tuple[str, ...]:
    return CONTEXT_KEYWORDS.get(Category(category), ())


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern:
    # whole words only; edges that are not word characters ("@") need no boundary
    parts = []
    for kw in keywords:
        head = r"(?<!\w)" if re.match(r"\w", kw) else ""
        tail = r"(?!\w)" if re.search(r"\w$", kw) else ""
        parts.append(head + re.escape(kw) + tail)
    return re.compile("|".join(parts), re.IGNORECASE)


_CONTEXT_PATTERNS: dict[Category, re.Pattern] = {
    category: _keyword_pattern(keywords) for category, keywords in CONTEXT_KEYWORDS.items()
}


def has_context(category: Category, context: str) -> bool:
    """True if any context keyword for *category* appears in *context* as a whole word."""
    pattern = _CONTEXT_PATTERNS.get(Category(category))
    return bool(pattern and pattern.search(context))
