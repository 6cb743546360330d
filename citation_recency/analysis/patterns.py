"""Pattern Library — shared regexes for citation and date extraction.

Pure, stateless patterns used by the citation extractor and the date
extractor:
  - Localized "Sources" section headers (English + 30 other languages)
  - Bare URLs and numbered citation markers [n]
  - Absolute dates (ISO, YYYY/MM, bare year, "Month DD, YYYY", MM/DD/YYYY)
  - Relative dates ("3 days ago", "yesterday") and the review-site
    "• 2y ago" format
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Sources section
# ---------------------------------------------------------------------------

_SOURCES_HEADERS = (
    r"Sources?",
    r"References?",
    r"Citations?",
    r"Fontes?",  # Portuguese
    r"Refer[eê]ncias?",  # Portuguese, Spanish
    r"Fuentes?",  # Spanish
    r"Quellen?",  # German
    r"R[eé]f[eé]rences?",  # French
    r"Font[ei]",  # Italian
    r"Bronnen?",  # Dutch
    r"Źródł[ao]",  # Polish
    r"Zdroje?",  # Czech, Slovak
    r"Források?",  # Hungarian
    r"Surse?",  # Romanian
    r"Izvori?",  # Croatian
    r"Viri?",  # Slovenian
    r"Šaltiniai",  # Lithuanian
    r"Avoti?",  # Latvian
    r"Allikad",  # Estonian
    r"Lähteet|Lähde",  # Finnish
    r"Källor|Källa",  # Swedish
    r"Kilder?",  # Norwegian, Danish
    r"Kaynaklar|Kaynak",  # Turkish
    r"Источники|Источник",  # Russian
    r"Джерела",  # Ukrainian
    r"Πηγές|Πηγή",  # Greek
    r"出典|ソース",  # Japanese
    r"来源|來源|参考资料",  # Chinese
    r"출처",  # Korean
    r"Sumber",  # Indonesian
    r"Nguồn",  # Vietnamese
    r"แหล่งที่มา",  # Thai
    r"مصادر|المصادر",  # Arabic
    r"מקורות",  # Hebrew
    r"Източници",  # Bulgarian
)

# Header on its own line, optionally markdown-decorated ("## Sources", "**Fontes:**"),
# then optional blank lines, then a block of consecutive non-blank lines (group 1).
SOURCES_SECTION_REGEX = re.compile(
    r"^[ \t]*(?:#{1,6}[ \t]*)?(?:\*\*|__)?"
    r"(?:" + "|".join(_SOURCES_HEADERS) + r")"
    r"(?:\*\*|__)?[ \t]*[:：]?[ \t]*(?:\*\*|__)?[ \t]*\r?\n(?:[ \t]*\r?\n)*"
    r"((?:[ \t]*\S[^\n]*(?:\n|$))+)",
    re.IGNORECASE | re.MULTILINE,
)

# ---------------------------------------------------------------------------
# URLs and numbered citations
# ---------------------------------------------------------------------------

# http(s):// followed by anything up to whitespace, a closing paren, brackets or a table pipe
URL_PATTERN = re.compile(r"https?://[^\s)\[\]<>\"|`]+", re.IGNORECASE)

# Sentence punctuation (and markdown bold) glued to the end of a URL
TRAILING_PUNCTUATION = ".,;:!?*"

# [1], [12], [^3]
NUMBERED_CITATION_PATTERN = re.compile(r"\[\^?(\d{1,3})\]")

CITATION_LOOKBEHIND = 50  # chars before a [n] marker searched for a URL
CITATION_LOOKAHEAD = 200  # chars after a [n] marker searched for a URL
CITATION_CONTEXT_MAX = 100


def strip_trailing_punctuation(url: str) -> str:
    """Trim sentence punctuation that is not part of the URL itself."""
    return url.rstrip(TRAILING_PUNCTUATION)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

# 4-digit years outside this range are treated as IDs, not dates
MIN_YEAR = 1990
MAX_YEAR = 2050

MONTHS: dict[str, int] = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}

# Full names first so "march" is not consumed as "mar"
_MONTH_NAMES = (
    r"(?:january|february|march|april|may|june|july|august|september|october|november|december"
    r"|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec)"
)
_ORDINAL = r"(?:st|nd|rd|th)?"

# --- URL path / query ---

URL_YMD_PATTERN = re.compile(r"(?<!\d)(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})(?!\d)")
URL_YM_PATTERN = re.compile(r"(?<!\d)(\d{4})[/\-](\d{1,2})(?=/|$|[?#&])")
URL_YEAR_PATTERN = re.compile(r"(?<!\d)(\d{4})(?=/|$|[?#&])")
URL_MONTH_DAY_YEAR_PATTERN = re.compile(
    rf"(?<![a-z])({_MONTH_NAMES})[-_/.\s]+(\d{{1,2}}){_ORDINAL}[-_/,\s]+(\d{{4}})(?!\d)",
    re.IGNORECASE,
)

# --- Body text ---

MONTH_DAY_YEAR_PATTERN = re.compile(
    rf"\b({_MONTH_NAMES})\.?\s+(\d{{1,2}}){_ORDINAL},?\s+(\d{{4}})(?!\d)",
    re.IGNORECASE,
)
DAY_MONTH_YEAR_PATTERN = re.compile(
    rf"\b(\d{{1,2}}){_ORDINAL}\s+({_MONTH_NAMES})\.?,?\s+(\d{{4}})(?!\d)",
    re.IGNORECASE,
)
ISO_DATE_PATTERN = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
US_DATE_PATTERN = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4})(?!\d)")

# "3 days ago", "2yrs ago", "an hour ago"
RELATIVE_DATE_PATTERN = re.compile(
    r"(?:\b(\d{1,3})\s*|\b(an?)\s+)"
    r"(years?|yrs?|y|months?|mos?|weeks?|wks?|w|days?|d|hours?|hrs?|h|minutes?|mins?)"
    r"\s+ago\b",
    re.IGNORECASE,
)

# "yesterday" / "today" on a short, timestamp-like line ("Posted yesterday")
RELATIVE_DAY_PATTERN = re.compile(
    r"^[^\n]{0,30}\b(yesterday|today)\b[^\n]{0,30}$",
    re.IGNORECASE | re.MULTILINE,
)

# Review-site markdown dump: "r/cscareerquestions • 2y ago", "• 3mo ago"
PLATFORM_RELATIVE_PATTERN = re.compile(
    r"•\s*(\d{1,3})\s*(yr|y|mo|w|d|h|min)\s+ago\b",
    re.IGNORECASE,
)
