"""Date extraction — applies the pattern library to URLs and scraped pages.

Every function returns a ``datetime.date`` or ``None`` and never raises.
Relative dates ("3 days ago") are resolved against an explicit ``now`` so
results are reproducible.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any
from urllib.parse import urlsplit

import dateparser

from citation_recency.analysis.patterns import (
    DAY_MONTH_YEAR_PATTERN,
    ISO_DATE_PATTERN,
    MAX_YEAR,
    MIN_YEAR,
    MONTH_DAY_YEAR_PATTERN,
    MONTHS,
    PLATFORM_RELATIVE_PATTERN,
    RELATIVE_DATE_PATTERN,
    RELATIVE_DAY_PATTERN,
    URL_MONTH_DAY_YEAR_PATTERN,
    URL_YEAR_PATTERN,
    URL_YM_PATTERN,
    URL_YMD_PATTERN,
    US_DATE_PATTERN,
)

logger = logging.getLogger(__name__)

_ISO_PREFIX = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})")

# Metadata values are absolute timestamps; relative parsing is handled by our own patterns
_DATEPARSER_SETTINGS = {
    "PARSERS": ["timestamp", "absolute-time"],
    "REQUIRE_PARTS": ["year"],
    "PREFER_DAY_OF_MONTH": "first",
    "RETURN_AS_TIMEZONE_AWARE": False,
}


def _valid_date(year: int, month: int, day: int) -> date | None:
    """Build a date, rejecting out-of-range years and impossible days."""
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _in_range(value: date) -> date | None:
    return value if MIN_YEAR <= value.year <= MAX_YEAR else None


def _as_date(now: date | datetime) -> date:
    return now.date() if isinstance(now, datetime) else now


def _unit_days(unit: str) -> int:
    """Length in days of a relative-date unit (y, mo, w, d, h, min ...)."""
    unit = unit.lower()
    if unit.startswith(("mi", "h")):
        return 0
    if unit.startswith("mo"):
        return 30
    if unit.startswith("y"):
        return 365
    if unit.startswith("w"):
        return 7
    return 1


def _month_name_date(month_name: str, day: str, year: str) -> date | None:
    month = MONTHS.get(month_name.lower().rstrip("."))
    if month is None:
        return None
    return _valid_date(int(year), month, int(day))


# ---------------------------------------------------------------------------
# URL
# ---------------------------------------------------------------------------


def _url_date_text(url: str) -> str:
    """Path + query of a URL; the host never carries a publication date."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    text = parts.path
    if parts.query:
        text += "?" + parts.query
    return text


def extract_date_from_url(url: str) -> date | None:
    """Find a publication date embedded in a URL path or query.

    Tried in order: YYYY/MM/DD (or dashes), month-name slugs
    ("march-14-2022"), YYYY/MM (day 1), bare year path segment (Jan 1).
    """
    text = _url_date_text(url)
    if not text:
        return None

    for match in URL_YMD_PATTERN.finditer(text):
        found = _valid_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if found:
            return found

    for match in URL_MONTH_DAY_YEAR_PATTERN.finditer(text):
        found = _month_name_date(match.group(1), match.group(2), match.group(3))
        if found:
            return found

    for match in URL_YM_PATTERN.finditer(text):
        found = _valid_date(int(match.group(1)), int(match.group(2)), 1)
        if found:
            return found

    for match in URL_YEAR_PATTERN.finditer(text):
        found = _valid_date(int(match.group(1)), 1, 1)
        if found:
            return found

    return None


# ---------------------------------------------------------------------------
# Scraped body text
# ---------------------------------------------------------------------------


def extract_absolute_date(text: str) -> date | None:
    """First absolute date in free text ("Mar 14, 2022", "2022-03-14", "03/14/2022")."""
    if not text:
        return None

    for match in MONTH_DAY_YEAR_PATTERN.finditer(text):
        found = _month_name_date(match.group(1), match.group(2), match.group(3))
        if found:
            return found

    for match in DAY_MONTH_YEAR_PATTERN.finditer(text):
        found = _month_name_date(match.group(2), match.group(1), match.group(3))
        if found:
            return found

    for match in ISO_DATE_PATTERN.finditer(text):
        found = _valid_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if found:
            return found

    # MM/DD/YYYY (US order assumed)
    for match in US_DATE_PATTERN.finditer(text):
        found = _valid_date(int(match.group(3)), int(match.group(1)), int(match.group(2)))
        if found:
            return found

    return None


def extract_relative_date(text: str, now: date | datetime) -> date | None:
    """Resolve "3 days ago" / "2 yrs ago" / "Posted yesterday" against *now*."""
    if not text:
        return None
    today = _as_date(now)

    match = RELATIVE_DATE_PATTERN.search(text)
    if match:
        count = int(match.group(1)) if match.group(1) else 1
        return _in_range(today - timedelta(days=count * _unit_days(match.group(3))))

    match = RELATIVE_DAY_PATTERN.search(text)
    if match:
        if match.group(1).lower() == "yesterday":
            return today - timedelta(days=1)
        return today

    return None


def extract_platform_relative_date(text: str, now: date | datetime) -> date | None:
    """Resolve the review-site "• 2y ago" / "• 3mo ago" markers against *now*."""
    if not text:
        return None
    match = PLATFORM_RELATIVE_PATTERN.search(text)
    if not match:
        return None
    count = int(match.group(1))
    return _in_range(_as_date(now) - timedelta(days=count * _unit_days(match.group(2))))


# ---------------------------------------------------------------------------
# Metadata values
# ---------------------------------------------------------------------------


def parse_date_value(value: Any) -> date | None:
    """Parse a scraped metadata value (ISO timestamp, RFC 2822, "March 3, 2024")."""
    if isinstance(value, (list, tuple)):
        value = next((v for v in value if v), None)
    if isinstance(value, datetime):
        return _in_range(value.date())
    if isinstance(value, date):
        return _in_range(value)
    if not isinstance(value, str) or not value.strip():
        return None

    iso = _ISO_PREFIX.match(value)
    if iso:
        return _valid_date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    try:
        parsed = dateparser.parse(value.strip(), settings=_DATEPARSER_SETTINGS)
    except (ValueError, TypeError, OverflowError):
        logger.debug("Unparseable date value %r", value)
        return None
    if parsed is None:
        return None
    return _in_range(parsed.date())
