"""Recency Scoring — maps a publication date to a 0..100 freshness score.

Age is the calendar-day difference between *now* and the publication date:

  future or <= 30 days  → 100
  <= 90 days            →  90
  <= 180 days           →  80
  <= 1 year             →  70
  <= 2 years            →  50
  <= 3 years            →  30
  <= 5 years            →  20
  <= 10 years           →  10
  older                 →   0
"""

from __future__ import annotations

import logging
from datetime import date, datetime

logger = logging.getLogger(__name__)

# (max age in days, score), checked in order
RECENCY_BUCKETS: tuple[tuple[int, int], ...] = (
    (30, 100),
    (90, 90),
    (180, 80),
    (365, 70),
    (730, 50),
    (1095, 30),
    (1825, 20),
    (3650, 10),
)

VALID_SCORES = frozenset({0, 10, 20, 30, 50, 70, 80, 90, 100})


def age_in_days(published: date, now: date | datetime) -> int:
    """Days elapsed from *published* to *now* (negative for future dates)."""
    today = now.date() if isinstance(now, datetime) else now
    if isinstance(published, datetime):
        published = published.date()
    return (today - published).days


def calculate_recency_score(published: date, now: date | datetime) -> int:
    """Score a publication date against an explicit reference time.

    Returns:
        One of 0, 10, 20, 30, 50, 70, 80, 90, 100.
    """
    age = age_in_days(published, now)
    if age < 0:
        return 100
    for max_age, score in RECENCY_BUCKETS:
        if age <= max_age:
            return score
    return 0
