"""
stats.py - Mood aggregation and recap freshness

Pure helpers over entry dictionaries as returned by the entry store
(keys `created_at`, `sentiment_score`, `mood`). Nothing in this module
touches Firestore or the network, which keeps the day-boundary logic easy
to test.

Calendar days are always evaluated in one fixed timezone (America/New_York
unless configured otherwise): an entry written at 23:30 Eastern belongs to
that Eastern day even though it is already the next day in UTC.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

import pytz

from .sentiment import MOODS, MOOD_NEUTRAL, mood_for_score

LOCAL_TIMEZONE = pytz.timezone("America/New_York")


def to_local(dt: datetime, tz=LOCAL_TIMEZONE) -> datetime:
    """Convert a timestamp into `tz`. Naive timestamps are taken to be UTC."""
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(tz)


def local_date(dt: datetime, tz=LOCAL_TIMEZONE) -> date:
    return to_local(dt, tz).date()


def aggregate_daily(entries: Iterable[dict], tz=LOCAL_TIMEZONE) -> List[dict]:
    """
    Bucket entries by local calendar day and average their sentiment scores.

    Returns one row per day that has at least one entry, oldest day first:
        {"date": "2025-11-15", "averageMoodScore": 1.25, "overallMood": "positive"}

    overallMood is derived from the average, not taken from any single entry.
    """
    daily = defaultdict(lambda: {"sum": 0.0, "count": 0})
    for entry in entries:
        day = local_date(entry["created_at"], tz).isoformat()
        daily[day]["sum"] += entry.get("sentiment_score") or 0
        daily[day]["count"] += 1

    rows = []
    # ISO dates sort chronologically as plain strings.
    for day in sorted(daily):
        average = daily[day]["sum"] / daily[day]["count"]
        rows.append({
            "date": day,
            "averageMoodScore": average,
            "overallMood": mood_for_score(average),
        })
    return rows


def summarize(entries: Iterable[dict]) -> Dict[str, int]:
    """Count entries per stored mood. Unknown moods count as neutral, the storage default."""
    counts = {mood: 0 for mood in MOODS}
    total = 0
    for entry in entries:
        mood = entry.get("mood")
        counts[mood if mood in counts else MOOD_NEUTRAL] += 1
        total += 1

    return {
        "total": total,
        "positiveCount": counts["positive"],
        "neutralCount": counts["neutral"],
        "negativeCount": counts["negative"],
    }


def is_recap_stale(generated_at: Optional[datetime], now: Optional[datetime] = None, tz=LOCAL_TIMEZONE) -> bool:
    """
    A recap is fresh only on the local calendar day it was generated.

    A missing recap (generated_at is None) is always stale.
    """
    if generated_at is None:
        return True
    now = now or datetime.now(pytz.utc)
    return local_date(generated_at, tz) != local_date(now, tz)
