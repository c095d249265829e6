"""
recap.py - Weekly recap prompt building and generation flow

A recap is generated from the entries of the trailing 7 days and cached in
the recap store. It stays valid until the local calendar day changes (see
stats.is_recap_stale); after that the next read regenerates it.

Failure rules:
- No entries in the window -> NoRecentEntriesError, nothing is written.
- Generator error or timeout -> RecapGenerationError propagates, the stored
  recap (if any) is left exactly as it was.
- Concurrent generations for one user are not serialized; the last upsert
  wins.

Store calls go through run_in_threadpool; the Firestore client blocks.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

import pytz
from starlette.concurrency import run_in_threadpool

from .exceptions import NoRecentEntriesError, RecapGenerationError
from .stats import LOCAL_TIMEZONE, is_recap_stale, to_local

_logger = logging.getLogger(__name__)

RECAP_WINDOW_DAYS = 7


def build_recap_prompt(entries: List[dict], tz=LOCAL_TIMEZONE) -> str:
    """Prompt asking the model for a short, uplifting recap of `entries` (oldest first)."""
    ordered = sorted(entries, key=lambda e: e["created_at"])
    entry_blocks = "\n\n".join(
        f"Date: {to_local(e['created_at'], tz).strftime('%A %Y-%m-%d %H:%M %Z')}\n"
        f"Mood: {e.get('mood', 'neutral')}\n"
        f"Text: {e.get('content', '')}"
        for e in ordered
    )
    return (
        "Analyze these journal entries from the past week. Create a weekly mood recap.\n"
        "Include:\n"
        "- Overall emotional tone\n"
        "- Key themes or patterns\n"
        "- Wins or improvements\n"
        "- One gentle suggestion for next week\n\n"
        "Try to keep it concise and uplifting. Do not use markdown.\n\n"
        f"Entries:\n{entry_blocks}"
    )


async def generate_weekly_recap(user_id: str, entry_store, recap_store, generator,
                                now: Optional[datetime] = None, tz=LOCAL_TIMEZONE) -> dict:
    """
    Generate a fresh recap for `user_id` and store it.

    Returns the stored recap record ({"user_id", "recap_text", "generated_at"}).
    """
    now = now or datetime.now(pytz.utc)
    since = now - timedelta(days=RECAP_WINDOW_DAYS)

    entries = await run_in_threadpool(entry_store.list_since, user_id, since)
    _logger.info("Found %d entries in the last %d days for user %s", len(entries), RECAP_WINDOW_DAYS, user_id)
    if not entries:
        raise NoRecentEntriesError(f"No entries found in the last {RECAP_WINDOW_DAYS} days")

    prompt = build_recap_prompt(entries, tz)
    recap_text = await generator.generate(prompt)
    if not recap_text or not recap_text.strip():
        raise RecapGenerationError("The recap service returned an empty recap.")

    record = await run_in_threadpool(recap_store.upsert, user_id, recap_text.strip(), now)
    _logger.info("Saved new weekly recap for user %s", user_id)
    return record


async def current_weekly_recap(user_id: str, entry_store, recap_store, generator,
                               now: Optional[datetime] = None, tz=LOCAL_TIMEZONE) -> dict:
    """Serve today's cached recap, regenerating it first when it is stale or missing."""
    now = now or datetime.now(pytz.utc)
    cached = await run_in_threadpool(recap_store.latest, user_id)
    if cached and not is_recap_stale(cached.get("generated_at"), now, tz):
        _logger.info("Serving cached weekly recap for user %s", user_id)
        return cached
    return await generate_weekly_recap(user_id, entry_store, recap_store, generator, now=now, tz=tz)
