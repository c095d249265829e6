"""
entries.py - Journal entry, mood statistics and weekly recap endpoints

Every endpoint requires a bearer token; the user id it carries scopes all
reads and writes. Routes:

- POST   /entries                            create (mood derived from content)
- GET    /entries                            list, newest first
- GET    /entries/stats/daily                average score + mood per local day
- GET    /entries/stats/summary              counts per mood
- GET    /entries/weekly_recap               cached recap as stored
- GET    /entries/generate_new_weekly_recap  force a new recap
- GET    /entries/current_weekly_recap       cached recap, regenerated if stale
- GET    /entries/{entry_id}                 single entry
- PUT    /entries/{entry_id}                 replace title/content, re-classify
- DELETE /entries/{entry_id}                 delete (missing id is a no-op)

Error mapping: validation 422, unknown entry 404, no entries for a recap
400, recap generator failure 502, anything unexpected 500.

Handlers that only touch the (blocking) Firestore client are plain `def`
so FastAPI runs them in its threadpool. The recap handlers stay async and
push their store calls to the threadpool inside recap.py.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
import pytz

from .config import Settings
from .dependencies import (
    get_classifier,
    get_current_user_id,
    get_entry_store,
    get_recap_generator,
    get_recap_store,
    get_settings,
)
from .exceptions import NoRecentEntriesError, RecapGenerationError
from .recap import current_weekly_recap, generate_weekly_recap
from .schemas import EntryBody, serialize_entry, serialize_recap
from .stats import aggregate_daily, is_recap_stale, summarize

_logger = logging.getLogger(__name__)
router = APIRouter()


def _now() -> datetime:
    return datetime.now(pytz.utc)


# -------------------------
# Entry CRUD
# -------------------------
@router.post("", status_code=201)
def create_entry(
    body: EntryBody,
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_entry_store),
    classifier=Depends(get_classifier),
):
    """Create an entry; mood and sentiment score are derived from the content."""
    result = classifier.classify(body.content)
    now = _now()
    try:
        entry = store.insert(user_id, {
            "title": body.title,
            "content": body.content,
            "mood": result.mood,
            "sentiment_score": result.score,
            "created_at": now,
            "updated_at": now,
        })
    except Exception as e:
        _logger.exception("Failed to create entry for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to save entry.")

    _logger.info("Created entry %s for user %s (mood=%s)", entry["id"], user_id, result.mood)
    return serialize_entry(entry)


@router.get("")
def list_entries(user_id: str = Depends(get_current_user_id), store=Depends(get_entry_store)):
    """All of the caller's entries, newest first."""
    try:
        entries = store.list(user_id)
    except Exception as e:
        _logger.exception("Failed to list entries for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to load entries.")
    return [serialize_entry(e) for e in entries]


# -------------------------
# Statistics
# -------------------------
@router.get("/stats/daily")
def daily_stats(
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_entry_store),
    settings: Settings = Depends(get_settings),
):
    """Average sentiment and overall mood per local calendar day, oldest day first."""
    try:
        entries = store.list(user_id)
    except Exception as e:
        _logger.exception("Failed to load daily stats for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to load daily stats.")
    return aggregate_daily(entries, settings.tz)


@router.get("/stats/summary")
def summary_stats(user_id: str = Depends(get_current_user_id), store=Depends(get_entry_store)):
    """Entry counts per stored mood."""
    try:
        entries = store.list(user_id)
    except Exception as e:
        _logger.exception("Failed to load summary stats for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to load summary stats.")
    return summarize(entries)


# -------------------------
# Weekly recap
# -------------------------
@router.get("/weekly_recap")
def get_weekly_recap(
    user_id: str = Depends(get_current_user_id),
    recap_store=Depends(get_recap_store),
    settings: Settings = Depends(get_settings),
):
    """Return the stored recap as-is; `isStale` tells the client whether to regenerate."""
    try:
        recap = recap_store.latest(user_id)
    except Exception as e:
        _logger.exception("Failed to load weekly recap for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to load weekly recap.")

    if not recap:
        raise HTTPException(status_code=404, detail="No recap found for this week")
    return serialize_recap(recap, is_recap_stale(recap.get("generated_at"), _now(), settings.tz))


async def _run_recap(flow, user_id, entry_store, recap_store, generator, settings: Settings) -> dict:
    """Run a recap flow and translate its errors into HTTP responses."""
    try:
        recap = await flow(user_id, entry_store, recap_store, generator, now=_now(), tz=settings.tz)
    except NoRecentEntriesError as e:
        _logger.warning("Recap refused for user %s: %s", user_id, e)
        raise HTTPException(status_code=400, detail=str(e))
    except RecapGenerationError as e:
        _logger.error("Recap generation failed for user %s: %s", user_id, e)
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        _logger.exception("Unexpected error generating weekly recap for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to generate weekly recap.")
    return serialize_recap(recap, is_stale=False)


@router.get("/generate_new_weekly_recap")
async def generate_new_weekly_recap(
    user_id: str = Depends(get_current_user_id),
    entry_store=Depends(get_entry_store),
    recap_store=Depends(get_recap_store),
    generator=Depends(get_recap_generator),
    settings: Settings = Depends(get_settings),
):
    """Generate a recap from the last 7 days of entries and cache it."""
    _logger.info("Generating new weekly recap for user: %s", user_id)
    return await _run_recap(generate_weekly_recap, user_id, entry_store, recap_store, generator, settings)


@router.get("/current_weekly_recap")
async def get_current_weekly_recap(
    user_id: str = Depends(get_current_user_id),
    entry_store=Depends(get_entry_store),
    recap_store=Depends(get_recap_store),
    generator=Depends(get_recap_generator),
    settings: Settings = Depends(get_settings),
):
    """Serve today's recap, generating a new one first if the cached one is from an earlier day."""
    return await _run_recap(current_weekly_recap, user_id, entry_store, recap_store, generator, settings)


# -------------------------
# Single entry (declared last so the static paths above win)
# -------------------------
@router.get("/{entry_id}")
def get_entry(entry_id: str, user_id: str = Depends(get_current_user_id), store=Depends(get_entry_store)):
    try:
        entry = store.get(user_id, entry_id)
    except Exception as e:
        _logger.exception("Failed to load entry %s for user %s: %s", entry_id, user_id, e)
        raise HTTPException(status_code=500, detail="Failed to load entry.")
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found.")
    return serialize_entry(entry)


@router.put("/{entry_id}")
def update_entry(
    entry_id: str,
    body: EntryBody,
    user_id: str = Depends(get_current_user_id),
    store=Depends(get_entry_store),
    classifier=Depends(get_classifier),
):
    """Replace title and content; mood, score and updated_at are recomputed."""
    result = classifier.classify(body.content)
    try:
        entry = store.update(user_id, entry_id, {
            "title": body.title,
            "content": body.content,
            "mood": result.mood,
            "sentiment_score": result.score,
            "updated_at": _now(),
        })
    except Exception as e:
        _logger.exception("Failed to update entry %s for user %s: %s", entry_id, user_id, e)
        raise HTTPException(status_code=500, detail="Failed to update entry.")

    if not entry:
        _logger.warning("Update of unknown entry %s by user %s", entry_id, user_id)
        raise HTTPException(status_code=404, detail="Entry not found.")
    return serialize_entry(entry)


@router.delete("/{entry_id}")
def delete_entry(entry_id: str, user_id: str = Depends(get_current_user_id), store=Depends(get_entry_store)):
    """Delete an entry. Deleting an id that does not exist also succeeds."""
    try:
        store.delete(user_id, entry_id)
    except Exception as e:
        _logger.exception("Failed to delete entry %s for user %s: %s", entry_id, user_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete entry.")

    _logger.info("Deleted entry %s for user %s", entry_id, user_id)
    return {"message": "Entry deleted successfully"}
