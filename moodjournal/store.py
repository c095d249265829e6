"""
store.py - Firestore persistence for journal entries and weekly recaps

Layout:
    users/{user_id}/journal_entries/{entry_id}   one document per entry
    weekly_recaps/{user_id}                      one cached recap per user

Every method takes the owning user id explicitly; entries of one user are
never reachable through another user's id because they live under that
user's document. Documents are returned as plain dicts with their id under
"id".

Timestamps are written as timezone-aware datetimes, which Firestore stores
as native Timestamps, so range queries on created_at work server-side.
"""

import logging
from datetime import datetime
from typing import List, Optional

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

_logger = logging.getLogger(__name__)

FIRESTORE_USERS_COLLECTION = "users"
FIRESTORE_ENTRIES_SUBCOLLECTION = "journal_entries"
FIRESTORE_RECAPS_COLLECTION = "weekly_recaps"


def _snapshot_to_dict(snapshot) -> dict:
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data


class EntryStore:
    """Owner-scoped CRUD over journal entry documents."""

    def __init__(self, client: firestore.Client):
        self._client = client

    def _entries(self, user_id: str):
        return (
            self._client.collection(FIRESTORE_USERS_COLLECTION)
            .document(user_id)
            .collection(FIRESTORE_ENTRIES_SUBCOLLECTION)
        )

    def insert(self, user_id: str, data: dict) -> dict:
        """Store a new entry under an auto-generated id and return it."""
        doc_ref = self._entries(user_id).document()
        record = dict(data, user_id=user_id)
        doc_ref.set(record)
        _logger.debug("Inserted entry %s for user %s", doc_ref.id, user_id)
        return dict(record, id=doc_ref.id)

    def get(self, user_id: str, entry_id: str) -> Optional[dict]:
        snapshot = self._entries(user_id).document(entry_id).get()
        if not snapshot.exists:
            return None
        return _snapshot_to_dict(snapshot)

    def update(self, user_id: str, entry_id: str, changes: dict) -> Optional[dict]:
        """
        Apply `changes` to an existing entry and return the updated record.

        Returns None when the entry does not exist; nothing is written then.
        """
        doc_ref = self._entries(user_id).document(entry_id)
        snapshot = doc_ref.get()
        if not snapshot.exists:
            return None
        doc_ref.update(changes)
        record = _snapshot_to_dict(snapshot)
        record.update(changes)
        return record

    def delete(self, user_id: str, entry_id: str) -> None:
        # Firestore treats deleting a missing document as a no-op.
        self._entries(user_id).document(entry_id).delete()

    def list(self, user_id: str) -> List[dict]:
        """All of the user's entries, newest first."""
        query = self._entries(user_id).order_by("created_at", direction=firestore.Query.DESCENDING)
        return [_snapshot_to_dict(doc) for doc in query.stream()]

    def list_since(self, user_id: str, since: datetime) -> List[dict]:
        """Entries created at or after `since`, oldest first."""
        query = (
            self._entries(user_id)
            .where(filter=FieldFilter("created_at", ">=", since))
            .order_by("created_at")
        )
        return [_snapshot_to_dict(doc) for doc in query.stream()]


class RecapStore:
    """One weekly recap document per user, keyed by the user id."""

    def __init__(self, client: firestore.Client):
        self._client = client

    def _recap_ref(self, user_id: str):
        return self._client.collection(FIRESTORE_RECAPS_COLLECTION).document(user_id)

    def latest(self, user_id: str) -> Optional[dict]:
        snapshot = self._recap_ref(user_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def upsert(self, user_id: str, recap_text: str, generated_at: datetime) -> dict:
        """Create or replace the user's recap and return the stored record."""
        record = {
            "user_id": user_id,
            "recap_text": recap_text,
            "generated_at": generated_at,
        }
        self._recap_ref(user_id).set(record, merge=True)
        return record
