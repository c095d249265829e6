"""
Shared fixtures: in-memory stores standing in for Firestore, a scripted
recap generator standing in for Vertex AI, and HS256 tokens so requests go
through the real bearer verification.
"""

import copy
import uuid
from datetime import datetime, timedelta

import jwt
import pytest
import pytz
from fastapi.testclient import TestClient

from moodjournal.config import Settings
from moodjournal.dependencies import (
    get_classifier,
    get_entry_store,
    get_recap_generator,
    get_recap_store,
)
from moodjournal.main import create_app
from moodjournal.sentiment import SentimentClassifier

TEST_SECRET = "test-secret-for-journal-tokens-0123456789"


class InMemoryEntryStore:
    """Same interface as store.EntryStore, backed by a dict per user."""

    def __init__(self):
        self.docs = {}

    def _user_docs(self, user_id):
        return self.docs.setdefault(user_id, {})

    def insert(self, user_id, data):
        entry_id = uuid.uuid4().hex
        record = dict(data, user_id=user_id)
        self._user_docs(user_id)[entry_id] = record
        return dict(copy.deepcopy(record), id=entry_id)

    def get(self, user_id, entry_id):
        record = self._user_docs(user_id).get(entry_id)
        if record is None:
            return None
        return dict(copy.deepcopy(record), id=entry_id)

    def update(self, user_id, entry_id, changes):
        record = self._user_docs(user_id).get(entry_id)
        if record is None:
            return None
        record.update(changes)
        return dict(copy.deepcopy(record), id=entry_id)

    def delete(self, user_id, entry_id):
        self._user_docs(user_id).pop(entry_id, None)

    def list(self, user_id):
        entries = [dict(copy.deepcopy(r), id=i) for i, r in self._user_docs(user_id).items()]
        return sorted(entries, key=lambda e: e["created_at"], reverse=True)

    def list_since(self, user_id, since):
        return sorted(
            (e for e in self.list(user_id) if e["created_at"] >= since),
            key=lambda e: e["created_at"],
        )


class InMemoryRecapStore:
    """Same interface as store.RecapStore."""

    def __init__(self):
        self.docs = {}

    def latest(self, user_id):
        record = self.docs.get(user_id)
        return copy.deepcopy(record) if record else None

    def upsert(self, user_id, recap_text, generated_at):
        record = {"user_id": user_id, "recap_text": recap_text, "generated_at": generated_at}
        self.docs[user_id] = record
        return copy.deepcopy(record)


class ScriptedGenerator:
    """Returns a fixed reply (or raises a fixed error) and records every prompt."""

    def __init__(self, reply="You had a steady, hopeful week.", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate(self, prompt_text):
        self.prompts.append(prompt_text)
        if self.error:
            raise self.error
        return self.reply


def make_token(user_id="user_1", secret=TEST_SECRET, expires_in=3600, **claims):
    payload = {"exp": datetime.now(pytz.utc) + timedelta(seconds=expires_in), **claims}
    if user_id is not None:
        payload["sub"] = user_id
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_header(user_id="user_1"):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture(scope="session")
def classifier():
    return SentimentClassifier()


@pytest.fixture
def entry_store():
    return InMemoryEntryStore()


@pytest.fixture
def recap_store():
    return InMemoryRecapStore()


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def app(classifier, entry_store, recap_store, generator):
    app = create_app(Settings(auth_jwt_secret=TEST_SECRET, cors_enabled=False))
    app.dependency_overrides[get_classifier] = lambda: classifier
    app.dependency_overrides[get_entry_store] = lambda: entry_store
    app.dependency_overrides[get_recap_store] = lambda: recap_store
    app.dependency_overrides[get_recap_generator] = lambda: generator
    return app


@pytest.fixture
def client(app):
    # Not used as a context manager: the lifespan (real Firestore/Vertex) never runs.
    return TestClient(app)
