"""Pydantic request models and JSON serializers for the REST API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class EntryBody(BaseModel):
    """Body of POST /entries and PUT /entries/{id}. Mood and score are never accepted from clients."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def serialize_entry(entry: dict) -> dict:
    return {
        "id": entry["id"],
        "userId": entry.get("user_id"),
        "title": entry.get("title"),
        "content": entry.get("content"),
        "mood": entry.get("mood"),
        "sentimentScore": entry.get("sentiment_score"),
        "createdAt": _iso(entry.get("created_at")),
        "updatedAt": _iso(entry.get("updated_at")),
    }


def serialize_recap(recap: dict, is_stale: bool) -> dict:
    return {
        "recapText": recap.get("recap_text"),
        "generatedAt": _iso(recap.get("generated_at")),
        "isStale": is_stale,
    }
