"""Pydantic models for stored responses and create-or-update payloads."""

from __future__ import annotations

from pydantic import BaseModel


class Response(BaseModel):
    id: str
    question_id: str
    application_id: str
    # Canonical text; for file questions this is the storage key
    value: str | None = None
    version: int = 1


class ResponseUpsert(BaseModel):
    """Create-or-update payload keyed by (question_id, application_id).

    `id` present means update of that Response; absent lets the store assign one.
    """

    question_id: str
    application_id: str
    value: str | None = None
    id: str | None = None


__all__ = ["Response", "ResponseUpsert"]
