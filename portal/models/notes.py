"""Pydantic models for member notes on applications."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Note(BaseModel):
    id: str
    application_id: str
    author_id: str
    content: str
    created_at: datetime


class NoteCreate(BaseModel):
    author_id: str
    content: str = Field(min_length=1)


class NoteUpdate(BaseModel):
    content: str = Field(min_length=1)


__all__ = ["Note", "NoteCreate", "NoteUpdate"]
