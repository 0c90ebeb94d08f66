"""Pydantic models for applications and submission gating."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Application(BaseModel):
    id: str
    cycle_id: str
    applicant_id: str
    submitted: bool = False
    submitted_at: datetime | None = None


class ApplicationCreate(BaseModel):
    cycle_id: str
    applicant_id: str


class BlockingItem(BaseModel):
    question_id: str
    reason: str


class GatingVerdict(BaseModel):
    ok: bool
    blocking_items: list[BlockingItem] = Field(default_factory=list)


__all__ = ["Application", "ApplicationCreate", "BlockingItem", "GatingVerdict"]
