"""Pydantic models for application questions."""

from __future__ import annotations

from pydantic import BaseModel, Field

from portal.models.field_type import FieldTypeName


class Question(BaseModel):
    id: str
    cycle_id: str
    type: FieldTypeName
    label: str
    order: int
    required: bool = True
    options: list[str] = Field(default_factory=list)
    # Only meaningful for string questions; None means unbounded
    min_length: int | None = None
    max_length: int | None = None


class QuestionWrite(BaseModel):
    """Payload for creating or fully replacing a question.

    `order` may be omitted on create, in which case the question is appended
    after the cycle's current last question.
    """

    cycle_id: str
    type: FieldTypeName
    label: str
    order: int | None = None
    required: bool = True
    options: list[str] = Field(default_factory=list)
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)


class ReorderRequest(BaseModel):
    ids: list[str]


__all__ = ["Question", "QuestionWrite", "ReorderRequest"]
