"""Pydantic models for recruitment cycles and their review phases."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class RecruitmentCycle(BaseModel):
    id: str
    name: str
    start_time: datetime
    end_time: datetime


class RecruitmentCycleCreate(BaseModel):
    name: str
    start_time: datetime
    end_time: datetime


class Phase(BaseModel):
    id: str
    cycle_id: str
    name: str
    order: int


class PhaseCreate(BaseModel):
    name: str
    order: int | None = None


__all__ = ["RecruitmentCycle", "RecruitmentCycleCreate", "Phase", "PhaseCreate"]
