"""Recruitment cycle and phase endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Response

from portal.logic.errors import NotFoundError
from portal.logic.repository_cycles import (
    create_cycle,
    create_phase,
    delete_phase,
    get_active_cycle,
    get_cycle,
    list_cycles,
    list_phases,
    reorder_phases,
)
from portal.models.cycles import Phase, PhaseCreate, RecruitmentCycle, RecruitmentCycleCreate
from portal.models.questions import ReorderRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/cycles",
    status_code=201,
    response_model=RecruitmentCycle,
    summary="Create a recruitment cycle",
    operation_id="createCycle",
    tags=["Cycles"],
)
def post_cycle(payload: RecruitmentCycleCreate) -> RecruitmentCycle:
    return create_cycle(payload)


@router.get(
    "/cycles",
    response_model=List[RecruitmentCycle],
    summary="List recruitment cycles, newest first",
    operation_id="listCycles",
    tags=["Cycles"],
)
def get_cycles() -> List[RecruitmentCycle]:
    return list_cycles()


# Declared before /cycles/{cycle_id} so "active" is not captured as an id
@router.get(
    "/cycles/active",
    response_model=RecruitmentCycle,
    summary="Get the currently open recruitment cycle",
    operation_id="getActiveCycle",
    tags=["Cycles"],
)
def get_active() -> RecruitmentCycle:
    cycle = get_active_cycle()
    if cycle is None:
        raise NotFoundError("No recruitment cycle is currently open")
    return cycle


@router.get(
    "/cycles/{cycle_id}",
    response_model=RecruitmentCycle,
    summary="Get a recruitment cycle",
    operation_id="getCycle",
    tags=["Cycles"],
)
def get_one_cycle(cycle_id: str) -> RecruitmentCycle:
    return get_cycle(cycle_id)


@router.get(
    "/cycles/{cycle_id}/phases",
    response_model=List[Phase],
    summary="List a cycle's review phases in order",
    operation_id="listPhases",
    tags=["Phases"],
)
def get_phases(cycle_id: str) -> List[Phase]:
    get_cycle(cycle_id)
    return list_phases(cycle_id)


@router.post(
    "/cycles/{cycle_id}/phases",
    status_code=201,
    response_model=Phase,
    summary="Add a review phase to a cycle",
    operation_id="createPhase",
    tags=["Phases"],
)
def post_phase(cycle_id: str, payload: PhaseCreate) -> Phase:
    return create_phase(cycle_id, payload)


@router.post(
    "/cycles/{cycle_id}/phases/reorder",
    response_model=List[Phase],
    summary="Reorder a cycle's phases by id list",
    operation_id="reorderPhases",
    tags=["Phases"],
)
def post_phase_order(cycle_id: str, payload: ReorderRequest) -> List[Phase]:
    get_cycle(cycle_id)
    return reorder_phases(cycle_id, payload.ids)


@router.delete(
    "/phases/{phase_id}",
    status_code=204,
    summary="Delete a review phase",
    operation_id="deletePhase",
    tags=["Phases"],
)
def remove_phase(phase_id: str) -> Response:
    delete_phase(phase_id)
    return Response(status_code=204)


__all__ = ["router"]
