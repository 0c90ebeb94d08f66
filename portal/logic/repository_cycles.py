"""Recruitment cycle and phase data access helpers.

Encapsulates DB reads/writes used by cycle routes, keeping the HTTP layer
free of direct SQL. Failures are logged at ERROR and re-raised so callers
decide the recovery path.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import text as sql_text

from portal.db.base import get_engine
from portal.logic.clock import as_utc, to_rfc3339, utc_now
from portal.logic.errors import CycleDefinitionError, NotFoundError
from portal.models.cycles import Phase, PhaseCreate, RecruitmentCycle, RecruitmentCycleCreate

logger = logging.getLogger(__name__)

_CYCLE_COLUMNS = "id, name, start_time, end_time"


def _cycle_from_row(row) -> RecruitmentCycle:
    return RecruitmentCycle(id=str(row[0]), name=str(row[1]), start_time=row[2], end_time=row[3])


def create_cycle(payload: RecruitmentCycleCreate) -> RecruitmentCycle:
    start = as_utc(payload.start_time)
    end = as_utc(payload.end_time)
    if end <= start:
        raise CycleDefinitionError("Cycle end time must be after its start time")
    cycle_id = str(uuid.uuid4())
    eng = get_engine()
    with eng.begin() as conn:
        conn.execute(
            sql_text(
                "INSERT INTO recruitment_cycle (id, name, start_time, end_time) VALUES (:id, :name, :start, :end)"
            ),
            {"id": cycle_id, "name": payload.name, "start": to_rfc3339(start), "end": to_rfc3339(end)},
        )
    logger.info("cycle_created cycle_id=%s name=%s", cycle_id, payload.name)
    return get_cycle(cycle_id)


def list_cycles() -> List[RecruitmentCycle]:
    """Return all cycles, most recently started first."""
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_CYCLE_COLUMNS} FROM recruitment_cycle ORDER BY start_time DESC")
        ).fetchall()
    return [_cycle_from_row(r) for r in rows]


def get_cycle(cycle_id: str) -> RecruitmentCycle:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_CYCLE_COLUMNS} FROM recruitment_cycle WHERE id = :id"),
            {"id": str(cycle_id)},
        ).fetchone()
    if row is None:
        raise NotFoundError(f"Recruitment cycle {cycle_id} not found")
    return _cycle_from_row(row)


def get_active_cycle(now: Optional[datetime] = None) -> Optional[RecruitmentCycle]:
    """Return the cycle whose [start_time, end_time) window contains `now`.

    When windows overlap the one that started last wins.
    """
    moment = as_utc(now) if now is not None else utc_now()
    for cycle in list_cycles():
        if as_utc(cycle.start_time) <= moment < as_utc(cycle.end_time):
            return cycle
    return None


def _phase_from_row(row) -> Phase:
    return Phase(id=str(row[0]), cycle_id=str(row[1]), name=str(row[2]), order=int(row[3]))


def list_phases(cycle_id: str) -> List[Phase]:
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                "SELECT id, cycle_id, name, phase_order FROM recruitment_cycle_phase "
                "WHERE cycle_id = :cid ORDER BY phase_order ASC, id ASC"
            ),
            {"cid": str(cycle_id)},
        ).fetchall()
    return [_phase_from_row(r) for r in rows]


def create_phase(cycle_id: str, payload: PhaseCreate) -> Phase:
    get_cycle(cycle_id)
    phase_id = str(uuid.uuid4())
    eng = get_engine()
    with eng.begin() as conn:
        order = payload.order
        if order is None:
            row = conn.execute(
                sql_text("SELECT MAX(phase_order) FROM recruitment_cycle_phase WHERE cycle_id = :cid"),
                {"cid": str(cycle_id)},
            ).fetchone()
            order = (int(row[0]) if row and row[0] is not None else -1) + 1
        conn.execute(
            sql_text(
                "INSERT INTO recruitment_cycle_phase (id, cycle_id, name, phase_order) "
                "VALUES (:id, :cid, :name, :ord)"
            ),
            {"id": phase_id, "cid": str(cycle_id), "name": payload.name, "ord": int(order)},
        )
    logger.info("phase_created cycle_id=%s phase_id=%s order=%s", cycle_id, phase_id, order)
    return Phase(id=phase_id, cycle_id=str(cycle_id), name=payload.name, order=int(order))


def delete_phase(phase_id: str) -> None:
    eng = get_engine()
    with eng.begin() as conn:
        result = conn.execute(
            sql_text("DELETE FROM recruitment_cycle_phase WHERE id = :id"), {"id": str(phase_id)}
        )
    if result.rowcount == 0:
        raise NotFoundError(f"Phase {phase_id} not found")
    logger.info("phase_deleted phase_id=%s", phase_id)


def reorder_phases(cycle_id: str, ids: List[str]) -> List[Phase]:
    """Assign `phase_order = position` for each id in the given sequence."""
    eng = get_engine()
    try:
        with eng.begin() as conn:
            for position, phase_id in enumerate(ids):
                conn.execute(
                    sql_text(
                        "UPDATE recruitment_cycle_phase SET phase_order = :pos WHERE id = :id AND cycle_id = :cid"
                    ),
                    {"pos": position, "id": str(phase_id), "cid": str(cycle_id)},
                )
    except Exception:
        logger.error("reorder_phases failed cycle_id=%s", cycle_id, exc_info=True)
        raise
    return list_phases(cycle_id)


__all__ = [
    "create_cycle",
    "list_cycles",
    "get_cycle",
    "get_active_cycle",
    "list_phases",
    "create_phase",
    "delete_phase",
    "reorder_phases",
]
