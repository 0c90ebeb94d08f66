"""Application data access and submission.

Submission is terminal: once an application is submitted its responses can
no longer change, and submitting again returns the stored application
unchanged.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import text as sql_text

from portal.db.base import get_engine
from portal.logic.clock import as_utc, to_rfc3339, utc_now
from portal.logic.errors import CycleClosedError, NotFoundError, SubmissionBlockedError
from portal.logic.events import APPLICATION_SUBMITTED, publish
from portal.logic.gating import evaluate_gating
from portal.logic.repository_cycles import get_cycle
from portal.models.applications import Application, ApplicationCreate

logger = logging.getLogger(__name__)

_COLUMNS = "id, cycle_id, applicant_id, submitted, submitted_at"


def _application_from_row(row) -> Application:
    return Application(
        id=str(row[0]),
        cycle_id=str(row[1]),
        applicant_id=str(row[2]),
        submitted=bool(row[3]),
        submitted_at=row[4],
    )


def get_application(application_id: str) -> Application:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM application WHERE id = :id"),
            {"id": str(application_id)},
        ).fetchone()
    if row is None:
        raise NotFoundError(f"Application {application_id} not found")
    return _application_from_row(row)


def find_application(cycle_id: str, applicant_id: str) -> Optional[Application]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM application WHERE cycle_id = :cid AND applicant_id = :uid"),
            {"cid": str(cycle_id), "uid": str(applicant_id)},
        ).fetchone()
    return _application_from_row(row) if row is not None else None


def create_or_get_application(payload: ApplicationCreate) -> tuple[Application, bool]:
    """Return the applicant's application for the cycle, creating it if needed.

    The boolean is True when a new application was created.
    """
    get_cycle(payload.cycle_id)
    existing = find_application(payload.cycle_id, payload.applicant_id)
    if existing is not None:
        return existing, False
    app_id = str(uuid.uuid4())
    eng = get_engine()
    with eng.begin() as conn:
        conn.execute(
            sql_text(
                "INSERT INTO application (id, cycle_id, applicant_id, submitted) VALUES (:id, :cid, :uid, :sub)"
            ),
            {"id": app_id, "cid": payload.cycle_id, "uid": payload.applicant_id, "sub": False},
        )
    logger.info("application_created app_id=%s cycle_id=%s", app_id, payload.cycle_id)
    return get_application(app_id), True


def submit_application(application_id: str, now: Optional[datetime] = None) -> Application:
    """Mark the application submitted after the deadline and gating checks.

    Raises CycleClosedError past the cycle's end time and
    SubmissionBlockedError when required questions are unanswered.
    """
    application = get_application(application_id)
    if application.submitted:
        logger.info("submit_repeat app_id=%s", application_id)
        return application
    cycle = get_cycle(application.cycle_id)
    moment = as_utc(now) if now is not None else utc_now()
    if moment >= as_utc(cycle.end_time):
        raise CycleClosedError(f"Recruitment cycle {cycle.name} closed at {to_rfc3339(cycle.end_time)}")
    verdict = evaluate_gating(application.id, application.cycle_id)
    if not verdict.ok:
        raise SubmissionBlockedError(
            "Required questions are unanswered",
            blocking_items=[item.model_dump() for item in verdict.blocking_items],
        )
    eng = get_engine()
    with eng.begin() as conn:
        conn.execute(
            sql_text("UPDATE application SET submitted = :sub, submitted_at = :at WHERE id = :id AND submitted = :was"),
            {"sub": True, "at": to_rfc3339(moment), "id": application.id, "was": False},
        )
    publish(APPLICATION_SUBMITTED, {"application_id": application.id, "cycle_id": application.cycle_id})
    return get_application(application.id)


__all__ = [
    "get_application",
    "find_application",
    "create_or_get_application",
    "submit_application",
]
