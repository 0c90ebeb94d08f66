"""Response Store data access helpers.

Encapsulates reads and the create-or-update write used by autosave. There is
at most one response per (application, question); every write bumps the
row's `version` so callers can tell successive writes apart.
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy import text as sql_text

from portal.db.base import get_engine
from portal.logic.errors import ApplicationSubmittedError, ConflictError, NotFoundError
from portal.logic.events import RESPONSE_SAVED, publish
from portal.logic.repository_applications import get_application
from portal.logic.repository_questions import get_question
from portal.models.responses import Response, ResponseUpsert

logger = logging.getLogger(__name__)

_COLUMNS = "id, question_id, application_id, value, version"


def _response_from_row(row) -> Response:
    return Response(
        id=str(row[0]),
        question_id=str(row[1]),
        application_id=str(row[2]),
        value=row[3],
        version=int(row[4] or 1),
    )


def list_responses(application_id: str) -> List[Response]:
    get_application(application_id)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM application_response WHERE application_id = :aid ORDER BY id"),
            {"aid": str(application_id)},
        ).fetchall()
    return [_response_from_row(r) for r in rows]


def get_response(application_id: str, question_id: str) -> Optional[Response]:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(
                f"SELECT {_COLUMNS} FROM application_response WHERE application_id = :aid AND question_id = :qid"
            ),
            {"aid": str(application_id), "qid": str(question_id)},
        ).fetchone()
    return _response_from_row(row) if row is not None else None


def create_or_update_response(payload: ResponseUpsert) -> Response:
    """Insert or update the response for (application, question).

    - 404 when the application, the question or a supplied `id` is unknown
    - 409 when the application is already submitted, the question belongs to
      another cycle, or `id` names a different response than the stored one
    """
    application = get_application(payload.application_id)
    if application.submitted:
        raise ApplicationSubmittedError("Application has already been submitted")
    question = get_question(payload.question_id)
    if question.cycle_id != application.cycle_id:
        raise ConflictError("Question does not belong to this application's recruitment cycle")

    existing = get_response(application.id, question.id)
    if payload.id is not None:
        if existing is None:
            raise NotFoundError(f"Response with id {payload.id} not found")
        if existing.id != payload.id:
            raise ConflictError(
                "Response id does not match the stored response for this question",
                response_id=existing.id,
            )

    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO application_response (id, application_id, question_id, value, version)
                    VALUES (:rid, :aid, :qid, :value, 1)
                    ON CONFLICT (application_id, question_id)
                    DO UPDATE SET value = excluded.value,
                                  version = application_response.version + 1
                    """
                ),
                {
                    "rid": str(uuid.uuid4()),
                    "aid": application.id,
                    "qid": question.id,
                    "value": payload.value,
                },
            )
    except Exception:
        logger.error(
            "create_or_update_response failed app_id=%s q_id=%s", application.id, question.id, exc_info=True
        )
        raise
    saved = get_response(application.id, question.id)
    if saved is None:  # pragma: no cover - row was just written in this process
        raise NotFoundError("Response vanished after write")
    logger.info(
        "response_write app_id=%s q_id=%s r_id=%s version=%s created=%s",
        application.id,
        question.id,
        saved.id,
        saved.version,
        existing is None,
    )
    publish(RESPONSE_SAVED, {"response_id": saved.id, "question_id": question.id, "application_id": application.id})
    return saved


__all__ = [
    "list_responses",
    "get_response",
    "create_or_update_response",
]
