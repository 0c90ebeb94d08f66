"""Question catalog data access helpers.

Encapsulates DB reads/writes for application questions. Ordering is by the
`question_order` column; new questions are appended after the current last
one unless the caller supplies an explicit order.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import List

from sqlalchemy import text as sql_text

from portal.db.base import get_engine
from portal.logic.errors import NotFoundError
from portal.logic.repository_cycles import get_cycle
from portal.logic.validation import validate_question_definition
from portal.models.questions import Question, QuestionWrite

logger = logging.getLogger(__name__)

_COLUMNS = "id, cycle_id, type, label, question_order, required, options, min_length, max_length"


def _question_from_row(row) -> Question:
    options: list[str] = []
    if row[6]:
        try:
            parsed = json.loads(row[6])
            options = [str(o) for o in parsed] if isinstance(parsed, list) else []
        except json.JSONDecodeError:
            logger.error("question_options_not_json q_id=%s", row[0], exc_info=True)
    return Question(
        id=str(row[0]),
        cycle_id=str(row[1]),
        type=str(row[2]),
        label=str(row[3]),
        order=int(row[4]),
        required=bool(row[5]),
        options=options,
        min_length=row[7],
        max_length=row[8],
    )


def _params(payload: QuestionWrite) -> dict:
    return {
        "cid": payload.cycle_id,
        "type": payload.type,
        "label": payload.label,
        "req": bool(payload.required),
        "opts": json.dumps(list(payload.options)) if payload.options else None,
        "minl": payload.min_length,
        "maxl": payload.max_length,
    }


def list_questions(cycle_id: str) -> List[Question]:
    """Return the cycle's questions in display order."""
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                f"SELECT {_COLUMNS} FROM application_question WHERE cycle_id = :cid "
                "ORDER BY question_order ASC, id ASC"
            ),
            {"cid": str(cycle_id)},
        ).fetchall()
    return [_question_from_row(r) for r in rows]


def get_question(question_id: str) -> Question:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM application_question WHERE id = :qid"),
            {"qid": str(question_id)},
        ).fetchone()
    if row is None:
        raise NotFoundError(f"Question with id {question_id} not found")
    return _question_from_row(row)


def get_next_question_order(cycle_id: str) -> int:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text("SELECT MAX(question_order) FROM application_question WHERE cycle_id = :cid"),
            {"cid": str(cycle_id)},
        ).fetchone()
    return (int(row[0]) if row and row[0] is not None else 0) + 1


def create_question(payload: QuestionWrite) -> Question:
    """Insert a question and return it.

    Raises QuestionDefinitionError for impossible constraints.
    """
    validate_question_definition(payload)
    get_cycle(payload.cycle_id)
    question_id = str(uuid.uuid4())
    order = payload.order if payload.order is not None else get_next_question_order(payload.cycle_id)
    eng = get_engine()
    try:
        with eng.begin() as conn:
            conn.execute(
                sql_text(
                    f"INSERT INTO application_question ({_COLUMNS}) "
                    "VALUES (:qid, :cid, :type, :label, :ord, :req, :opts, :minl, :maxl)"
                ),
                {"qid": question_id, "ord": int(order), **_params(payload)},
            )
    except Exception:
        logger.error("create_question failed cycle_id=%s", payload.cycle_id, exc_info=True)
        raise
    logger.info("question_created q_id=%s cycle_id=%s type=%s order=%s", question_id, payload.cycle_id, payload.type, order)
    return get_question(question_id)


def update_question(question_id: str, payload: QuestionWrite) -> Question:
    """Replace a question's definition; the order is kept when not supplied."""
    validate_question_definition(payload)
    current = get_question(question_id)
    order = payload.order if payload.order is not None else current.order
    eng = get_engine()
    with eng.begin() as conn:
        result = conn.execute(
            sql_text(
                "UPDATE application_question SET cycle_id = :cid, type = :type, label = :label, "
                "question_order = :ord, required = :req, options = :opts, min_length = :minl, "
                "max_length = :maxl WHERE id = :qid"
            ),
            {"qid": str(question_id), "ord": int(order), **_params(payload)},
        )
    if result.rowcount == 0:
        raise NotFoundError(f"Question with id {question_id} not found")
    logger.info("question_updated q_id=%s", question_id)
    return get_question(question_id)


def delete_question(question_id: str) -> None:
    """Delete a question together with every stored answer to it."""
    eng = get_engine()
    with eng.begin() as conn:
        result = conn.execute(
            sql_text("DELETE FROM application_question WHERE id = :qid"), {"qid": str(question_id)}
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Question with id {question_id} not found")
        conn.execute(
            sql_text("DELETE FROM application_response WHERE question_id = :qid"), {"qid": str(question_id)}
        )
    logger.info("question_deleted q_id=%s", question_id)


def reorder_questions(cycle_id: str, ids: List[str]) -> List[Question]:
    """Assign `question_order = position` for each id in the given sequence.

    Ids that do not belong to the cycle are ignored.
    """
    eng = get_engine()
    try:
        with eng.begin() as conn:
            for position, question_id in enumerate(ids):
                conn.execute(
                    sql_text(
                        "UPDATE application_question SET question_order = :pos "
                        "WHERE id = :qid AND cycle_id = :cid"
                    ),
                    {"pos": position, "qid": str(question_id), "cid": str(cycle_id)},
                )
    except Exception:
        logger.error("reorder_questions failed cycle_id=%s", cycle_id, exc_info=True)
        raise
    logger.info("questions_reordered cycle_id=%s count=%s", cycle_id, len(ids))
    return list_questions(cycle_id)


__all__ = [
    "list_questions",
    "get_question",
    "get_next_question_order",
    "create_question",
    "update_question",
    "delete_question",
    "reorder_questions",
]
