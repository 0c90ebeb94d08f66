"""Submission gating verdict computation.

Computes a verdict with the shape `{ ok: bool, blocking_items: [] }`. A
question blocks submission if it is marked required and the application has
no non-empty response for it. This is the server-side counterpart of the
client's field validation and catches questions added after the form loaded.
"""

from __future__ import annotations

import logging

from sqlalchemy import text as sql_text

from portal.db.base import get_engine
from portal.models.applications import BlockingItem, GatingVerdict

logger = logging.getLogger(__name__)


def evaluate_gating(application_id: str, cycle_id: str) -> GatingVerdict:
    """Compute the gating verdict for an application within its cycle."""
    logger.info("gating_check_start app_id=%s cycle_id=%s", application_id, cycle_id)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                """
                SELECT q.id
                FROM application_question q
                WHERE q.cycle_id = :cid
                  AND q.required = :req
                  AND NOT EXISTS (
                    SELECT 1 FROM application_response r
                    WHERE r.application_id = :aid
                      AND r.question_id = q.id
                      AND r.value IS NOT NULL
                      AND r.value <> ''
                      AND r.value <> '[]'
                  )
                ORDER BY q.question_order ASC, q.id ASC
                """
            ),
            {"cid": str(cycle_id), "aid": str(application_id), "req": True},
        ).fetchall()
    missing_ids = [str(row[0]) for row in rows]
    items = [BlockingItem(question_id=mid, reason="missing_required_answer") for mid in missing_ids]
    verdict = GatingVerdict(ok=not items, blocking_items=items)
    logger.info("gating_verdict app_id=%s ok=%s missing=%s", application_id, verdict.ok, missing_ids)
    return verdict


__all__ = ["evaluate_gating"]
