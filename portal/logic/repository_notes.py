"""Member notes on applications."""

from __future__ import annotations

import logging
import uuid
from typing import List

from sqlalchemy import text as sql_text

from portal.db.base import get_engine
from portal.logic.clock import to_rfc3339, utc_now
from portal.logic.errors import NotFoundError
from portal.logic.repository_applications import get_application
from portal.models.notes import Note, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)

_COLUMNS = "id, application_id, author_id, content, created_at"


def _note_from_row(row) -> Note:
    return Note(
        id=str(row[0]),
        application_id=str(row[1]),
        author_id=str(row[2]),
        content=str(row[3]),
        created_at=row[4],
    )


def _get_note(note_id: str) -> Note:
    eng = get_engine()
    with eng.connect() as conn:
        row = conn.execute(
            sql_text(f"SELECT {_COLUMNS} FROM application_note WHERE id = :id"), {"id": str(note_id)}
        ).fetchone()
    if row is None:
        raise NotFoundError(f"Note {note_id} not found")
    return _note_from_row(row)


def list_notes(application_id: str) -> List[Note]:
    get_application(application_id)
    eng = get_engine()
    with eng.connect() as conn:
        rows = conn.execute(
            sql_text(
                f"SELECT {_COLUMNS} FROM application_note WHERE application_id = :aid ORDER BY created_at, id"
            ),
            {"aid": str(application_id)},
        ).fetchall()
    return [_note_from_row(r) for r in rows]


def add_note(application_id: str, payload: NoteCreate) -> Note:
    get_application(application_id)
    note_id = str(uuid.uuid4())
    eng = get_engine()
    with eng.begin() as conn:
        conn.execute(
            sql_text(
                f"INSERT INTO application_note ({_COLUMNS}) VALUES (:id, :aid, :author, :content, :at)"
            ),
            {
                "id": note_id,
                "aid": str(application_id),
                "author": payload.author_id,
                "content": payload.content,
                "at": to_rfc3339(utc_now()),
            },
        )
    logger.info("note_added app_id=%s note_id=%s", application_id, note_id)
    return _get_note(note_id)


def update_note(note_id: str, payload: NoteUpdate) -> Note:
    eng = get_engine()
    with eng.begin() as conn:
        result = conn.execute(
            sql_text("UPDATE application_note SET content = :content WHERE id = :id"),
            {"content": payload.content, "id": str(note_id)},
        )
    if result.rowcount == 0:
        raise NotFoundError(f"Note {note_id} not found")
    return _get_note(note_id)


def delete_note(note_id: str) -> None:
    eng = get_engine()
    with eng.begin() as conn:
        result = conn.execute(sql_text("DELETE FROM application_note WHERE id = :id"), {"id": str(note_id)})
    if result.rowcount == 0:
        raise NotFoundError(f"Note {note_id} not found")
    logger.info("note_deleted note_id=%s", note_id)


__all__ = ["list_notes", "add_note", "update_note", "delete_note"]
