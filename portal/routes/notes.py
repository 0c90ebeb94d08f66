"""Member notes endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Response

from portal.logic.repository_notes import add_note, delete_note, list_notes, update_note
from portal.models.notes import Note, NoteCreate, NoteUpdate

router = APIRouter()


@router.get(
    "/applications/{application_id}/notes",
    response_model=List[Note],
    summary="List notes on an application",
    operation_id="listNotes",
    tags=["Notes"],
)
def get_notes(application_id: str) -> List[Note]:
    return list_notes(application_id)


@router.post(
    "/applications/{application_id}/notes",
    status_code=201,
    response_model=Note,
    summary="Add a note to an application",
    operation_id="createNote",
    tags=["Notes"],
)
def post_note(application_id: str, payload: NoteCreate) -> Note:
    return add_note(application_id, payload)


@router.put(
    "/notes/{note_id}",
    response_model=Note,
    summary="Edit a note",
    operation_id="updateNote",
    tags=["Notes"],
)
def put_note(note_id: str, payload: NoteUpdate) -> Note:
    return update_note(note_id, payload)


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    summary="Delete a note",
    operation_id="deleteNote",
    tags=["Notes"],
)
def remove_note(note_id: str) -> Response:
    delete_note(note_id)
    return Response(status_code=204)


__all__ = ["router"]
