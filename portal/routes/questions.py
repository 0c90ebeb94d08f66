"""Question catalog endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Response

from portal.logic.repository_cycles import get_cycle
from portal.logic.repository_questions import (
    create_question,
    delete_question,
    list_questions,
    reorder_questions,
    update_question,
)
from portal.models.questions import Question, QuestionWrite, ReorderRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    "/cycles/{cycle_id}/questions",
    response_model=List[Question],
    summary="List a cycle's questions in display order",
    operation_id="listQuestions",
    tags=["Questions"],
)
def get_questions(cycle_id: str) -> List[Question]:
    get_cycle(cycle_id)
    return list_questions(cycle_id)


@router.post(
    "/questions",
    status_code=201,
    response_model=Question,
    summary="Create a question",
    operation_id="createQuestion",
    tags=["Questions"],
)
def post_question(payload: QuestionWrite) -> Question:
    return create_question(payload)


@router.put(
    "/questions/{question_id}",
    response_model=Question,
    summary="Replace a question's definition",
    operation_id="updateQuestion",
    tags=["Questions"],
)
def put_question(question_id: str, payload: QuestionWrite) -> Question:
    return update_question(question_id, payload)


@router.delete(
    "/questions/{question_id}",
    status_code=204,
    summary="Delete a question and its responses",
    operation_id="deleteQuestion",
    tags=["Questions"],
)
def remove_question(question_id: str) -> Response:
    delete_question(question_id)
    return Response(status_code=204)


@router.post(
    "/cycles/{cycle_id}/questions/reorder",
    response_model=List[Question],
    summary="Reorder a cycle's questions by id list",
    operation_id="reorderQuestions",
    tags=["Questions"],
)
def post_question_order(cycle_id: str, payload: ReorderRequest) -> List[Question]:
    get_cycle(cycle_id)
    return reorder_questions(cycle_id, payload.ids)


__all__ = ["router"]
