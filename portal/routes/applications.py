"""Application, response autosave and submission endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from portal.logic.gating import evaluate_gating
from portal.logic.repository_applications import (
    create_or_get_application,
    get_application,
    submit_application,
)
from portal.logic.repository_responses import create_or_update_response, list_responses
from portal.models.applications import Application, ApplicationCreate, GatingVerdict
from portal.models.responses import Response, ResponseUpsert

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/applications",
    response_model=Application,
    summary="Create (or fetch) the applicant's application for a cycle",
    operation_id="createApplication",
    tags=["Applications"],
)
def post_application(payload: ApplicationCreate):
    application, created = create_or_get_application(payload)
    return JSONResponse(application.model_dump(mode="json"), status_code=201 if created else 200)


@router.get(
    "/applications/{application_id}",
    response_model=Application,
    summary="Get an application",
    operation_id="getApplication",
    tags=["Applications"],
)
def get_one_application(application_id: str) -> Application:
    return get_application(application_id)


@router.get(
    "/applications/{application_id}/responses",
    response_model=List[Response],
    summary="List the application's stored responses",
    operation_id="listResponses",
    tags=["Autosave"],
)
def get_responses(application_id: str) -> List[Response]:
    return list_responses(application_id)


@router.put(
    "/responses",
    response_model=Response,
    summary="Create or update a response by (question_id, application_id)",
    operation_id="createOrUpdateResponse",
    tags=["Autosave"],
)
def put_response(payload: ResponseUpsert) -> Response:
    return create_or_update_response(payload)


@router.get(
    "/applications/{application_id}/gating",
    response_model=GatingVerdict,
    summary="Check whether the application can be submitted",
    operation_id="getGating",
    tags=["Gating"],
)
def get_gating(application_id: str) -> GatingVerdict:
    application = get_application(application_id)
    return evaluate_gating(application.id, application.cycle_id)


@router.post(
    "/applications/{application_id}/submit",
    response_model=Application,
    summary="Submit the application (idempotent once submitted)",
    operation_id="submitApplication",
    tags=["Applications"],
)
def post_submit(application_id: str) -> Application:
    application = submit_application(application_id)
    logger.info("submit_ok app_id=%s", application.id)
    return application


__all__ = ["router"]
