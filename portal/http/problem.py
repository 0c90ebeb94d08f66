"""RFC 7807 problem responses.

All errors leave the API as `application/problem+json` with a stable `code`
and the request's correlation id, so the autosave client can tell a
retryable failure from a rejection and support can find the server log line.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portal.logic.errors import PortalError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _problem_response(
    request: Request, problem: Dict[str, Any], headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    body = {**problem, "request_id": _request_id(request)}
    return JSONResponse(
        jsonable_encoder(body),
        status_code=int(problem["status"]),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


async def handle_portal_error(request: Request, exc: PortalError) -> JSONResponse:
    problem = exc.to_problem()
    logger.info(
        "problem code=%s status=%s path=%s request_id=%s",
        exc.code,
        exc.status,
        request.url.path,
        _request_id(request),
    )
    return _problem_response(request, problem)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    status_code = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        problem = {"status": status_code, **exc.detail}
    else:
        problem = {
            "title": "Error",
            "status": status_code,
            "detail": str(exc.detail or ""),
            "code": "NOT_FOUND" if status_code == 404 else "HTTP_ERROR",
        }
    return _problem_response(request, problem, headers=getattr(exc, "headers", None))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.info("validation_422 path=%s errors_cnt=%s", request.url.path, len(errors))
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": "REQUEST_INVALID",
        "errors": errors,
    }
    return _problem_response(request, problem)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unexpected_error path=%s request_id=%s", request.url.path, _request_id(request), exc_info=exc
    )
    problem = {"title": "Internal Server Error", "status": 500, "code": "INTERNAL_ERROR"}
    return _problem_response(request, problem)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_portal_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
