"""Domain errors raised by repositories and rendered as problem+json.

Each error carries an HTTP status, a stable machine-readable `code` and a
human-readable `detail`. Routes never build error payloads by hand; the
global handler in `portal.http.problem` turns these into responses.
"""

from __future__ import annotations

from typing import Any, Dict


class PortalError(Exception):
    status: int = 400
    title: str = "Bad Request"
    code: str = "PORTAL_ERROR"

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_problem(self) -> Dict[str, Any]:
        problem: Dict[str, Any] = {
            "title": self.title,
            "status": self.status,
            "detail": self.detail,
            "code": self.code,
        }
        problem.update(self.extra)
        return problem


class NotFoundError(PortalError):
    status = 404
    title = "Not Found"
    code = "NOT_FOUND"


class ConflictError(PortalError):
    status = 409
    title = "Conflict"
    code = "CONFLICT"


class QuestionDefinitionError(PortalError):
    code = "QUESTION_DEFINITION_INVALID"


class CycleDefinitionError(PortalError):
    code = "CYCLE_DEFINITION_INVALID"


class ApplicationSubmittedError(ConflictError):
    code = "APPLICATION_SUBMITTED"


class SubmissionBlockedError(ConflictError):
    code = "SUBMISSION_BLOCKED"


class CycleClosedError(ConflictError):
    code = "CYCLE_CLOSED"


class UploadAlreadyStoredError(ConflictError):
    code = "UPLOAD_ALREADY_STORED"


class UploadTooLargeError(PortalError):
    status = 413
    title = "Payload Too Large"
    code = "UPLOAD_TOO_LARGE"


__all__ = [
    "PortalError",
    "NotFoundError",
    "ConflictError",
    "QuestionDefinitionError",
    "CycleDefinitionError",
    "ApplicationSubmittedError",
    "SubmissionBlockedError",
    "CycleClosedError",
    "UploadAlreadyStoredError",
    "UploadTooLargeError",
]
