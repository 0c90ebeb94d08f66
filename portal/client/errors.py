"""Exceptions raised by the autosave client.

`ServiceError` subclasses describe a failed call to one of the remote
collaborators; only `TransientServiceError` is worth retrying.
"""

from __future__ import annotations

from typing import Optional


class PortalClientError(Exception):
    pass


class InconsistencyError(PortalClientError):
    """An edited field has no Question record to validate or persist it against."""


class ApplicationLockedError(PortalClientError):
    """The application is submitting or submitted; the form is read-only."""


class ServiceError(PortalClientError):
    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status = status
        self.code = code


class TransientServiceError(ServiceError):
    """Timeout, connection failure or 5xx; the same call may succeed later."""


class ServiceRejectedError(ServiceError):
    """The service understood the call and refused it (4xx)."""


__all__ = [
    "PortalClientError",
    "InconsistencyError",
    "ApplicationLockedError",
    "ServiceError",
    "TransientServiceError",
    "ServiceRejectedError",
]
