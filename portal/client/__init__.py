"""Applicant-side autosave client.

Typical use::

    services = HttpPortalServices.from_base_url("https://portal.example")
    async with await AutosaveSynchronizer.load(services, application) as form:
        form.set_value(question_id, "answer")
        outcome = await form.submit()
"""

from portal.client.errors import (
    ApplicationLockedError,
    InconsistencyError,
    PortalClientError,
    ServiceError,
    ServiceRejectedError,
    TransientServiceError,
)
from portal.client.notices import Notice
from portal.client.retry import RetryPolicy
from portal.client.services import HttpPortalServices, PortalServices
from portal.client.synchronizer import (
    CONFIRMATION_PATH,
    AutosaveSynchronizer,
    SubmitOutcome,
    SubmitState,
)

__all__ = [
    "ApplicationLockedError",
    "AutosaveSynchronizer",
    "CONFIRMATION_PATH",
    "HttpPortalServices",
    "InconsistencyError",
    "Notice",
    "PortalClientError",
    "PortalServices",
    "RetryPolicy",
    "ServiceError",
    "ServiceRejectedError",
    "SubmitOutcome",
    "SubmitState",
    "TransientServiceError",
]
