"""Functional test bootstrap.

Every test gets a fresh in-memory SQLite database, empty upload blob store and
empty event buffer. Environment overrides are applied before any portal
module reads configuration.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["UPLOADS_PUBLIC_BASE_URL"] = "http://testserver/api/v1/uploads"
os.environ.setdefault("AUTOSAVE_DEBOUNCE_MS", "50")


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def fresh_portal_state():
    from portal.config import get_config
    from portal.db import dispose_engine, init_schema
    from portal.logic.events import EVENT_BUFFER
    from portal.logic.inmemory_state import UPLOAD_BLOBS_STORE

    dispose_engine()
    get_config(reload=True)
    init_schema()
    UPLOAD_BLOBS_STORE.clear()
    EVENT_BUFFER.clear()
    yield
    dispose_engine()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from portal.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def open_cycle():
    """A cycle that opened yesterday and closes in a month."""
    from portal.logic.repository_cycles import create_cycle
    from portal.models.cycles import RecruitmentCycleCreate

    now = datetime.now(timezone.utc)
    return create_cycle(
        RecruitmentCycleCreate(
            name="Fall recruitment",
            start_time=now - timedelta(days=1),
            end_time=now + timedelta(days=30),
        )
    )


@pytest.fixture
def form(open_cycle):
    """Questions of every type for the open cycle plus an unsubmitted application.

    Returns a dict with `cycle`, `application` and `questions` keyed by a short
    name (name, bio, year, roles, resume, relocate).
    """
    from portal.logic.repository_applications import create_or_get_application
    from portal.logic.repository_questions import create_question
    from portal.models.applications import ApplicationCreate
    from portal.models.questions import QuestionWrite

    specs = {
        "name": dict(type="string", label="Full name", min_length=2, max_length=40),
        "bio": dict(type="string", label="About you", required=False),
        "year": dict(type="dropdown", label="Year", options=["1", "2", "3", "4"]),
        "roles": dict(type="checkbox", label="Roles", options=["dev", "design", "pm"]),
        "resume": dict(type="file_upload", label="Resume"),
        "relocate": dict(type="boolean", label="Willing to relocate", required=False),
    }
    questions = {
        key: create_question(QuestionWrite(cycle_id=open_cycle.id, **spec)) for key, spec in specs.items()
    }
    application, _ = create_or_get_application(
        ApplicationCreate(cycle_id=open_cycle.id, applicant_id="applicant-1")
    )
    return {"cycle": open_cycle, "application": application, "questions": questions}


class FakePortalServices:
    """In-memory PortalServices double.

    `fail(op, *errors)` queues exceptions raised by the next calls to `op`;
    `hold(op)` returns an Event that calls to `op` wait on until it is set.
    """

    def __init__(self, application, questions=(), responses=()):
        self.application = application
        self.questions = list(questions)
        self.responses = {r.question_id: r for r in responses}
        self.blobs: dict = {}
        self.calls: list = []
        self._failures: dict = {}
        self._gates: dict = {}
        self._keys = 0

    def fail(self, operation: str, *errors: Exception) -> None:
        self._failures.setdefault(operation, []).extend(errors)

    def hold(self, operation: str):
        import asyncio

        gate = self._gates[operation] = asyncio.Event()
        return gate

    def calls_to(self, operation: str) -> list:
        return [args for op, *args in self.calls if op == operation]

    async def _enter(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        gate = self._gates.get(operation)
        if gate is not None:
            await gate.wait()
        queued = self._failures.get(operation)
        if queued:
            raise queued.pop(0)

    async def get_questions(self, cycle_id):
        await self._enter("get_questions", cycle_id)
        return list(self.questions)

    async def get_responses(self, application_id):
        await self._enter("get_responses", application_id)
        return list(self.responses.values())

    async def create_or_update_response(self, upsert):
        from portal.client.errors import ServiceRejectedError
        from portal.models.responses import Response

        await self._enter("create_or_update_response", upsert)
        if self.application.submitted:
            raise ServiceRejectedError("submitted", status=409, code="APPLICATION_SUBMITTED")
        existing = self.responses.get(upsert.question_id)
        if upsert.id is not None and (existing is None or existing.id != upsert.id):
            raise ServiceRejectedError("bad id", status=409, code="CONFLICT")
        if existing is None:
            saved = Response(
                id=f"r-{upsert.question_id}",
                question_id=upsert.question_id,
                application_id=upsert.application_id,
                value=upsert.value,
            )
        else:
            saved = existing.model_copy(update={"value": upsert.value, "version": existing.version + 1})
        self.responses[upsert.question_id] = saved
        return saved

    async def request_upload_destination(self, filename):
        from portal.models.uploads import UploadDestination

        await self._enter("request_upload_destination", filename)
        self._keys += 1
        key = f"key{self._keys}-{filename}"
        return UploadDestination(destination_url=f"memory://{key}", storage_key=key)

    async def transfer_bytes(self, destination_url, content, content_type=None):
        await self._enter("transfer_bytes", destination_url, content, content_type)
        self.blobs[destination_url] = content

    async def submit_application(self, application_id):
        from datetime import datetime, timezone

        await self._enter("submit_application", application_id)
        self.application = self.application.model_copy(
            update={"submitted": True, "submitted_at": datetime.now(timezone.utc)}
        )
        return self.application


@pytest.fixture
def client_questions():
    from portal.models.questions import Question

    def q(qid, type_, order, **kw):
        return Question(id=qid, cycle_id="cycle-1", type=type_, label=qid.title(), order=order, **kw)

    return [
        q("name", "string", 0, min_length=2, max_length=40),
        q("bio", "string", 1, required=False),
        q("roles", "checkbox", 2, options=["dev", "design"]),
        q("resume", "file_upload", 3),
        q("relocate", "boolean", 4, required=False),
    ]


@pytest.fixture
def draft_application():
    from portal.models.applications import Application

    return Application(id="app-1", cycle_id="cycle-1", applicant_id="applicant-1")


@pytest.fixture
def fake_services(draft_application, client_questions):
    return FakePortalServices(draft_application, client_questions)


@pytest.fixture
def fast_retry():
    from portal.client.retry import RetryPolicy

    return RetryPolicy(timeout_s=2.0, max_attempts=3, backoff_initial_s=0.0)
