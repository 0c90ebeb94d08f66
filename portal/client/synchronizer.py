"""Autosave synchronizer for an applicant's application form.

The synchronizer owns the local copy of every answer and keeps the Response
Store in step with it:

- Every value change runs change detection against the last snapshot.
- Non-file changes go into a pending-edit buffer that is flushed by a single
  shared debounce timer; each qualifying edit restarts the timer for all
  buffered fields. Buffered entries are removed when their write is
  dispatched, not when it is acknowledged.
- File changes bypass the buffer and start the upload pipeline at once
  (destination request, byte transfer, response write). While a question is
  uploading it is listed in `uploads` and submission is disabled.
- `submit()` validates the form, waits for uploads to drain and calls the
  Submission Service. It does not wait for buffered non-file edits.

All state is mutated on the event loop thread only. Coroutines re-read shared
state after every await instead of trusting values captured before it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Coroutine, Dict, Iterable, Literal, Mapping, Optional, Sequence

from portal.client import notices
from portal.client.change_detector import detect_changes
from portal.client.errors import (
    ApplicationLockedError,
    InconsistencyError,
    ServiceError,
    TransientServiceError,
)
from portal.client.retry import RetryPolicy, call_with_retry
from portal.client.services import PortalServices
from portal.client.upload_tracker import UploadTracker
from portal.config import get_config
from portal.logic.answer_canonical import canonicalize_value, decode_value
from portal.logic.validation import FormValidator
from portal.models.applications import Application
from portal.models.field_type import FieldType
from portal.models.questions import Question
from portal.models.responses import Response, ResponseUpsert
from portal.models.uploads import LocalFile

logger = logging.getLogger(__name__)

CONFIRMATION_PATH = "/apply/confirmation"


class SubmitState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


@dataclass
class PendingEdit:
    question_id: str
    application_id: str
    value: Any
    response_id: Optional[str] = None
    # Per-question dispatch number, assigned when the edit leaves the buffer
    seq: int = 0


@dataclass(frozen=True)
class SubmitOutcome:
    status: Literal["submitted", "blocked", "invalid", "failed"]
    field_errors: Mapping[str, str] = field(default_factory=dict)
    notice: Optional[notices.Notice] = None

    @property
    def ok(self) -> bool:
        return self.status == "submitted"


class AutosaveSynchronizer:
    """Reconciles locally edited answers with the remote Response Store.

    Must be driven from inside a running asyncio event loop: `set_value`
    schedules the debounce timer and upload tasks on the current loop.
    """

    def __init__(
        self,
        services: PortalServices,
        application: Application,
        questions: Sequence[Question],
        responses: Iterable[Response] = (),
        *,
        debounce_seconds: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        navigate: Optional[Callable[[str], None]] = None,
        on_notice: Optional[Callable[[notices.Notice], None]] = None,
        max_resaves: Optional[int] = None,
        support_contact: str = notices.DEFAULT_SUPPORT_CONTACT,
    ) -> None:
        cfg = get_config()
        self._services = services
        self.application = application.model_copy()
        self._questions: Dict[str, Question] = {q.id: q for q in questions}
        self._debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else cfg.autosave.debounce_seconds
        )
        self._retry = retry_policy or RetryPolicy.from_config(cfg.client)
        self._max_resaves = max_resaves if max_resaves is not None else cfg.autosave.max_resaves
        self._navigate = navigate
        self._on_notice = on_notice
        self._support_contact = support_contact

        stored = {r.question_id: r for r in responses}
        self._response_ids: Dict[str, str] = {qid: r.id for qid, r in stored.items()}
        initial = {
            q.id: decode_value(q.type, stored[q.id].value if q.id in stored else None) for q in questions
        }
        self._values: Dict[str, Any] = dict(initial)
        # Last values handed to the buffer or the upload pipeline
        self._snapshot: Dict[str, Any] = dict(initial)
        self._validator = FormValidator(questions, {qid: r.value for qid, r in stored.items()})

        self._pending: Dict[str, PendingEdit] = {}
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()
        self._write_locks: Dict[str, asyncio.Lock] = {}
        self._dispatch_seq: Dict[str, int] = {}
        self._save_failures: Dict[str, int] = {}
        self._failed_uploads: Dict[str, LocalFile] = {}

        self.uploads = UploadTracker()
        self.state = SubmitState.SUBMITTED if application.submitted else SubmitState.EDITING
        self.loading = False
        self.notices: list[notices.Notice] = []
        self.field_errors: Dict[str, str] = {}
        self.location: Optional[str] = None

    @classmethod
    async def load(
        cls,
        services: PortalServices,
        application: Application,
        **kwargs: Any,
    ) -> "AutosaveSynchronizer":
        """Fetch the cycle's questions and the stored responses, then build."""
        policy = kwargs.get("retry_policy") or RetryPolicy.from_config(get_config().client)
        questions = await call_with_retry(
            "get_questions", lambda: services.get_questions(application.cycle_id), policy
        )
        responses = await call_with_retry(
            "get_responses", lambda: services.get_responses(application.id), policy
        )
        logger.info(
            "autosave_loaded app_id=%s questions=%s responses=%s",
            application.id,
            len(questions),
            len(responses),
        )
        return cls(services, application, questions, responses, **kwargs)

    async def __aenter__(self) -> "AutosaveSynchronizer":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def questions(self) -> list[Question]:
        return sorted(self._questions.values(), key=lambda q: (q.order, q.id))

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    @property
    def pending_question_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    @property
    def failed_upload_question_ids(self) -> frozenset[str]:
        return frozenset(self._failed_uploads)

    @property
    def read_only(self) -> bool:
        return self.state is not SubmitState.EDITING

    @property
    def can_submit(self) -> bool:
        """Whether the submit control is enabled."""
        return self.state is SubmitState.EDITING and len(self.uploads) == 0

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def set_value(self, question_id: str, value: Any) -> None:
        self.set_values({question_id: value})

    def set_values(self, values: Mapping[str, Any]) -> None:
        """Apply edits and run one change-detection pass over the whole form."""
        if self.read_only:
            raise ApplicationLockedError("Application has been submitted and can no longer be edited")
        unknown = sorted(qid for qid in values if qid not in self._questions)
        if unknown:
            raise InconsistencyError(f"Question {unknown[0]} not found for edited field")
        self._values.update(values)
        self._reconcile()

    def validate_field(self, question_id: str) -> Optional[str]:
        """Inline validation message for one field, or None when valid."""
        message = self._validator.validate_field(question_id, self._values.get(question_id))
        failed = self._failed_uploads.get(question_id)
        if message is None and failed is not None:
            return f"Uploading {failed.filename} failed; retry the upload"
        return message

    def _reconcile(self) -> None:
        changes = detect_changes(self._snapshot, self._values, self._questions)
        buffered = False
        for change in changes:
            question = change.question
            if question.type == FieldType.FILE_UPLOAD:
                if isinstance(change.value, LocalFile):
                    self._start_upload(question.id, change.value)
                else:
                    logger.debug("file_field_cleared q_id=%s", question.id)
                continue
            self._pending[question.id] = PendingEdit(
                question_id=question.id,
                application_id=self.application.id,
                value=change.value,
                response_id=self._response_ids.get(question.id),
            )
            buffered = True
        if buffered:
            self._reschedule()
        self._snapshot = dict(self._values)

    # ------------------------------------------------------------------
    # Debounce / flush
    # ------------------------------------------------------------------

    def _reschedule(self, delay: Optional[float] = None) -> None:
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self._debounce_seconds if delay is None else delay, self._flush)
        logger.debug("autosave_debounce_reset pending=%s", len(self._pending))

    def flush_now(self) -> None:
        """Dispatch every buffered edit immediately instead of waiting for the timer."""
        if self._timer is not None:
            self._timer.cancel()
        self._flush()

    def _flush(self) -> None:
        self._timer = None
        if not self._pending:
            return
        logger.info("autosave_flush app_id=%s count=%s", self.application.id, len(self._pending))
        for question_id in list(self._pending):
            edit = self._pending.pop(question_id)
            edit.seq = self._dispatch_seq[question_id] = self._dispatch_seq.get(question_id, 0) + 1
            self._spawn(self._persist(edit))

    def _lock_for(self, question_id: str) -> asyncio.Lock:
        lock = self._write_locks.get(question_id)
        if lock is None:
            lock = self._write_locks[question_id] = asyncio.Lock()
        return lock

    async def _write_response(self, question_id: str, value: Optional[str]) -> Response:
        """Create-or-update one response; writes for a question go out in dispatch order."""
        async with self._lock_for(question_id):
            # An earlier write may have created the Response while we waited
            upsert = ResponseUpsert(
                question_id=question_id,
                application_id=self.application.id,
                value=value,
                id=self._response_ids.get(question_id),
            )
            response = await call_with_retry(
                "create_or_update_response",
                lambda: self._services.create_or_update_response(upsert),
                self._retry,
            )
            self._response_ids[question_id] = response.id
            return response

    async def _persist(self, edit: PendingEdit) -> None:
        try:
            response = await self._write_response(edit.question_id, canonicalize_value(edit.value))
        except ServiceError as exc:
            self._requeue_failed(edit, exc)
            return
        if self._dispatch_seq.get(edit.question_id) == edit.seq:
            self._save_failures.pop(edit.question_id, None)
        logger.info(
            "autosave_write_ok q_id=%s r_id=%s version=%s", edit.question_id, response.id, response.version
        )

    def _requeue_failed(self, edit: PendingEdit, exc: ServiceError) -> None:
        """Put a failed edit back in the buffer if it is still the latest for its question.

        Transient failures re-arm the timer with a growing delay, at most
        `max_resaves` times in a row; rejections wait for the next flush.
        """
        question_id = edit.question_id
        if self.state is SubmitState.SUBMITTED:
            logger.error("autosave_write_lost_after_submit q_id=%s", question_id, exc_info=exc)
            return
        if self._dispatch_seq.get(question_id) != edit.seq or question_id in self._pending:
            logger.warning("autosave_write_failed_superseded q_id=%s seq=%s", question_id, edit.seq, exc_info=exc)
            return
        logger.error("autosave_write_failed q_id=%s seq=%s", question_id, edit.seq, exc_info=exc)
        self._pending[question_id] = edit
        self._notify(notices.save_failed(question_id))
        if not isinstance(exc, TransientServiceError):
            return
        failures = self._save_failures[question_id] = self._save_failures.get(question_id, 0) + 1
        if failures > self._max_resaves:
            logger.warning("autosave_resave_exhausted q_id=%s failures=%s", question_id, failures)
            return
        if self._timer is None:
            self._reschedule(self._debounce_seconds * 2 ** (failures - 1))

    # ------------------------------------------------------------------
    # Upload pipeline
    # ------------------------------------------------------------------

    def _start_upload(self, question_id: str, file: LocalFile) -> None:
        self._failed_uploads.pop(question_id, None)
        self.uploads.begin(question_id)
        logger.info("upload_start q_id=%s filename=%s size=%s", question_id, file.filename, len(file.content))
        self._spawn(self._upload(question_id, file))

    async def _upload(self, question_id: str, file: LocalFile) -> None:
        try:
            destination = await call_with_retry(
                "request_upload_destination",
                lambda: self._services.request_upload_destination(file.filename),
                self._retry,
            )
            await call_with_retry(
                "transfer_bytes",
                lambda: self._services.transfer_bytes(
                    destination.destination_url, file.content, file.content_type
                ),
                self._retry,
            )
            response = await self._write_response(question_id, destination.storage_key)
            logger.info(
                "upload_complete q_id=%s key=%s r_id=%s", question_id, destination.storage_key, response.id
            )
        except ServiceError:
            logger.error("upload_failed q_id=%s filename=%s", question_id, file.filename, exc_info=True)
            self._failed_uploads[question_id] = file
            self._notify(notices.upload_failed(question_id, file.filename))
        finally:
            self.uploads.finish(question_id)

    def retry_upload(self, question_id: str) -> bool:
        """Re-run the pipeline for a failed upload; False when nothing to retry."""
        if self.read_only:
            raise ApplicationLockedError("Application has been submitted and can no longer be edited")
        file = self._failed_uploads.get(question_id)
        if file is None:
            return False
        self._start_upload(question_id, file)
        return True

    # ------------------------------------------------------------------
    # Submit gate
    # ------------------------------------------------------------------

    async def submit(self) -> SubmitOutcome:
        """Run the Editing -> Submitting -> Submitted transition.

        Buffered non-file edits are not awaited; only uploads are.
        """
        if self.state is SubmitState.SUBMITTED:
            return SubmitOutcome(status="submitted")
        if not self.can_submit:
            logger.info("submit_blocked app_id=%s uploading=%s", self.application.id, sorted(self.uploads.question_ids))
            return SubmitOutcome(status="blocked")

        self.field_errors = self._validator.validate(self._values)
        for question_id in self._failed_uploads:
            self.field_errors.setdefault(question_id, self.validate_field(question_id))
        if self.field_errors:
            logger.info("submit_invalid app_id=%s fields=%s", self.application.id, sorted(self.field_errors))
            return SubmitOutcome(status="invalid", field_errors=dict(self.field_errors))

        self.state = SubmitState.SUBMITTING
        self.application.submitted = True
        self.loading = True
        await self.uploads.wait_drained()
        try:
            submitted = await call_with_retry(
                "submit_application",
                lambda: self._services.submit_application(self.application.id),
                self._retry,
            )
        except ServiceError as exc:
            logger.warning(
                "submit_failed app_id=%s status=%s code=%s",
                self.application.id,
                exc.status,
                exc.code,
                exc_info=True,
            )
            self.state = SubmitState.EDITING
            self.application.submitted = False
            self.loading = False
            notice = notices.submit_failed(self._support_contact)
            self._notify(notice)
            return SubmitOutcome(status="failed", notice=notice)

        self.application = submitted.model_copy()
        self.state = SubmitState.SUBMITTED
        logger.info("submit_ok app_id=%s pending_unsent=%s", self.application.id, len(self._pending))
        self._go(CONFIRMATION_PATH)
        return SubmitOutcome(status="submitted")

    # ------------------------------------------------------------------
    # Task bookkeeping and teardown
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("autosave_task_crashed app_id=%s", self.application.id, exc_info=exc)

    def _notify(self, notice: notices.Notice) -> None:
        self.notices.append(notice)
        logger.info("notice level=%s title=%s q_id=%s", notice.level, notice.title, notice.question_id)
        if self._on_notice is not None:
            self._on_notice(notice)

    def _go(self, path: str) -> None:
        self.location = path
        if self._navigate is not None:
            self._navigate(path)

    async def drain(self) -> None:
        """Wait until every dispatched write and upload has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel the timer, dispatch buffered edits and wait for in-flight work."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.state is not SubmitState.SUBMITTED:
            self._flush()
        await self.drain()


__all__ = [
    "AutosaveSynchronizer",
    "CONFIRMATION_PATH",
    "PendingEdit",
    "SubmitOutcome",
    "SubmitState",
]
