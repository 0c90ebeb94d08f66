"""Answer canonicalization, form validation, change detection and client plumbing."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from portal.client.change_detector import detect_changes
from portal.client.errors import InconsistencyError, ServiceRejectedError, TransientServiceError
from portal.client.retry import RetryPolicy, call_with_retry
from portal.client.upload_tracker import UploadTracker
from portal.logic.answer_canonical import canonicalize_value, decode_value
from portal.logic.errors import QuestionDefinitionError
from portal.logic.validation import FormValidator, validate_question_definition
from portal.models.questions import Question, QuestionWrite
from portal.models.uploads import LocalFile


def _q(qid: str, type_: str, **kw) -> Question:
    return Question(id=qid, cycle_id="c", type=type_, label=qid, order=0, **kw)


@pytest.mark.parametrize(
    "value, stored",
    [
        (True, "true"),
        (False, "false"),
        (["a", "b"], '["a", "b"]'),
        ([], "[]"),
        ("text", "text"),
        ("", ""),
        (None, None),
    ],
)
def test_canonicalize_value(value, stored):
    assert canonicalize_value(value) == stored


def test_decode_value_defaults_per_type():
    assert decode_value("checkbox", None) == []
    assert decode_value("checkbox", "not json") == ["not json"]
    assert decode_value("boolean", "false") is False
    assert decode_value("boolean", "maybe") == ""
    assert decode_value("string", None) == ""
    assert decode_value("file_upload", "key-1") == "key-1"


def test_question_definition_checks():
    validate_question_definition(QuestionWrite(cycle_id="c", type="string", label="x", min_length=3, max_length=3))
    with pytest.raises(QuestionDefinitionError, match="Minimum length"):
        validate_question_definition(QuestionWrite(cycle_id="c", type="string", label="x", min_length=4, max_length=3))
    with pytest.raises(QuestionDefinitionError):
        validate_question_definition(QuestionWrite(cycle_id="c", type="multiple_choice", label="x"))


def test_form_validator_rules_by_type():
    questions = [
        _q("name", "string", min_length=2, max_length=5),
        _q("note", "string", required=False, max_length=3),
        _q("pick", "multiple_choice", options=["a", "b"]),
        _q("many", "checkbox", options=["x", "y"]),
        _q("optmany", "checkbox", options=["x"], required=False),
        _q("agree", "boolean"),
        _q("cv", "file_upload"),
        _q("extra", "file_upload", required=False),
    ]
    validator = FormValidator(questions)

    valid = {
        "name": "Ada",
        "note": "",
        "pick": "b",
        "many": ["y"],
        "optmany": [],
        "agree": False,
        "cv": LocalFile(filename="cv.pdf", content=b"x"),
        "extra": "",
    }
    assert validator.validate(valid) == {}

    invalid = {
        "name": "A",
        "note": "toolong",
        "pick": "c",
        "many": [],
        "optmany": ["z"],
        "agree": "",
        "cv": "",
        "extra": None,
    }
    assert set(validator.validate(invalid)) == {"name", "note", "pick", "many", "optmany", "agree", "cv"}


def test_stored_file_satisfies_required_upload():
    validator = FormValidator([_q("cv", "file_upload")], {"cv": "key-cv.pdf"})
    assert validator.validate_field("cv", "key-cv.pdf") is None
    assert validator.validate_field("unknown", "anything") is None


def test_detect_changes_compares_by_value():
    questions = {"a": _q("a", "string"), "b": _q("b", "checkbox", options=["x"])}
    changes = detect_changes({"a": "1", "b": ["x"]}, {"a": "2", "b": ["x"]}, questions)
    assert [(c.question.id, c.value) for c in changes] == [("a", "2")]
    assert detect_changes({}, {"a": "1"}, questions)[0].value == "1"
    with pytest.raises(InconsistencyError):
        detect_changes({}, {"zzz": "1"}, questions)


@pytest.mark.anyio
async def test_call_with_retry_stops_on_rejection():
    attempts = []

    async def rejected():
        attempts.append(1)
        raise ServiceRejectedError("bad request", status=400)

    with pytest.raises(ServiceRejectedError):
        await call_with_retry("op", rejected, RetryPolicy(max_attempts=5, backoff_initial_s=0.0))
    assert len(attempts) == 1


@pytest.mark.anyio
async def test_call_with_retry_gives_up_after_max_attempts():
    attempts = []

    async def flaky():
        attempts.append(1)
        raise TransientServiceError("503", status=503)

    with pytest.raises(TransientServiceError):
        await call_with_retry("op", flaky, RetryPolicy(max_attempts=3, backoff_initial_s=0.0))
    assert len(attempts) == 3


@pytest.mark.anyio
async def test_call_with_retry_times_out_each_attempt():
    async def stalled():
        await asyncio.sleep(5)

    with pytest.raises(TransientServiceError, match="timed out"):
        await call_with_retry("op", stalled, RetryPolicy(timeout_s=0.01, max_attempts=2, backoff_initial_s=0.0))


@pytest.mark.anyio
async def test_upload_tracker_counts_and_drains():
    tracker = UploadTracker()
    await tracker.wait_drained()
    tracker.begin("cv")
    tracker.begin("cv")
    tracker.finish("cv")
    assert "cv" in tracker and len(tracker) == 1

    waiter = asyncio.ensure_future(tracker.wait_drained())
    await asyncio.sleep(0)
    assert not waiter.done()
    tracker.finish("cv")
    await asyncio.wait_for(waiter, timeout=1)
    assert tracker.question_ids == frozenset()


def test_config_environment_overrides(monkeypatch):
    from portal.config import load_config

    monkeypatch.setenv("AUTOSAVE_DEBOUNCE_MS", "250")
    monkeypatch.setenv("CLIENT_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("AUTOSAVE_MAX_RESAVES", "2")
    monkeypatch.setenv("UPLOADS_PUBLIC_BASE_URL", "https://files.example/uploads/")
    cfg = load_config()
    assert cfg.autosave.debounce_seconds == 0.25
    assert cfg.client.max_attempts == 5
    assert cfg.autosave.max_resaves == 2
    assert cfg.uploads.public_base_url == "https://files.example/uploads"
    assert RetryPolicy.from_config(cfg.client).max_attempts == 5

    monkeypatch.setenv("AUTOSAVE_DEBOUNCE_MS", "0")
    with pytest.raises(ValidationError):
        load_config()
