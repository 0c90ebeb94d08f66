"""Type-aware validation for questions and answers.

Two concerns live here:
- `validate_question_definition` guards admin writes to the question catalog.
- `FormValidator` derives one pydantic rule per question from its type and
  constraints and checks a whole set of answer values before submission (or a
  single field for inline feedback).
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Sequence, Union

from pydantic import Field, StrictBool, StrictStr, StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from portal.logic.errors import QuestionDefinitionError
from portal.models.field_type import FieldType
from portal.models.questions import Question, QuestionWrite
from portal.models.uploads import LocalFile


def validate_question_definition(payload: QuestionWrite) -> None:
    """Reject question definitions that could never be answered."""
    if payload.type == FieldType.STRING:
        if (payload.min_length or 0) > (payload.max_length if payload.max_length is not None else float("inf")):
            raise QuestionDefinitionError("Minimum length can't be larger than maximum length")
    if payload.type in FieldType.CHOICE_TYPES:
        if not payload.options:
            raise QuestionDefinitionError(f"{payload.type} questions need at least one option")
        if len(set(payload.options)) != len(payload.options):
            raise QuestionDefinitionError("Options must be unique")


def _choice(options: Sequence[str]) -> Any:
    if not options:
        return StrictStr
    return Literal[tuple(options)]  # type: ignore[valid-type]


def build_rule(question: Question, has_prior_value: bool = False) -> TypeAdapter:
    """Return a TypeAdapter enforcing the answer contract for `question`."""
    kind = question.type
    annotation: Any
    if kind == FieldType.BOOLEAN:
        annotation = StrictBool
    elif kind in (FieldType.MULTIPLE_CHOICE, FieldType.DROPDOWN):
        annotation = _choice(question.options)
    elif kind == FieldType.CHECKBOX:
        item = _choice(question.options)
        if question.required:
            annotation = Annotated[list[item], Field(min_length=1)]  # type: ignore[valid-type]
        else:
            annotation = list[item]  # type: ignore[valid-type]
    elif kind == FieldType.STRING:
        min_length = question.min_length or 0
        if question.required:
            min_length = max(min_length, 1)
        annotation = Annotated[
            StrictStr,
            StringConstraints(min_length=min_length, max_length=question.max_length),
        ]
    elif kind == FieldType.FILE_UPLOAD:
        # An already stored file satisfies the question; otherwise a pick is needed
        if has_prior_value or not question.required:
            return TypeAdapter(Optional[Union[LocalFile, StrictStr]])
        return TypeAdapter(LocalFile)
    else:  # pragma: no cover - FieldTypeName literal prevents this
        raise QuestionDefinitionError(f"unknown question type {kind!r}")

    if not question.required and kind != FieldType.CHECKBOX:
        annotation = Optional[Union[annotation, Literal[""]]]
    return TypeAdapter(annotation)


def _first_message(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid value"
    return str(errors[0].get("msg") or "Invalid value")


class FormValidator:
    """Validates answer values for one application's question set.

    `prior_values` maps question ids to the stored Response value (if any) at
    load time; it only matters for file questions.
    """

    def __init__(self, questions: Sequence[Question], prior_values: Mapping[str, Optional[str]] | None = None):
        prior = prior_values or {}
        self._questions = {q.id: q for q in questions}
        self._rules: Dict[str, TypeAdapter] = {
            q.id: build_rule(q, has_prior_value=bool(prior.get(q.id))) for q in questions
        }

    def validate_field(self, question_id: str, value: Any) -> Optional[str]:
        """Return an error message for the field, or None when valid."""
        rule = self._rules.get(question_id)
        if rule is None:
            return None
        try:
            rule.validate_python(value)
        except PydanticValidationError as exc:
            return _first_message(exc)
        return None

    def validate(self, values: Mapping[str, Any]) -> Dict[str, str]:
        """Validate every question; return {question_id: message} for failures."""
        errors: Dict[str, str] = {}
        for question_id in self._questions:
            message = self.validate_field(question_id, values.get(question_id))
            if message is not None:
                errors[question_id] = message
        return errors


__all__ = [
    "validate_question_definition",
    "build_rule",
    "FormValidator",
]
