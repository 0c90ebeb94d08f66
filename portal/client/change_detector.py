"""Change detection between two snapshots of form values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping

from portal.client.errors import InconsistencyError
from portal.models.questions import Question

_MISSING = object()


@dataclass(frozen=True)
class FieldChange:
    question: Question
    value: Any


def detect_changes(
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
    questions: Mapping[str, Question],
) -> List[FieldChange]:
    """Return the fields of `current` whose value differs from `previous`.

    Values are compared by equality, not identity. A changed field without a
    Question raises InconsistencyError.
    """
    changes: List[FieldChange] = []
    for question_id, value in current.items():
        if previous.get(question_id, _MISSING) == value:
            continue
        question = questions.get(question_id)
        if question is None:
            raise InconsistencyError(f"Question {question_id} not found for edited field")
        changes.append(FieldChange(question=question, value=value))
    return changes


__all__ = ["FieldChange", "detect_changes"]
