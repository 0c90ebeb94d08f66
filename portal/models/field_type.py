"""FieldType constants for application questions.

Provides a simple constants container instead of an Enum so values compare
equal to the raw strings stored in the database and sent over the wire.
"""

from __future__ import annotations

from typing import Literal


class FieldType:
    BOOLEAN = "boolean"
    MULTIPLE_CHOICE = "multiple_choice"
    CHECKBOX = "checkbox"
    STRING = "string"
    DROPDOWN = "dropdown"
    FILE_UPLOAD = "file_upload"

    ALL = (BOOLEAN, MULTIPLE_CHOICE, CHECKBOX, STRING, DROPDOWN, FILE_UPLOAD)
    # Types whose answers must come from the question's option list
    CHOICE_TYPES = (MULTIPLE_CHOICE, CHECKBOX, DROPDOWN)


FieldTypeName = Literal[
    "boolean",
    "multiple_choice",
    "checkbox",
    "string",
    "dropdown",
    "file_upload",
]


__all__ = ["FieldType", "FieldTypeName"]
