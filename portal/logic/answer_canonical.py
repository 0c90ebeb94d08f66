"""Canonicalization helpers for answer values.

Form values live on the client as Python values (bool, str, list of option
labels, a picked file); the Response Store keeps a single text column. These
two functions translate between the representations.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from portal.models.field_type import FieldType

logger = logging.getLogger(__name__)


def canonicalize_value(value: Any) -> Optional[str]:
    """Return the stored text for a client-side value.

    - Booleans -> "true" / "false"
    - Lists    -> JSON array of strings (checkbox answers)
    - Text     -> as-is string
    - None     -> None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return json.dumps([str(v) for v in value])
    return str(value)


def decode_value(field_type: str, text: Optional[str]) -> Any:
    """Return the client-side value for stored text of the given field type.

    Missing answers decode to the empty form value for that type ("" for
    scalar fields, [] for checkboxes) so that an untouched field compares equal
    to its initial snapshot.
    """
    if field_type == FieldType.CHECKBOX:
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("checkbox_value_not_json text=%r", text)
            return [text]
        return [str(v) for v in parsed] if isinstance(parsed, list) else [str(parsed)]
    if text is None:
        return ""
    if field_type == FieldType.BOOLEAN:
        lowered = text.strip().lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return ""
    return text


__all__ = ["canonicalize_value", "decode_value"]
