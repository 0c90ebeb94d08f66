"""User-visible notices raised by the synchronizer.

Notices always name a remediation and never carry raw error text; the
underlying exception is logged instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

DEFAULT_SUPPORT_CONTACT = "the recruitment team"


@dataclass(frozen=True)
class Notice:
    level: Literal["warning", "error"]
    title: str
    description: str
    question_id: Optional[str] = None


def save_failed(question_id: str) -> Notice:
    return Notice(
        level="warning",
        title="Some answers haven't been saved yet",
        description=(
            "Check your connection. Your answers are still on this page and "
            "will be saved again automatically or the next time you edit the form."
        ),
        question_id=question_id,
    )


def upload_failed(question_id: str, filename: str) -> Notice:
    return Notice(
        level="error",
        title=f"Uploading {filename} failed",
        description="Retry the upload or select the file again. Your other answers are saved.",
        question_id=question_id,
    )


def submit_failed(support_contact: str = DEFAULT_SUPPORT_CONTACT) -> Notice:
    return Notice(
        level="error",
        title="An error occurred while submitting your application",
        description=(
            "Please refresh the page and try again in a few minutes. "
            f"If you continue having issues, please contact {support_contact}."
        ),
    )


__all__ = ["Notice", "DEFAULT_SUPPORT_CONTACT", "save_failed", "upload_failed", "submit_failed"]
