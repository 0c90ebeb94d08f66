"""ORM table declarations for the portal.

Repositories talk to these tables through SQL text statements; the declarative
classes exist so the schema can be created from a single place and so the
uniqueness rules (one application per applicant and cycle, one response per
application and question) live next to the columns they constrain.
Timestamps are stored as RFC3339 UTC strings.
"""

from __future__ import annotations

import logging

from sqlalchemy import Boolean, Column, Integer, String, Text, UniqueConstraint
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from portal.db.base import get_engine

logger = logging.getLogger(__name__)

Base = declarative_base()


class RecruitmentCycleRow(Base):  # type: ignore[valid-type]
    __tablename__ = "recruitment_cycle"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    start_time = Column(String, nullable=False)
    end_time = Column(String, nullable=False)


class QuestionRow(Base):  # type: ignore[valid-type]
    __tablename__ = "application_question"

    id = Column(String, primary_key=True)
    cycle_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    label = Column(Text, nullable=False)
    question_order = Column(Integer, nullable=False)
    required = Column(Boolean, nullable=False, default=True)
    # JSON array of option labels for choice-type questions
    options = Column(Text, nullable=True)
    min_length = Column(Integer, nullable=True)
    max_length = Column(Integer, nullable=True)


class ApplicationRow(Base):  # type: ignore[valid-type]
    __tablename__ = "application"
    __table_args__ = (
        UniqueConstraint("cycle_id", "applicant_id", name="uq_application_cycle_applicant"),
    )

    id = Column(String, primary_key=True)
    cycle_id = Column(String, nullable=False)
    applicant_id = Column(String, nullable=False)
    submitted = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(String, nullable=True)


class ResponseRow(Base):  # type: ignore[valid-type]
    __tablename__ = "application_response"
    __table_args__ = (
        UniqueConstraint("application_id", "question_id", name="uq_response_application_question"),
    )

    id = Column(String, primary_key=True)
    application_id = Column(String, nullable=False)
    question_id = Column(String, nullable=False)
    value = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)


class PhaseRow(Base):  # type: ignore[valid-type]
    __tablename__ = "recruitment_cycle_phase"

    id = Column(String, primary_key=True)
    cycle_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    phase_order = Column(Integer, nullable=False)


class NoteRow(Base):  # type: ignore[valid-type]
    __tablename__ = "application_note"

    id = Column(String, primary_key=True)
    application_id = Column(String, nullable=False, index=True)
    author_id = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(String, nullable=False)


class UploadRow(Base):  # type: ignore[valid-type]
    __tablename__ = "upload_object"

    storage_key = Column(String, primary_key=True)
    filename = Column(String, nullable=False)
    stored = Column(Boolean, nullable=False, default=False)
    size_bytes = Column(Integer, nullable=True)
    content_type = Column(String, nullable=True)
    created_at = Column(String, nullable=False)


def init_schema(engine: Engine | None = None) -> None:
    """Create any missing tables on the given (or shared) engine."""
    eng = engine or get_engine()
    Base.metadata.create_all(eng)
    logger.info("db_schema_ready tables=%s", sorted(Base.metadata.tables))


__all__ = [
    "Base",
    "RecruitmentCycleRow",
    "QuestionRow",
    "ApplicationRow",
    "ResponseRow",
    "PhaseRow",
    "NoteRow",
    "UploadRow",
    "init_schema",
]
