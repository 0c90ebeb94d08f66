"""Recruitment portal package.

Two halves live here:
- `portal.client`: the autosave synchronizer that keeps an applicant's form
  in step with the Response Store, uploads files and gates submission.
- the FastAPI service (`create_app`) providing the question catalog, response
  store, upload and submission endpoints the synchronizer talks to, plus the
  admin CRUD for cycles, phases and notes.
"""

from __future__ import annotations

from portal.main import create_app

__all__ = ["create_app"]
