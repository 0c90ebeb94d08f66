"""APIRouter registration for the recruitment portal."""

from __future__ import annotations

from fastapi import APIRouter

from portal.routes.applications import router as applications_router
from portal.routes.cycles import router as cycles_router
from portal.routes.notes import router as notes_router
from portal.routes.questions import router as questions_router
from portal.routes.uploads import router as uploads_router

api_router = APIRouter()
api_router.include_router(cycles_router)
api_router.include_router(questions_router)
api_router.include_router(applications_router)
api_router.include_router(uploads_router)
api_router.include_router(notes_router)

__all__ = ["api_router"]
