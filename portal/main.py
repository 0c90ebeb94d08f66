"""FastAPI application factory for the recruitment portal API."""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from portal.db.schema import init_schema
from portal.http.problem import (
    handle_http_exception,
    handle_portal_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from portal.http.request_id import RequestIdMiddleware
from portal.logging_setup import configure_logging
from portal.logic.errors import PortalError
from portal.middleware.cors import apply_cors
from portal.routes import api_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    # Configure global logging before app instantiation so all modules emit
    configure_logging()
    app = FastAPI(title="Recruitment Portal")
    app.add_exception_handler(PortalError, handle_portal_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)
    apply_cors(app)

    # Create tables on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _init_schema() -> None:  # pragma: no cover - exercised via integration
        if os.getenv("AUTO_INIT_SCHEMA", "1").strip().lower() in {"0", "false", "no"}:
            logger.info("AUTO_INIT_SCHEMA disabled; skipping schema creation at startup")
            return
        try:
            init_schema()
        except Exception:
            logger.error("Failed to create schema at startup", exc_info=True)
            raise

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


__all__ = ["create_app"]
