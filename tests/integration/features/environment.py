"""Behave environment hooks for autosave integration scenarios.

Scenarios run the real FastAPI application in-process behind
`httpx.ASGITransport` against a fresh in-memory SQLite database. Each
scenario owns one asyncio event loop; steps drive the synchronizer through
`context.run(coro)` so timers and tasks stay on that loop.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

import httpx

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("UPLOADS_PUBLIC_BASE_URL", "http://testserver/api/v1/uploads")

from portal.client import HttpPortalServices  # noqa: E402
from portal.config import get_config  # noqa: E402
from portal.db import dispose_engine, init_schema  # noqa: E402
from portal.logic.events import EVENT_BUFFER  # noqa: E402
from portal.logic.inmemory_state import UPLOAD_BLOBS_STORE  # noqa: E402
from portal.logging_setup import configure_logging  # noqa: E402
from portal.main import create_app  # noqa: E402


def before_all(context: Any) -> None:
    configure_logging()
    context.app = create_app()


def before_scenario(context: Any, scenario: Any) -> None:
    dispose_engine()
    get_config(reload=True)
    init_schema()
    UPLOAD_BLOBS_STORE.clear()
    EVENT_BUFFER.clear()

    context.loop = asyncio.new_event_loop()
    context.run = context.loop.run_until_complete
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=context.app), base_url="http://testserver")
    context.services = HttpPortalServices(client)
    context.sync = None
    context.visited = []


def after_scenario(context: Any, scenario: Any) -> None:
    try:
        if context.sync is not None:
            context.run(context.sync.aclose())
        context.run(context.services.aclose())
    finally:
        context.loop.close()
        dispose_engine()
