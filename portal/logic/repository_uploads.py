"""Upload Service: issue write-once destinations and store their bytes.

A destination is identified by a storage key that embeds a random token and
a sanitized copy of the original filename. The key, not the bytes, is what
ends up in the applicant's Response.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Dict, Optional, Tuple

from sqlalchemy import text as sql_text

from portal.config import get_config
from portal.db.base import get_engine
from portal.logic.clock import to_rfc3339, utc_now
from portal.logic.errors import NotFoundError, UploadAlreadyStoredError, UploadTooLargeError
from portal.logic.events import UPLOAD_STORED, publish
from portal.logic.inmemory_state import UPLOAD_BLOBS_STORE
from portal.models.uploads import UploadDestination

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_filename(filename: str) -> str:
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._") or "file"
    return cleaned[-100:]


def issue_destination(filename: str) -> UploadDestination:
    """Reserve a storage key for `filename` and return where to PUT it."""
    storage_key = f"{uuid.uuid4().hex}-{_safe_filename(filename)}"
    eng = get_engine()
    with eng.begin() as conn:
        conn.execute(
            sql_text(
                "INSERT INTO upload_object (storage_key, filename, stored, created_at) "
                "VALUES (:key, :name, :stored, :at)"
            ),
            {"key": storage_key, "name": filename, "stored": False, "at": to_rfc3339(utc_now())},
        )
    base_url = get_config().uploads.public_base_url
    logger.info("upload_destination_issued key=%s", storage_key)
    return UploadDestination(destination_url=f"{base_url}/{storage_key}", storage_key=storage_key)


def _get_row(storage_key: str):
    eng = get_engine()
    with eng.connect() as conn:
        return conn.execute(
            sql_text("SELECT filename, stored, content_type FROM upload_object WHERE storage_key = :key"),
            {"key": str(storage_key)},
        ).fetchone()


def store_bytes(
    storage_key: str,
    data: bytes,
    content_type: Optional[str] = None,
    store: Dict[str, bytes] = UPLOAD_BLOBS_STORE,
) -> None:
    """Write the bytes for an issued destination exactly once."""
    row = _get_row(storage_key)
    if row is None:
        raise NotFoundError(f"Upload destination {storage_key} not found")
    if bool(row[1]):
        raise UploadAlreadyStoredError("Upload destination has already been written")
    max_bytes = get_config().uploads.max_bytes
    if len(data) > max_bytes:
        raise UploadTooLargeError(f"File exceeds the {max_bytes} byte limit")
    store[storage_key] = bytes(data)
    eng = get_engine()
    with eng.begin() as conn:
        conn.execute(
            sql_text(
                "UPDATE upload_object SET stored = :stored, size_bytes = :size, content_type = :ctype "
                "WHERE storage_key = :key"
            ),
            {"stored": True, "size": len(data), "ctype": content_type, "key": storage_key},
        )
    publish(UPLOAD_STORED, {"storage_key": storage_key, "size_bytes": len(data)})


def read_bytes(
    storage_key: str, store: Dict[str, bytes] = UPLOAD_BLOBS_STORE
) -> Tuple[bytes, Optional[str], str]:
    """Return (content, content_type, original filename) for a stored upload."""
    row = _get_row(storage_key)
    data = store.get(storage_key) if row is not None and bool(row[1]) else None
    if row is None or data is None:
        raise NotFoundError(f"Upload {storage_key} not found")
    return data, row[2], str(row[0])


__all__ = ["issue_destination", "store_bytes", "read_bytes"]
