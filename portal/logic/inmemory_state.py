"""Central in-memory state holders (dev/test object storage).

Uploaded file bytes are kept here instead of an external object store; the
`upload_object` table tracks which destinations were issued and filled.
"""

from __future__ import annotations

from typing import Dict

# Stored upload content: storage_key -> bytes
UPLOAD_BLOBS_STORE: Dict[str, bytes] = {}

__all__ = ["UPLOAD_BLOBS_STORE"]
