"""Upload Service endpoints.

POST issues a destination; the client then PUTs raw bytes to the returned
URL. The stored storage key is what the client writes into the Response.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Request, Response

from portal.logic.repository_uploads import issue_destination, read_bytes, store_bytes
from portal.models.uploads import UploadDestination, UploadRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/uploads",
    status_code=201,
    response_model=UploadDestination,
    summary="Request an upload destination for a filename",
    operation_id="requestUploadDestination",
    tags=["Uploads"],
)
def post_upload(payload: UploadRequest) -> UploadDestination:
    return issue_destination(payload.filename)


@router.put(
    "/uploads/{storage_key}",
    status_code=204,
    summary="Store the bytes for an issued destination (write-once)",
    operation_id="transferBytes",
    tags=["Uploads"],
)
async def put_upload(storage_key: str, request: Request) -> Response:
    data = await request.body()
    store_bytes(storage_key, data, request.headers.get("content-type"))
    logger.info("upload_stored key=%s size_bytes=%s", storage_key, len(data))
    return Response(status_code=204)


@router.get(
    "/uploads/{storage_key}",
    summary="Download a stored upload",
    operation_id="getUpload",
    tags=["Uploads"],
)
def get_upload(storage_key: str) -> Response:
    data, content_type, filename = read_bytes(storage_key)
    return Response(
        content=data,
        media_type=content_type or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


__all__ = ["router"]
