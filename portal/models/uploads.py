"""Upload destination payloads and the client-side file handle."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, Field


class UploadRequest(BaseModel):
    filename: str = Field(min_length=1)


class UploadDestination(BaseModel):
    destination_url: str
    storage_key: str


@dataclass(frozen=True)
class LocalFile:
    """A file picked by the applicant but not yet stored.

    Compared by value so re-selecting identical content is not a change.
    """

    filename: str
    content: bytes = field(repr=False)
    content_type: str = "application/octet-stream"


__all__ = ["UploadRequest", "UploadDestination", "LocalFile"]
