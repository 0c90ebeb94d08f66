"""Remote collaborators consumed by the synchronizer.

`PortalServices` is the abstract boundary: question catalog, response store,
upload service and submission service as plain async operations.
`HttpPortalServices` implements it against the portal HTTP API with httpx
and maps transport and HTTP failures onto the client error hierarchy.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol

import httpx

from portal.client.errors import ServiceRejectedError, TransientServiceError
from portal.models.applications import Application
from portal.models.questions import Question
from portal.models.responses import Response, ResponseUpsert
from portal.models.uploads import UploadDestination

logger = logging.getLogger(__name__)


class PortalServices(Protocol):
    async def get_questions(self, cycle_id: str) -> List[Question]: ...

    async def get_responses(self, application_id: str) -> List[Response]: ...

    async def create_or_update_response(self, upsert: ResponseUpsert) -> Response: ...

    async def request_upload_destination(self, filename: str) -> UploadDestination: ...

    async def transfer_bytes(
        self, destination_url: str, content: bytes, content_type: Optional[str] = None
    ) -> None: ...

    async def submit_application(self, application_id: str) -> Application: ...


def _problem_of(resp: httpx.Response) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class HttpPortalServices:
    """PortalServices over HTTP.

    The caller owns the `httpx.AsyncClient` (base URL, auth headers, transport);
    use `from_base_url` for the common case.
    """

    def __init__(self, client: httpx.AsyncClient, api_prefix: str = "/api/v1") -> None:
        self._client = client
        self._prefix = api_prefix.rstrip("/")

    @classmethod
    def from_base_url(cls, base_url: str, *, timeout_s: float = 10.0, **client_kwargs: Any) -> "HttpPortalServices":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout_s, **client_kwargs))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, operation: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientServiceError(f"{operation} timed out", operation=operation) from exc
        except httpx.TransportError as exc:
            raise TransientServiceError(f"{operation} failed to connect: {exc}", operation=operation) from exc
        if resp.status_code >= 500:
            raise TransientServiceError(
                f"{operation} failed with HTTP {resp.status_code}", operation=operation, status=resp.status_code
            )
        if resp.status_code >= 400:
            problem = _problem_of(resp)
            logger.info(
                "service_rejected op=%s status=%s code=%s", operation, resp.status_code, problem.get("code")
            )
            raise ServiceRejectedError(
                str(problem.get("detail") or f"{operation} rejected with HTTP {resp.status_code}"),
                operation=operation,
                status=resp.status_code,
                code=problem.get("code"),
            )
        return resp

    async def get_questions(self, cycle_id: str) -> List[Question]:
        resp = await self._request("get_questions", "GET", f"{self._prefix}/cycles/{cycle_id}/questions")
        return [Question.model_validate(item) for item in resp.json()]

    async def get_responses(self, application_id: str) -> List[Response]:
        resp = await self._request(
            "get_responses", "GET", f"{self._prefix}/applications/{application_id}/responses"
        )
        return [Response.model_validate(item) for item in resp.json()]

    async def create_or_update_response(self, upsert: ResponseUpsert) -> Response:
        resp = await self._request(
            "create_or_update_response",
            "PUT",
            f"{self._prefix}/responses",
            json=upsert.model_dump(exclude_none=True),
        )
        return Response.model_validate(resp.json())

    async def request_upload_destination(self, filename: str) -> UploadDestination:
        resp = await self._request(
            "request_upload_destination", "POST", f"{self._prefix}/uploads", json={"filename": filename}
        )
        return UploadDestination.model_validate(resp.json())

    async def transfer_bytes(self, destination_url: str, content: bytes, content_type: Optional[str] = None) -> None:
        await self._request(
            "transfer_bytes",
            "PUT",
            destination_url,
            content=content,
            headers={"Content-Type": content_type or "application/octet-stream"},
        )

    async def submit_application(self, application_id: str) -> Application:
        resp = await self._request(
            "submit_application", "POST", f"{self._prefix}/applications/{application_id}/submit"
        )
        return Application.model_validate(resp.json())


__all__ = ["PortalServices", "HttpPortalServices"]
