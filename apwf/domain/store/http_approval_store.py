"""HTTP/JSON client for the approval store."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from apwf.domain.constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT
from apwf.domain.errors import TransportError
from apwf.domain.models.approval import Approval, ApprovalStatus, Decision
from apwf.domain.models.comment import Comment
from apwf.domain.models.stage_plan import StagePlan
from apwf.domain.models.user import DirectoryUser
from apwf.domain.store.approval_store import ApprovalSnapshot, ApprovalStore

logger = logging.getLogger(__name__)


class HttpApprovalStore(ApprovalStore):
    """Approval store reached over HTTP.

    A fresh ``httpx.AsyncClient`` is opened per call. No retry is performed;
    timeouts are whatever the configured ``httpx.Timeout`` allows.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must be set to reach the approval store")
        self.base_url = base_url.rstrip("/")
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._transport = transport

    # ------------------------------------------------------------------
    # Approval store operations
    # ------------------------------------------------------------------

    async def fetch_approval(self, approval_id: int) -> ApprovalSnapshot:
        data = await self._request("GET", f"/api/approvals/{approval_id}")
        return self._parse(ApprovalSnapshot, data, "approval")

    async def fetch_comments(self, approval_id: int) -> list[Comment]:
        data = await self._request("GET", f"/api/approvals/{approval_id}/comments")
        raw = self._mapping(data).get("comments") or []
        comments = [self._parse(Comment, item, "comment") for item in raw]
        return sorted(comments, key=lambda c: c.created_at)

    async def submit_decision(
        self, approval_id: int, decision: Decision, comment: str
    ) -> None:
        await self._request(
            "POST",
            f"/api/approvals/{approval_id}/decision",
            json={"decision": decision.value, "comment": comment},
        )

    async def submit_comment(self, approval_id: int, text: str) -> None:
        await self._request(
            "POST",
            f"/api/approvals/{approval_id}/comments",
            json={"comment": text},
        )

    async def list_approvals(
        self, status: ApprovalStatus | None = None
    ) -> list[Approval]:
        params = {"status": status.value} if status else None
        data = await self._request("GET", "/api/approvals", params=params)
        raw = self._mapping(data).get("items") or []
        return [self._parse(Approval, item, "approval") for item in raw]

    async def start_approval(self, document_id: int, stages: list[StagePlan]) -> None:
        await self._request(
            "POST",
            f"/api/docs/{document_id}/approval/start",
            json={"stages": [stage.model_dump() for stage in stages]},
        )

    async def current_user(self) -> DirectoryUser | None:
        data = await self._request("GET", "/api/auth/me")
        user = self._mapping(data).get("user")
        if not user:
            return None
        return self._parse(DirectoryUser, user, "user")

    async def list_users(self) -> list[DirectoryUser]:
        data = await self._request("GET", "/api/accounts/users")
        raw = self._mapping(data).get("users") or []
        return [self._parse(DirectoryUser, item, "user") for item in raw]

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            # The store reports failures as plain text bodies.
            text = e.response.text.strip() or e.response.reason_phrase or "request failed"
            raise TransportError(
                text, status_code=e.response.status_code, url=url
            ) from e
        except httpx.HTTPError as e:
            message = str(e).strip() or "network error"
            raise TransportError(message, url=url) from e

        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                "Malformed JSON from approval store",
                status_code=response.status_code,
                url=url,
            ) from e

    @staticmethod
    def _mapping(data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise TransportError("Approval store response must be a JSON object")
        return data

    @staticmethod
    def _parse(model: Any, data: Any, what: str) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise TransportError(f"Malformed {what} from approval store: {e}") from e
