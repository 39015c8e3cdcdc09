"""Shortcut REST API client with retry on transient failures."""

import asyncio
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from bypass import __version__
from bypass.api.models import (
    CreateEpicRequest,
    CreateObjectiveRequest,
    CreateRequest,
    CreateStoryRequest,
    Epic,
    Group,
    Member,
    Objective,
    Story,
    Workflow,
)
from bypass.exceptions import ApiError, TransportError
from bypass.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)

T = TypeVar("T")

SHORTCUT_API_URL = "https://api.app.shortcut.com/api/v3"
TOKEN_HEADER = "Shortcut-Token"


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything needed to (re)send one request.

    Built once per logical call and re-sent unchanged on every retry, so a
    retried create always carries the exact bytes of the first attempt.
    """

    method: str
    path: str
    headers: tuple[tuple[str, str], ...] = ()
    content: bytes | None = None


class ShortcutClient:
    """Authenticated client for the Shortcut v3 API.

    Example:
        >>> async with ShortcutClient(token="...") as client:
        ...     members = await client.list_members()
    """

    def __init__(
        self,
        token: str,
        base_url: str = SHORTCUT_API_URL,
        timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Shortcut API token, sent with every request
            base_url: API root; paths passed to get/create are appended to it
            timeout: Per-request timeout in seconds
            retry_policy: Retry budget and backoff; defaults to RetryPolicy()
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token.strip() if token else token
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "User-Agent": f"bypass-cli/{__version__}",
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
            log.debug("shortcut_client_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ShortcutClient":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------

    def _build_request(self, method: str, path: str, body: Any = None) -> RequestDescriptor:
        """Serialize a request up front into an immutable descriptor.

        Raises:
            TransportError: If the body cannot be serialized to JSON
        """
        headers = [(TOKEN_HEADER, self.token)]
        content = None
        if body is not None:
            if isinstance(body, CreateRequest):
                body = body.to_payload()
            elif isinstance(body, BaseModel):
                body = body.model_dump(mode="json", exclude_none=True)
            try:
                content = json.dumps(body).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise TransportError(f"Request body for {method} {path} is not serializable: {e}") from e
            headers.append(("Content-Type", "application/json"))
        return RequestDescriptor(method=method, path=path, headers=tuple(headers), content=content)

    async def _send(self, request: RequestDescriptor) -> httpx.Response:
        if self._client is None:
            await self.connect()
        assert self._client is not None

        try:
            return await self._client.request(
                request.method,
                request.path,
                headers=dict(request.headers),
                content=request.content,
            )
        except httpx.TransportError as e:
            raise TransportError(f"{request.method} {request.path} failed: {e}") from e

    async def send_with_retry(self, request: RequestDescriptor) -> httpx.Response:
        """Send a request, retrying transient statuses with backoff.

        Returns the first non-retryable response, or the last response once
        the retry budget is spent. Honors ``Retry-After`` on 429s.
        """
        attempt = 0
        while True:
            response = await self._send(request)
            status = response.status_code

            if not self.retry_policy.should_retry(status, attempt):
                return response

            delay = self.retry_policy.delay_for(status, attempt, response.headers.get("Retry-After"))
            log.warning(
                "request_retry",
                method=request.method,
                path=request.path,
                status=status,
                attempt=attempt + 1,
                max_retries=self.retry_policy.max_retries,
                delay=delay,
            )
            attempt += 1
            await asyncio.sleep(delay)

    def _handle_response(self, response: httpx.Response, response_type: type[T]) -> T:
        if response.is_success:
            try:
                return TypeAdapter(response_type).validate_json(response.content)
            except ValidationError as e:
                raise TransportError(
                    f"Unexpected response shape from {response.request.method} {response.request.url.path}: {e}"
                ) from e

        message = _error_message(response)
        log.debug("api_error", status=response.status_code, message=message)
        raise ApiError(response.status_code, message)

    async def get(self, path: str, response_type: type[T]) -> T:
        """GET ``path`` and decode the body as ``response_type``.

        Raises:
            ApiError: If the final response is not 2xx
            TransportError: On network failure or undecodable body
        """
        response = await self.send_with_retry(self._build_request("GET", path))
        return self._handle_response(response, response_type)

    async def create(self, path: str, body: CreateRequest | Mapping[str, Any], response_type: type[T]) -> T:
        """POST ``body`` to ``path`` and decode the created entity.

        Raises:
            ApiError: If the final response is not 2xx
            TransportError: On serialization or network failure, or undecodable body
        """
        response = await self.send_with_retry(self._build_request("POST", path, body))
        return self._handle_response(response, response_type)

    # -------------------------------------------------------------------------
    # Read endpoints (used for name resolution)
    # -------------------------------------------------------------------------

    async def list_members(self) -> list[Member]:
        return await self.get("/members", list[Member])

    async def list_groups(self) -> list[Group]:
        return await self.get("/groups", list[Group])

    async def list_workflows(self) -> list[Workflow]:
        return await self.get("/workflows", list[Workflow])

    # -------------------------------------------------------------------------
    # Create endpoints
    # -------------------------------------------------------------------------

    async def create_objective(self, request: CreateObjectiveRequest) -> Objective:
        log.info("create_objective", name=request.name)
        return await self.create("/objectives", request, Objective)

    async def create_epic(self, request: CreateEpicRequest) -> Epic:
        log.info("create_epic", name=request.name)
        return await self.create("/epics", request, Epic)

    async def create_story(self, request: CreateStoryRequest) -> Story:
        log.info("create_story", name=request.name)
        return await self.create("/stories", request, Story)


def _error_message(response: httpx.Response) -> str:
    """Best-effort message from an error body: JSON ``message`` field, else raw text."""
    body = response.text
    try:
        data = json.loads(body)
    except ValueError:
        return body
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return body
