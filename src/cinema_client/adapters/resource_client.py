"""REST resource client for the cinema backend."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from cinema_client.domain.errors import (
    AuthorizationError,
    ServerRejectedError,
    TransportError,
)

_logger = logging.getLogger(__name__)

_UNAUTHORIZED_STATUSES = {401, 403}


class ResourceClient(Protocol):
    """Interface for resource-oriented requests against the backend."""

    async def list(
        self, path: str, *, auth_required: bool = False
    ) -> list[dict[str, object]]:
        """Fetch a collection resource."""

    async def get(self, path: str) -> dict[str, object]:
        """Fetch a single resource."""

    async def create(self, path: str, payload: dict[str, object]) -> dict[str, object]:
        """Create a resource and return its representation."""

    async def update(self, path: str, payload: dict[str, object]) -> dict[str, object]:
        """Replace a resource and return its representation."""

    async def delete(self, path: str) -> None:
        """Delete a resource."""

    async def command(
        self, path: str, payload: dict[str, object] | None = None
    ) -> dict[str, object]:
        """Post an action to a resource and return the response body."""


@dataclass
class HttpxResourceClient(ResourceClient):
    """Resource client implemented with httpx.

    Every request carries the bearer credential when the token provider has
    one. Mutations and scoped reads without a credential fail before any
    request is sent.
    """

    base_url: str
    http_client: httpx.AsyncClient
    token_provider: Callable[[], str | None]
    timeout: float = 10

    @classmethod
    def connect(
        cls,
        base_url: str,
        token_provider: Callable[[], str | None],
        timeout: float = 10,
    ) -> "HttpxResourceClient":
        """Create a resource client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            token_provider=token_provider,
            timeout=timeout,
        )

    async def list(
        self, path: str, *, auth_required: bool = False
    ) -> list[dict[str, object]]:
        """Fetch a collection resource."""
        body = await self._send("GET", path, auth_required=auth_required)
        if not isinstance(body, list):
            _logger.warning("Unexpected response format for %s: %r", path, body)
            raise ServerRejectedError(f"Unexpected response format for {path}")
        return body

    async def get(self, path: str) -> dict[str, object]:
        """Fetch a single resource."""
        return _as_object(path, await self._send("GET", path))

    async def create(self, path: str, payload: dict[str, object]) -> dict[str, object]:
        """Create a resource with POST."""
        body = await self._send("POST", path, json=payload, auth_required=True)
        return _as_object(path, body)

    async def update(self, path: str, payload: dict[str, object]) -> dict[str, object]:
        """Replace a resource with PUT."""
        body = await self._send("PUT", path, json=payload, auth_required=True)
        return _as_object(path, body)

    async def delete(self, path: str) -> None:
        """Delete a resource."""
        await self._send("DELETE", path, auth_required=True)

    async def command(
        self, path: str, payload: dict[str, object] | None = None
    ) -> dict[str, object]:
        """Post an action such as a confirmation or identity lookup."""
        body = await self._send("POST", path, json=payload or {}, auth_required=True)
        return _as_object(path, body)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, object] | None = None,
        auth_required: bool = False,
    ) -> object:
        token = self.token_provider()
        if auth_required and not token:
            raise AuthorizationError("Authentication required.")
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.status_code in _UNAUTHORIZED_STATUSES:
            raise AuthorizationError("Session expired or not authorized.")
        if response.is_error:
            raise ServerRejectedError(
                f"{method} {path} rejected with status {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ServerRejectedError(f"{method} {path} returned invalid JSON") from exc


def _as_object(path: str, body: object) -> dict[str, object]:
    if not isinstance(body, dict):
        raise ServerRejectedError(f"Unexpected response format for {path}")
    return body
