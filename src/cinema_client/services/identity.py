"""Identity lookup for the current bearer credential."""

from dataclasses import dataclass

from pydantic import ValidationError

from cinema_client.adapters.api_models import IdentityPayload
from cinema_client.adapters.resource_client import ResourceClient
from cinema_client.domain.errors import AuthorizationError, ServerRejectedError


@dataclass
class IdentityService:
    """Resolves the credential to a username, caching the answer."""

    client: ResourceClient
    _username: str | None = None

    async def current_username(self) -> str:
        """Return the username behind the current credential."""
        if self._username is not None:
            return self._username
        try:
            body = await self.client.command("/auth/verify")
        except AuthorizationError:
            self.forget()
            raise
        try:
            identity = IdentityPayload.model_validate(body)
        except ValidationError as exc:
            raise ServerRejectedError("Identity lookup returned no username") from exc
        self._username = identity.username
        return identity.username

    def forget(self) -> None:
        """Drop the cached username, e.g. after logout."""
        self._username = None
