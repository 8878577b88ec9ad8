"""Shared test fixtures."""

import copy
import inspect
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from cinema_client.adapters.resource_client import ResourceClient
from cinema_client.config import Settings
from cinema_client.domain.errors import ServerRejectedError
from cinema_client.services.identity import IdentityService
from cinema_client.services.repository import EntityRepository

FUTURE = datetime.now(tz=UTC) + timedelta(days=7)
PAST = datetime.now(tz=UTC) - timedelta(days=7)


@dataclass
class FakeResourceClient(ResourceClient):
    """Fake resource client answering from a route table.

    A route value may be a response body, an exception to raise, or a
    (possibly async) callable receiving the request payload.
    """

    routes: dict[tuple[str, str], object] = field(default_factory=dict)
    calls: list[tuple[str, str, dict[str, object] | None]] = field(
        default_factory=list
    )

    def route(self, method: str, path: str, response: object) -> None:
        self.routes[(method, path)] = response

    def paths(self, method: str | None = None) -> list[str]:
        return [path for verb, path, _ in self.calls if method in {None, verb}]

    async def list(self, path: str, *, auth_required: bool = False):
        return await self._respond("GET", path, None)

    async def get(self, path: str):
        return await self._respond("GET", path, None)

    async def create(self, path: str, payload: dict[str, object]):
        return await self._respond("POST", path, payload)

    async def update(self, path: str, payload: dict[str, object]):
        return await self._respond("PUT", path, payload)

    async def delete(self, path: str) -> None:
        await self._respond("DELETE", path, None)

    async def command(self, path: str, payload: dict[str, object] | None = None):
        return await self._respond("POST", path, payload)

    async def _respond(self, method: str, path: str, payload):
        self.calls.append((method, path, payload))
        if (method, path) not in self.routes:
            raise ServerRejectedError(f"No route for {method} {path}", status_code=404)
        response = self.routes[(method, path)]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(payload)
            if inspect.isawaitable(response):
                response = await response
        return copy.deepcopy(response)


def movie_row(uid: str, name: str, **overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "uid": uid,
        "name": name,
        "description": f"{name} description",
        "rate": 4,
        "duration": 120,
        "pictureUrl": None,
        "createdAt": "2024-01-01T10:00:00Z",
        "updatedAt": "2024-01-02T10:00:00Z",
    }
    row.update(overrides)
    return row


def cinema_row(uid: str, name: str) -> dict[str, object]:
    return {"uid": uid, "name": name}


def room_row(
    uid: str, cinema_uid: str, name: str, seats: int = 50
) -> dict[str, object]:
    return {"uid": uid, "cinemaUid": cinema_uid, "name": name, "seats": seats}


def session_row(
    uid: str, movie: str, date: datetime = FUTURE, rooms: list[str] | None = None
) -> dict[str, object]:
    return {
        "uid": uid,
        "movie": movie,
        "date": date.isoformat(),
        "roomUids": ["r1"] if rooms is None else rooms,
    }


def reservation_row(uid: str, **overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "uid": uid,
        "movieUid": "m1",
        "sceance": "s1",
        "room": "r1",
        "nbSeats": 2,
        "rank": 1,
        "status": "open",
        "expiresAt": FUTURE.isoformat(),
        "username": "alice",
    }
    row.update(overrides)
    return row


def catalog_client() -> FakeResourceClient:
    """Client serving one movie, two cinemas with a room each, one session."""
    client = FakeResourceClient()
    client.route("GET", "/movies", [movie_row("m1", "Dune")])
    client.route("GET", "/cinema", [cinema_row("c1", "Rex"), cinema_row("c2", "Lux")])
    client.route("GET", "/cinema/c1/rooms", [room_row("r1", "c1", "Salle 1", 2)])
    client.route("GET", "/cinema/c2/rooms", [room_row("r2", "c2", "Salle 2")])
    client.route(
        "GET", "/cinema/c1/rooms/:roomUid/sceances", [session_row("s1", "m1")]
    )
    client.route("GET", "/cinema/c2/rooms/:roomUid/sceances", [])
    client.route("POST", "/auth/verify", {"username": "alice"})
    return client


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="https://api.test",
        api_token="token",
        environment="test",
    )


@pytest.fixture
def client() -> FakeResourceClient:
    return catalog_client()


@pytest.fixture
def repository(client: FakeResourceClient) -> EntityRepository:
    return EntityRepository(client)


@pytest.fixture
def identity(client: FakeResourceClient) -> IdentityService:
    return IdentityService(client)
