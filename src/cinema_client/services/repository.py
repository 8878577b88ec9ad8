"""Cached entity collections backed by the resource client."""

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from cinema_client.adapters.api_models import (
    CinemaPayload,
    MoviePayload,
    ReservationPayload,
    RoomPayload,
    SessionPayload,
)
from cinema_client.adapters.resource_client import ResourceClient
from cinema_client.domain.errors import ServerRejectedError
from cinema_client.domain.joins import aggregate_rooms, aggregate_sessions
from cinema_client.domain.models import Cinema, Movie
from cinema_client.services.scatter_gather import scatter_gather

_logger = logging.getLogger(__name__)

# The backend ignores the room segment when listing a cinema's sessions.
ANY_ROOM = ":roomUid"

P = TypeVar("P", bound=BaseModel)


class EntityKind(StrEnum):
    """Entity collections held by the repository."""

    MOVIES = "movies"
    CINEMAS = "cinemas"
    ROOMS = "rooms"
    SESSIONS = "sessions"
    RESERVATIONS = "reservations"


_NESTED_KINDS = {EntityKind.ROOMS, EntityKind.SESSIONS}


@dataclass
class EntityRepository:
    """Holds one snapshot per entity kind.

    A refresh swaps the snapshot in a single assignment once the whole fetch
    has succeeded, so consumers never see a partial collection and a failed
    refresh keeps the previous one. When refreshes of one kind overlap, the
    one that completes last wins.
    """

    client: ResourceClient
    _collections: dict[EntityKind, tuple] = field(default_factory=dict)

    def snapshot(self, kind: EntityKind) -> tuple:
        """Return the cached collection for a kind (empty if never loaded)."""
        return self._collections.get(kind, ())

    def is_loaded(self, kind: EntityKind) -> bool:
        """Return whether a collection has been loaded at least once."""
        return kind in self._collections

    def replace(self, kind: EntityKind, items: list | tuple) -> tuple:
        """Swap in a new collection for a kind."""
        snapshot = tuple(items)
        self._collections[kind] = snapshot
        return snapshot

    async def refresh(self, kind: EntityKind) -> tuple:
        """Fetch the full collection for a kind and replace the cache."""
        if kind is EntityKind.MOVIES:
            rows = await self.client.list("/movies")
            items = [payload.to_domain() for payload in _parse(MoviePayload, rows)]
        elif kind is EntityKind.CINEMAS:
            rows = await self.client.list("/cinema")
            items = [payload.to_domain() for payload in _parse(CinemaPayload, rows)]
        elif kind in _NESTED_KINDS:
            items = await self._gather_nested(kind)
        else:
            raise ValueError(f"{kind} needs a scope; use a scoped refresh")
        _logger.debug("Refreshed %s: %s items", kind, len(items))
        return self.replace(kind, items)

    async def refresh_movie_reservations(self, movie_id: str) -> tuple:
        """Replace the reservation cache with a movie's reservations."""
        rows = await self.client.list(
            f"/movie/{movie_id}/reservations", auth_required=True
        )
        return self.replace(EntityKind.RESERVATIONS, _reservations(rows))

    async def refresh_user_reservations(self, username: str) -> tuple:
        """Replace the reservation cache with a user's reservations."""
        rows = await self.client.list(
            f"/reservations/username/{username}", auth_required=True
        )
        return self.replace(EntityKind.RESERVATIONS, _reservations(rows))

    async def load_nested(self, kind: EntityKind, parent_id: str) -> list:
        """Fetch rooms or sessions of one cinema without touching the cache."""
        if kind is EntityKind.ROOMS:
            rows = await self.client.list(f"/cinema/{parent_id}/rooms")
            return [payload.to_domain() for payload in _parse(RoomPayload, rows)]
        if kind is EntityKind.SESSIONS:
            rows = await self.client.list(
                f"/cinema/{parent_id}/rooms/{ANY_ROOM}/sceances"
            )
            return [
                replace(payload.to_domain(), cinema_id=parent_id)
                for payload in _parse(SessionPayload, rows)
            ]
        raise ValueError(f"{kind} is not nested under a cinema")

    async def fetch_movie(self, movie_id: str) -> Movie:
        """Fetch a single movie."""
        row = await self.client.get(f"/movies/{movie_id}")
        return _parse(MoviePayload, [row])[0].to_domain()

    def store(self, kind: EntityKind, entity: object) -> tuple:
        """Merge one entity into its collection by id."""
        items = list(self.snapshot(kind))
        for index, existing in enumerate(items):
            if existing.id == entity.id:
                items[index] = entity
                break
        else:
            items.append(entity)
        return self.replace(kind, items)

    def discard(self, kind: EntityKind, entity_id: str) -> tuple:
        """Remove one entity from its collection by id."""
        items = [item for item in self.snapshot(kind) if item.id != entity_id]
        return self.replace(kind, items)

    async def _gather_nested(self, kind: EntityKind) -> list:
        if not self.is_loaded(EntityKind.CINEMAS):
            await self.refresh(EntityKind.CINEMAS)
        cinemas: tuple[Cinema, ...] = self.snapshot(EntityKind.CINEMAS)
        merge = aggregate_rooms if kind is EntityKind.ROOMS else aggregate_sessions
        return await scatter_gather(
            cinemas,
            scope_key=lambda cinema: cinema.id,
            fetch=lambda cinema: self.load_nested(kind, cinema.id),
            merge=merge,
        )


def _parse(model: type[P], rows: list[dict[str, object]]) -> list[P]:
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise ServerRejectedError(
            f"Malformed {model.__name__} in response: {exc.error_count()} errors"
        ) from exc


def _reservations(rows: list[dict[str, object]]) -> list:
    return [payload.to_domain() for payload in _parse(ReservationPayload, rows)]
