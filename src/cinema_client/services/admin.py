"""Admin commands for the catalog and reservations."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from cinema_client.adapters.api_models import (
    CinemaPayload,
    MoviePayload,
    RoomPayload,
    SessionPayload,
    cinema_body,
    movie_body,
    room_body,
    session_body,
)
from cinema_client.adapters.resource_client import ResourceClient
from cinema_client.domain.errors import (
    CinemaClientError,
    Failure,
    FailureKind,
    ServerRejectedError,
)
from cinema_client.domain.models import (
    Cinema,
    CinemaDraft,
    Movie,
    MovieDraft,
    Reservation,
    ReservationStatus,
    Room,
    RoomDraft,
    Session,
    SessionDraft,
)
from cinema_client.domain.validation import (
    validate_cinema,
    validate_movie,
    validate_room,
    validate_session,
)
from cinema_client.services.repository import EntityKind, EntityRepository

_logger = logging.getLogger(__name__)

T = TypeVar("T")
P = TypeVar("P", bound=BaseModel)


@dataclass
class AdminService:
    """Create, edit and delete catalog entities and confirm reservations.

    Drafts are validated locally first. The cache is only touched once the
    server accepted the command, and server errors come back as ``Failure``.
    """

    client: ResourceClient
    repository: EntityRepository

    async def save_movie(self, draft: MovieDraft) -> Movie | Failure:
        """Create or update a movie."""
        failure = validate_movie(draft)
        if failure:
            return failure

        async def send() -> Movie:
            if draft.id:
                body = await self.client.update(
                    f"/movies/{draft.id}", movie_body(draft)
                )
            else:
                body = await self.client.create("/movies", movie_body(draft))
            return _parse(MoviePayload, body).to_domain()

        return await self._save(EntityKind.MOVIES, "save movie", send)

    async def delete_movie(self, movie_id: str) -> Failure | None:
        """Delete a movie."""

        async def send() -> None:
            await self.client.delete(f"/movies/{movie_id}")
            self.repository.discard(EntityKind.MOVIES, movie_id)

        return await self._execute("delete movie", send)

    async def save_cinema(self, draft: CinemaDraft) -> Cinema | Failure:
        """Create or update a cinema."""
        failure = validate_cinema(draft)
        if failure:
            return failure

        async def send() -> Cinema:
            if draft.id:
                body = await self.client.update(
                    f"/cinema/{draft.id}", cinema_body(draft)
                )
            else:
                body = await self.client.create("/cinema", cinema_body(draft))
            return _parse(CinemaPayload, body).to_domain()

        return await self._save(EntityKind.CINEMAS, "save cinema", send)

    async def delete_cinema(self, cinema_id: str) -> Failure | None:
        """Delete a cinema after deleting its rooms one by one."""
        attached = [
            room
            for room in self.repository.snapshot(EntityKind.ROOMS)
            if room.cinema_id == cinema_id
        ]

        async def send() -> None:
            for room in attached:
                await self.client.delete(f"/cinema/{cinema_id}/rooms/{room.id}")
                self.repository.discard(EntityKind.ROOMS, room.id)
            await self.client.delete(f"/cinema/{cinema_id}")
            self.repository.discard(EntityKind.CINEMAS, cinema_id)

        return await self._execute("delete cinema", send)

    async def save_room(self, draft: RoomDraft) -> Room | Failure:
        """Create or update a room of a cinema."""
        failure = validate_room(draft)
        if failure:
            return failure
        base = f"/cinema/{draft.cinema_id}/rooms"

        async def send() -> Room:
            if draft.id:
                body = await self.client.update(f"{base}/{draft.id}", room_body(draft))
            else:
                body = await self.client.create(base, room_body(draft))
            room = _parse(RoomPayload, body).to_domain()
            return room if room.cinema_id else replace(room, cinema_id=draft.cinema_id)

        return await self._save(EntityKind.ROOMS, "save room", send)

    async def delete_room(self, cinema_id: str, room_id: str) -> Failure | None:
        """Delete a room."""

        async def send() -> None:
            await self.client.delete(f"/cinema/{cinema_id}/rooms/{room_id}")
            self.repository.discard(EntityKind.ROOMS, room_id)

        return await self._execute("delete room", send)

    async def save_session(self, draft: SessionDraft) -> Session | Failure:
        """Create or update a session, addressed through its first room."""
        failure = validate_session(draft)
        if failure:
            return failure
        base = f"/cinema/{draft.cinema_id}/rooms/{draft.room_ids[0]}/sceances"

        async def send() -> Session:
            if draft.id:
                body = await self.client.update(
                    f"{base}/{draft.id}", session_body(draft)
                )
            else:
                body = await self.client.create(base, session_body(draft))
            session = _parse(SessionPayload, body).to_domain()
            return replace(session, cinema_id=draft.cinema_id)

        return await self._save(EntityKind.SESSIONS, "save session", send)

    async def delete_session(self, session_id: str) -> Failure | None:
        """Delete a session from every room it is scheduled in."""
        session = _find(self.repository.snapshot(EntityKind.SESSIONS), session_id)
        if session is None:
            return _stale("Session no longer exists.")

        async def send() -> None:
            remaining = list(session.room_ids)
            for room_id in session.room_ids:
                await self.client.delete(
                    f"/cinema/{session.cinema_id}/rooms/{room_id}/sceances/{session_id}"
                )
                remaining.remove(room_id)
                if remaining:
                    self.repository.store(
                        EntityKind.SESSIONS,
                        replace(session, room_ids=tuple(remaining)),
                    )
            self.repository.discard(EntityKind.SESSIONS, session_id)

        return await self._execute("delete session", send)

    async def confirm_reservation(self, reservation_id: str) -> Reservation | Failure:
        """Confirm an open reservation; confirming twice is a no-op."""
        reservation = _find(
            self.repository.snapshot(EntityKind.RESERVATIONS), reservation_id
        )
        if reservation is None:
            return _stale("Reservation no longer exists.")
        if reservation.status is ReservationStatus.CONFIRMED:
            return reservation

        async def send() -> Reservation:
            await self.client.command(f"/reservations/{reservation_id}/confirm")
            return replace(reservation, status=ReservationStatus.CONFIRMED)

        return await self._save(EntityKind.RESERVATIONS, "confirm reservation", send)

    async def _save(
        self, kind: EntityKind, action: str, send: Callable[[], Awaitable[T]]
    ) -> T | Failure:
        result = await self._execute(action, send)
        if not isinstance(result, Failure):
            self.repository.store(kind, result)
        return result

    async def _execute(
        self, action: str, send: Callable[[], Awaitable[T]]
    ) -> T | Failure:
        try:
            return await send()
        except CinemaClientError as exc:
            _logger.warning("Admin %s failed: %s", action, exc)
            return exc.to_failure()


def _parse(model: type[P], body: dict[str, object]) -> P:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise ServerRejectedError(f"Malformed {model.__name__} in response") from exc


def _find(items: tuple, entity_id: str) -> object | None:
    return next((item for item in items if item.id == entity_id), None)


def _stale(message: str) -> Failure:
    return Failure(kind=FailureKind.STALE_SELECTION, message=message)
