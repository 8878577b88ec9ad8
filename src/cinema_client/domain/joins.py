"""Join operators composing independently fetched collections."""

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Generic, TypeVar

from cinema_client.domain.models import Cinema, Movie, Reservation, Room, Session

T = TypeVar("T")

UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """A lookup that found its target."""

    value: T


@dataclass(frozen=True)
class Unresolved:
    """A lookup whose target is not in the cache."""


UNRESOLVED = Unresolved()

Resolution = Resolved[T] | Unresolved


def display(resolution: "Resolution[object]", fallback: str = UNKNOWN_LABEL) -> str:
    """Render a resolution for display, using the fallback when unresolved."""
    if isinstance(resolution, Resolved):
        return str(resolution.value)
    return fallback


def _lookup(index: Mapping[str, T], key: str | None) -> "Resolution[T]":
    if key is None or key not in index:
        return UNRESOLVED
    return Resolved(index[key])


@dataclass(frozen=True)
class CinemaRooms:
    """A cinema with the rooms it owns."""

    cinema: Cinema
    rooms: tuple[Room, ...]


@dataclass(frozen=True)
class SessionView:
    """A session with its movie and room names resolved."""

    session: Session
    movie_name: "Resolution[str]"
    room_names: tuple["Resolution[str]", ...]


@dataclass(frozen=True)
class ReservationView:
    """A reservation with display fields resolved through the caches."""

    reservation: Reservation
    movie_name: "Resolution[str]"
    room_name: "Resolution[str]"
    room_seats: "Resolution[int]"
    cinema_name: "Resolution[str]"


def merge_by_key(
    batches: Iterable[Iterable[T]], key: Callable[[T], Hashable]
) -> list[T]:
    """Concatenate batches, keeping the first record seen for each key."""
    seen: set[Hashable] = set()
    merged: list[T] = []
    for batch in batches:
        for record in batch:
            record_key = key(record)
            if record_key in seen:
                continue
            seen.add(record_key)
            merged.append(record)
    return merged


def aggregate_sessions(
    cinemas: Sequence[Cinema], sessions_by_cinema: Mapping[str, Sequence[Session]]
) -> list[Session]:
    """Merge per-cinema session lists in cinema order, tagged and deduplicated."""
    return merge_by_key(
        (
            [
                replace(session, cinema_id=cinema.id)
                for session in sessions_by_cinema.get(cinema.id, ())
            ]
            for cinema in cinemas
        ),
        key=lambda session: session.id,
    )


def aggregate_rooms(
    cinemas: Sequence[Cinema], rooms_by_cinema: Mapping[str, Sequence[Room]]
) -> list[Room]:
    """Merge per-cinema room lists in cinema order, deduplicated by id."""
    return merge_by_key(
        (
            [
                room if room.cinema_id else replace(room, cinema_id=cinema.id)
                for room in rooms_by_cinema.get(cinema.id, ())
            ]
            for cinema in cinemas
        ),
        key=lambda room: room.id,
    )


def group_rooms(cinemas: Sequence[Cinema], rooms: Sequence[Room]) -> list[CinemaRooms]:
    """Compose rooms under their owning cinema, keeping cinema order."""
    by_cinema: dict[str, list[Room]] = {}
    for room in rooms:
        by_cinema.setdefault(room.cinema_id, []).append(room)
    return [
        CinemaRooms(cinema=cinema, rooms=tuple(by_cinema.get(cinema.id, ())))
        for cinema in cinemas
    ]


def is_open_for_booking(session: Session, movie_id: str, now: datetime) -> bool:
    """Return whether a session can still be booked for the movie."""
    return (
        bool(session.room_ids)
        and session.movie_id == movie_id
        and session.date > now
    )


def filter_open_sessions(
    sessions: Iterable[Session], movie_id: str, now: datetime
) -> list[Session]:
    """Return the movie's sessions that are still open for booking at ``now``."""
    return [
        session
        for session in sessions
        if is_open_for_booking(session, movie_id, now)
    ]


def describe_sessions(
    sessions: Iterable[Session], movies: Iterable[Movie], rooms: Iterable[Room]
) -> list[SessionView]:
    """Attach movie and room names to sessions."""
    movie_names = {movie.id: movie.name for movie in movies}
    room_names = {room.id: room.name for room in rooms}
    return [
        SessionView(
            session=session,
            movie_name=_lookup(movie_names, session.movie_id),
            room_names=tuple(
                _lookup(room_names, room_id) for room_id in session.room_ids
            ),
        )
        for session in sessions
    ]


def resolve_reservations(
    reservations: Iterable[Reservation],
    movies: Iterable[Movie],
    rooms: Iterable[Room],
    cinemas: Iterable[Cinema],
) -> list[ReservationView]:
    """Resolve display fields for each reservation independently."""
    movies_by_id = {movie.id: movie for movie in movies}
    rooms_by_id = {room.id: room for room in rooms}
    cinemas_by_id = {cinema.id: cinema for cinema in cinemas}
    return [
        resolve_reservation(reservation, movies_by_id, rooms_by_id, cinemas_by_id)
        for reservation in reservations
    ]


def resolve_reservation(
    reservation: Reservation,
    movies_by_id: Mapping[str, Movie],
    rooms_by_id: Mapping[str, Room],
    cinemas_by_id: Mapping[str, Cinema],
) -> ReservationView:
    """Resolve room, cinema and movie for one reservation."""
    movie = _lookup(movies_by_id, reservation.movie_id)
    room = _lookup(rooms_by_id, reservation.room_id)
    cinema: Resolution[Cinema] = UNRESOLVED
    if isinstance(room, Resolved):
        cinema = _lookup(cinemas_by_id, room.value.cinema_id)
    return ReservationView(
        reservation=reservation,
        movie_name=_project(movie, lambda value: value.name),
        room_name=_project(room, lambda value: value.name),
        room_seats=_project(room, lambda value: value.seats),
        cinema_name=_project(cinema, lambda value: value.name),
    )


def _project(resolution: "Resolution[T]", func: Callable[[T], object]) -> "Resolution":
    if isinstance(resolution, Resolved):
        return Resolved(func(resolution.value))
    return UNRESOLVED
