"""Domain models for the cinema reservation client."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class ReservationStatus(StrEnum):
    """Lifecycle status of a reservation."""

    OPEN = "open"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Movie:
    """A movie in the catalog."""

    id: str
    name: str
    description: str
    rate: int | None
    duration: int | None
    picture_url: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class Cinema:
    """A venue containing rooms."""

    id: str
    name: str


@dataclass(frozen=True)
class Room:
    """A bookable room inside a cinema."""

    id: str
    cinema_id: str
    name: str
    seats: int


@dataclass(frozen=True)
class Session:
    """A scheduled showing of a movie.

    ``room_ids`` is kept as a collection, but booking and editing only ever
    use the first room. ``cinema_id`` is attached by the join step from the
    cinema the session was fetched under.
    """

    id: str
    movie_id: str
    date: datetime
    room_ids: tuple[str, ...]
    cinema_id: str | None = None


@dataclass(frozen=True)
class Reservation:
    """A booking of seats for a session."""

    id: str
    movie_id: str
    session_id: str
    room_id: str
    nb_seats: int
    rank: int
    status: ReservationStatus
    expires_at: datetime | None
    username: str


@dataclass(frozen=True)
class MovieDraft:
    """Admin form data for a movie; ``id`` is None when creating."""

    name: str
    description: str
    rate: int
    duration: int
    picture_url: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class CinemaDraft:
    """Admin form data for a cinema."""

    name: str
    id: str | None = None


@dataclass(frozen=True)
class RoomDraft:
    """Admin form data for a room."""

    cinema_id: str
    name: str
    seats: int
    id: str | None = None


@dataclass(frozen=True)
class SessionDraft:
    """Admin form data for a session."""

    movie_id: str
    cinema_id: str
    date: datetime
    room_ids: tuple[str, ...]
    id: str | None = None


@dataclass(frozen=True)
class ReservationRequest:
    """Payload of a create-reservation command."""

    movie_id: str
    session_id: str
    room_id: str
    nb_seats: int
    rank: int
    status: ReservationStatus
    expires_at: datetime
    username: str
