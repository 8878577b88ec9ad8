"""Pydantic models for the cinema backend's JSON payloads."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from cinema_client.domain.models import (
    Cinema,
    CinemaDraft,
    Movie,
    MovieDraft,
    Reservation,
    ReservationRequest,
    ReservationStatus,
    Room,
    RoomDraft,
    Session,
    SessionDraft,
)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MoviePayload(_Payload):
    """Movie payload."""

    uid: str
    name: str
    description: str = ""
    rate: int | None = None
    duration: int | None = None
    picture_url: str | None = Field(default=None, alias="pictureUrl")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    def to_domain(self) -> Movie:
        """Convert to a domain movie."""
        return Movie(
            id=self.uid,
            name=self.name,
            description=self.description,
            rate=self.rate,
            duration=self.duration,
            picture_url=self.picture_url,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )


class CinemaPayload(_Payload):
    """Cinema payload."""

    uid: str
    name: str

    def to_domain(self) -> Cinema:
        """Convert to a domain cinema."""
        return Cinema(id=self.uid, name=self.name)


class RoomPayload(_Payload):
    """Room payload."""

    uid: str
    cinema_uid: str = Field(default="", alias="cinemaUid")
    name: str
    seats: int = 0

    def to_domain(self) -> Room:
        """Convert to a domain room."""
        return Room(
            id=self.uid, cinema_id=self.cinema_uid, name=self.name, seats=self.seats
        )


class SessionPayload(_Payload):
    """Session ("sceance") payload."""

    uid: str
    movie: str
    date: datetime
    room_uids: list[str] = Field(default_factory=list, alias="roomUids")
    cinema_uid: str | None = Field(default=None, alias="cinemaUid")

    def to_domain(self) -> Session:
        """Convert to a domain session."""
        return Session(
            id=self.uid,
            movie_id=self.movie,
            date=_as_utc(self.date),
            room_ids=tuple(self.room_uids),
            cinema_id=self.cinema_uid,
        )


class ReservationPayload(_Payload):
    """Reservation payload."""

    uid: str
    movie_uid: str = Field(alias="movieUid")
    sceance: str = ""
    room: str = ""
    nb_seats: int = Field(default=0, alias="nbSeats")
    rank: int = 1
    status: ReservationStatus = ReservationStatus.OPEN
    expires_at: datetime | None = Field(default=None, alias="expiresAt")
    username: str = ""

    def to_domain(self) -> Reservation:
        """Convert to a domain reservation."""
        return Reservation(
            id=self.uid,
            movie_id=self.movie_uid,
            session_id=self.sceance,
            room_id=self.room,
            nb_seats=self.nb_seats,
            rank=self.rank,
            status=self.status,
            expires_at=_as_utc(self.expires_at),
            username=self.username,
        )


class IdentityPayload(_Payload):
    """Response of the credential verification endpoint."""

    username: str


def movie_body(draft: MovieDraft) -> dict[str, object]:
    """Build the request body for a movie command."""
    return {
        "name": draft.name,
        "description": draft.description,
        "rate": draft.rate,
        "duration": draft.duration,
        "pictureUrl": draft.picture_url,
    }


def cinema_body(draft: CinemaDraft) -> dict[str, object]:
    """Build the request body for a cinema command."""
    return {"name": draft.name}


def room_body(draft: RoomDraft) -> dict[str, object]:
    """Build the request body for a room command."""
    return {"cinemaUid": draft.cinema_id, "name": draft.name, "seats": draft.seats}


def session_body(draft: SessionDraft) -> dict[str, object]:
    """Build the request body for a session command."""
    return {
        "movie": draft.movie_id,
        "date": draft.date.isoformat(),
        "roomUids": list(draft.room_ids),
        "cinemaUid": draft.cinema_id,
    }


def reservation_body(request: ReservationRequest) -> dict[str, object]:
    """Build the request body for a create-reservation command."""
    return {
        "movieUid": request.movie_id,
        "sceance": request.session_id,
        "nbSeats": request.nb_seats,
        "room": request.room_id,
        "rank": request.rank,
        "status": request.status.value,
        "expiresAt": request.expires_at.isoformat(),
        "username": request.username,
    }
