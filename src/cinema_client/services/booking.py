"""Booking state machine for reserving seats in a session."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from cinema_client.adapters.api_models import ReservationPayload, reservation_body
from cinema_client.adapters.resource_client import ResourceClient
from cinema_client.domain.errors import (
    CinemaClientError,
    Failure,
    FailureKind,
    ServerRejectedError,
)
from cinema_client.domain.joins import filter_open_sessions
from cinema_client.domain.models import (
    Reservation,
    ReservationRequest,
    ReservationStatus,
    Session,
)
from cinema_client.domain.validation import validate_seat_count
from cinema_client.services.identity import IdentityService
from cinema_client.services.repository import EntityKind, EntityRepository

_logger = logging.getLogger(__name__)

# Every reservation books the first rank of its room.
DEFAULT_RANK = 1


class BookingState(StrEnum):
    """States of a booking flow."""

    NO_SELECTION = "no_selection"
    SESSION_CHOSEN = "session_chosen"
    SEATS_CHOSEN = "seats_chosen"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


_SELECTABLE = {
    BookingState.NO_SELECTION,
    BookingState.SESSION_CHOSEN,
    BookingState.SEATS_CHOSEN,
}


@dataclass
class BookingFlow:
    """Drives one reservation from session choice to confirmation.

    Methods return a ``Failure`` instead of raising; a rejected step leaves
    the current selection untouched.
    """

    movie_id: str
    client: ResourceClient
    repository: EntityRepository
    identity: IdentityService
    state: BookingState = BookingState.NO_SELECTION
    session: Session | None = None
    nb_seats: int | None = None
    reservation: Reservation | None = None
    failure: Failure | None = None
    history: list[BookingState] = field(
        default_factory=lambda: [BookingState.NO_SELECTION]
    )

    def open_sessions(self, now: datetime | None = None) -> list[Session]:
        """Return the sessions currently open for this movie."""
        return filter_open_sessions(
            self.repository.snapshot(EntityKind.SESSIONS),
            self.movie_id,
            now or datetime.now(tz=UTC),
        )

    def select_session(
        self, session_id: str, now: datetime | None = None
    ) -> Failure | None:
        """Choose one of the movie's open sessions."""
        if self.state not in _SELECTABLE:
            return self._reject(
                FailureKind.VALIDATION, f"Cannot change session while {self.state}."
            )
        session = _find(self.open_sessions(now), session_id)
        if session is None:
            return self._reject(
                FailureKind.STALE_SELECTION,
                "The selected session is no longer open for booking.",
                field="session_id",
            )
        self.session = session
        self.nb_seats = None
        self.failure = None
        self._move(BookingState.SESSION_CHOSEN)
        return None

    def choose_seats(self, nb_seats: int) -> Failure | None:
        """Set the number of seats; capacity is left to the server."""
        if self.session is None or self.state not in _SELECTABLE:
            return self._reject(
                FailureKind.VALIDATION, "Please select a session.", field="session_id"
            )
        failure = validate_seat_count(nb_seats)
        if failure:
            self.failure = failure
            return failure
        self.nb_seats = nb_seats
        self.failure = None
        self._move(BookingState.SEATS_CHOSEN)
        return None

    async def submit(self, nb_seats: int | None = None) -> Reservation | Failure:
        """Create the reservation on the server."""
        if nb_seats is not None:
            failure = self.choose_seats(nb_seats)
            if failure:
                return failure
        if self.state is not BookingState.SEATS_CHOSEN or self.session is None:
            return self._reject(
                FailureKind.VALIDATION,
                "Please select a session and a number of seats.",
            )
        if _find(self.open_sessions(), self.session.id) is None:
            self.session = None
            self.nb_seats = None
            self._move(BookingState.NO_SELECTION)
            return self._reject(
                FailureKind.STALE_SELECTION,
                "The selected session is no longer open for booking.",
                field="session_id",
            )

        self._move(BookingState.SUBMITTING)
        try:
            username = await self.identity.current_username()
            request = _build_request(
                self.movie_id, self.session, self.nb_seats, username
            )
            body = await self.client.create(
                f"/movie/{self.movie_id}/reservations", reservation_body(request)
            )
            reservation = _parse_created(body, request)
        except CinemaClientError as exc:
            _logger.warning("Reservation for movie %s failed: %s", self.movie_id, exc)
            self.failure = exc.to_failure()
            self._move(BookingState.FAILED)
            self._move(BookingState.SEATS_CHOSEN)
            return self.failure

        self.repository.store(EntityKind.RESERVATIONS, reservation)
        self.reservation = reservation
        self.failure = None
        self._move(BookingState.CONFIRMED)
        return reservation

    def _move(self, state: BookingState) -> None:
        self.state = state
        self.history.append(state)

    def _reject(
        self, kind: FailureKind, message: str, field: str | None = None
    ) -> Failure:
        self.failure = Failure(kind=kind, message=message, field=field)
        return self.failure


@dataclass
class BookingService:
    """Starts booking flows for movies."""

    client: ResourceClient
    repository: EntityRepository
    identity: IdentityService

    def start(self, movie_id: str) -> BookingFlow:
        """Start a booking flow for a movie."""
        return BookingFlow(
            movie_id=movie_id,
            client=self.client,
            repository=self.repository,
            identity=self.identity,
        )


def _find(sessions: list[Session], session_id: str) -> Session | None:
    return next((session for session in sessions if session.id == session_id), None)


def _build_request(
    movie_id: str, session: Session, nb_seats: int, username: str
) -> ReservationRequest:
    return ReservationRequest(
        movie_id=movie_id,
        session_id=session.id,
        room_id=session.room_ids[0],
        nb_seats=nb_seats,
        rank=DEFAULT_RANK,
        status=ReservationStatus.OPEN,
        expires_at=session.date,
        username=username,
    )


def _parse_created(body: dict[str, object], request: ReservationRequest) -> Reservation:
    """Parse the created reservation; omitted fields come from the request."""
    if not body:
        raise ServerRejectedError("Reservation was not returned by the server")
    payload = {**reservation_body(request), **body}
    try:
        return ReservationPayload.model_validate(payload).to_domain()
    except ValueError as exc:
        raise ServerRejectedError("Malformed reservation in response") from exc
