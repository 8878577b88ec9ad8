"""Local validation for admin drafts and bookings."""

from cinema_client.domain.errors import Failure, FailureKind
from cinema_client.domain.models import CinemaDraft, MovieDraft, RoomDraft, SessionDraft

NAME_MAX_LENGTH = 128
DESCRIPTION_MAX_LENGTH = 4096
RATE_RANGE = (1, 5)
DURATION_RANGE = (1, 240)


def _invalid(field: str, message: str) -> Failure:
    return Failure(kind=FailureKind.VALIDATION, message=message, field=field)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_name(name: str) -> Failure | None:
    if not 0 < len(name.strip()) <= NAME_MAX_LENGTH:
        return _invalid("name", "Name must be between 1 and 128 characters.")
    return None


def validate_movie(draft: MovieDraft) -> Failure | None:
    """Return the first validation failure for a movie draft."""
    failure = _check_name(draft.name)
    if failure:
        return failure
    if not 0 < len(draft.description.strip()) <= DESCRIPTION_MAX_LENGTH:
        return _invalid(
            "description", "Description must be between 1 and 4096 characters."
        )
    low, high = RATE_RANGE
    if not _is_int(draft.rate) or not low <= draft.rate <= high:
        return _invalid("rate", "Rate must be an integer between 1 and 5.")
    low, high = DURATION_RANGE
    if not _is_int(draft.duration) or not low <= draft.duration <= high:
        return _invalid("duration", "Duration must be an integer between 1 and 240.")
    return None


def validate_cinema(draft: CinemaDraft) -> Failure | None:
    """Return the first validation failure for a cinema draft."""
    return _check_name(draft.name)


def validate_room(draft: RoomDraft) -> Failure | None:
    """Return the first validation failure for a room draft."""
    if not draft.cinema_id:
        return _invalid("cinema_id", "Cinema is required.")
    failure = _check_name(draft.name)
    if failure:
        return failure
    if not _is_int(draft.seats) or draft.seats <= 0:
        return _invalid("seats", "Seats must be a positive integer.")
    return None


def validate_session(draft: SessionDraft) -> Failure | None:
    """Return the first validation failure for a session draft."""
    if not draft.movie_id.strip():
        return _invalid("movie_id", "Movie is required.")
    if not draft.cinema_id:
        return _invalid("cinema_id", "Cinema is required.")
    if not draft.room_ids:
        return _invalid("room_ids", "At least one room must be selected.")
    return None


def validate_seat_count(nb_seats: int) -> Failure | None:
    """Reject seat counts below one; room capacity is checked by the server."""
    if not _is_int(nb_seats) or nb_seats < 1:
        return _invalid("nb_seats", "Number of seats must be at least 1.")
    return None
