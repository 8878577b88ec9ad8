"""Tests for join operators."""

from datetime import UTC, datetime, timedelta

from cinema_client.domain.joins import (
    UNRESOLVED,
    Resolved,
    aggregate_rooms,
    aggregate_sessions,
    describe_sessions,
    display,
    filter_open_sessions,
    group_rooms,
    merge_by_key,
    resolve_reservations,
)
from cinema_client.domain.models import (
    Cinema,
    Movie,
    Reservation,
    ReservationStatus,
    Room,
    Session,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)
CINEMAS = [Cinema(id="c1", name="Rex"), Cinema(id="c2", name="Lux")]


def _session(
    session_id: str,
    movie_id: str = "m1",
    date: datetime = NOW + timedelta(hours=2),
    room_ids: tuple[str, ...] = ("r1",),
) -> Session:
    return Session(id=session_id, movie_id=movie_id, date=date, room_ids=room_ids)


def _movie(movie_id: str, name: str) -> Movie:
    return Movie(
        id=movie_id,
        name=name,
        description="",
        rate=3,
        duration=100,
        picture_url=None,
        created_at=None,
        updated_at=None,
    )


def _reservation(reservation_id: str, room_id: str) -> Reservation:
    return Reservation(
        id=reservation_id,
        movie_id="m1",
        session_id="s1",
        room_id=room_id,
        nb_seats=2,
        rank=1,
        status=ReservationStatus.OPEN,
        expires_at=NOW,
        username="alice",
    )


def test_merge_by_key_keeps_first_seen() -> None:
    batches = [[("a", 1), ("b", 1)], [("a", 2), ("c", 2)]]
    merged = merge_by_key(batches, key=lambda r: r[0])

    assert merged == [("a", 1), ("b", 1), ("c", 2)]


def test_aggregate_sessions_drops_duplicate_ids_across_cinemas() -> None:
    sessions = aggregate_sessions(
        CINEMAS,
        {"c1": [_session("s1")], "c2": [_session("s1", movie_id="other")]},
    )

    assert [session.id for session in sessions] == ["s1"]
    assert sessions[0].cinema_id == "c1"
    assert sessions[0].movie_id == "m1"


def test_aggregate_sessions_follows_cinema_order_and_tags_cinema() -> None:
    sessions = aggregate_sessions(
        CINEMAS,
        {"c2": [_session("s2")], "c1": [_session("s1"), _session("s3")]},
    )

    assert [(s.id, s.cinema_id) for s in sessions] == [
        ("s1", "c1"),
        ("s3", "c1"),
        ("s2", "c2"),
    ]


def test_aggregate_rooms_fills_missing_cinema_and_dedupes() -> None:
    rooms = aggregate_rooms(
        CINEMAS,
        {
            "c1": [Room(id="r1", cinema_id="", name="A", seats=10)],
            "c2": [
                Room(id="r1", cinema_id="c2", name="dup", seats=1),
                Room(id="r2", cinema_id="c2", name="B", seats=20),
            ],
        },
    )

    assert [(room.id, room.cinema_id, room.name) for room in rooms] == [
        ("r1", "c1", "A"),
        ("r2", "c2", "B"),
    ]


def test_group_rooms_composes_rooms_under_cinemas() -> None:
    rooms = [
        Room(id="r1", cinema_id="c1", name="A", seats=10),
        Room(id="r2", cinema_id="c2", name="B", seats=20),
        Room(id="r3", cinema_id="c1", name="C", seats=30),
    ]

    grouped = group_rooms(CINEMAS, rooms)

    assert [entry.cinema.id for entry in grouped] == ["c1", "c2"]
    assert [room.id for room in grouped[0].rooms] == ["r1", "r3"]
    assert [room.id for room in grouped[1].rooms] == ["r2"]


def test_filter_open_sessions_applies_movie_rooms_and_date() -> None:
    sessions = [
        _session("open"),
        _session("other-movie", movie_id="m2"),
        _session("no-rooms", room_ids=()),
        _session("past", date=NOW - timedelta(minutes=1)),
        _session("now", date=NOW),
    ]

    result = filter_open_sessions(sessions, "m1", NOW)

    assert [session.id for session in result] == ["open"]


def test_filter_open_sessions_never_grows_as_time_advances() -> None:
    sessions = [
        _session(f"s{hours}", date=NOW + timedelta(hours=hours)) for hours in range(5)
    ]

    earlier = {s.id for s in filter_open_sessions(sessions, "m1", NOW)}
    later_now = NOW + timedelta(hours=2)
    later = {s.id for s in filter_open_sessions(sessions, "m1", later_now)}

    assert later <= earlier
    assert later == {"s3", "s4"}


def test_describe_sessions_resolves_names() -> None:
    views = describe_sessions(
        [_session("s1", room_ids=("r1", "missing")), _session("s2", movie_id="gone")],
        [_movie("m1", "Dune")],
        [Room(id="r1", cinema_id="c1", name="Salle 1", seats=10)],
    )

    assert views[0].movie_name == Resolved("Dune")
    assert views[0].room_names == (Resolved("Salle 1"), UNRESOLVED)
    assert display(views[1].movie_name) == "Unknown"


def test_resolve_reservations_isolates_missing_lookups() -> None:
    rooms = [
        Room(id="r1", cinema_id="c1", name="Salle 1", seats=80),
        Room(id="r9", cinema_id="gone", name="Orphan", seats=5),
    ]
    views = resolve_reservations(
        [
            _reservation("x1", "r1"),
            _reservation("x2", "missing"),
            _reservation("x3", "r9"),
        ],
        [_movie("m1", "Dune")],
        rooms,
        CINEMAS,
    )

    assert [view.reservation.id for view in views] == ["x1", "x2", "x3"]
    assert views[0].room_name == Resolved("Salle 1")
    assert views[0].room_seats == Resolved(80)
    assert views[0].cinema_name == Resolved("Rex")
    assert views[1].room_name is UNRESOLVED
    assert views[1].cinema_name is UNRESOLVED
    assert views[1].movie_name == Resolved("Dune")
    assert views[2].room_name == Resolved("Orphan")
    assert views[2].cinema_name is UNRESOLVED


def test_resolved_literal_unknown_is_distinct_from_unresolved() -> None:
    assert Resolved("Unknown") != UNRESOLVED
    assert display(Resolved("Unknown")) == display(UNRESOLVED)
