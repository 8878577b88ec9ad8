"""Joined, filterable views over the cached catalog."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TypeVar

from cinema_client.domain.errors import CinemaClientError, Failure
from cinema_client.domain.joins import (
    CinemaRooms,
    ReservationView,
    SessionView,
    Unresolved,
    describe_sessions,
    filter_open_sessions,
    group_rooms,
    resolve_reservations,
)
from cinema_client.domain.models import Cinema, Movie, Room, Session
from cinema_client.domain.queries import (
    Page,
    SortKey,
    filter_by_text,
    paginate,
    sort_items,
)
from cinema_client.services.identity import IdentityService
from cinema_client.services.repository import EntityKind, EntityRepository

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CatalogService:
    """Builds the denormalized views the presentation layer renders."""

    repository: EntityRepository
    identity: IdentityService
    page_size: int = 12
    page_window: int = 10

    async def load(self) -> Failure | None:
        """Load movies and cinemas, then every cinema's rooms and sessions."""

        async def fetch() -> None:
            await asyncio.gather(
                self.repository.refresh(EntityKind.MOVIES),
                self.repository.refresh(EntityKind.CINEMAS),
            )
            await asyncio.gather(
                self.repository.refresh(EntityKind.ROOMS),
                self.repository.refresh(EntityKind.SESSIONS),
            )

        return await _guard("load catalog", fetch)

    def cinemas_with_rooms(self) -> list[CinemaRooms]:
        """Return each cinema with its rooms."""
        return group_rooms(
            self.repository.snapshot(EntityKind.CINEMAS),
            self.repository.snapshot(EntityKind.ROOMS),
        )

    def session_views(self) -> list[SessionView]:
        """Return all sessions with movie and room names resolved."""
        return describe_sessions(
            self.repository.snapshot(EntityKind.SESSIONS),
            self.repository.snapshot(EntityKind.MOVIES),
            self.repository.snapshot(EntityKind.ROOMS),
        )

    def open_sessions(
        self, movie_id: str, now: datetime | None = None
    ) -> list[Session]:
        """Return the movie's sessions that can still be booked."""
        return filter_open_sessions(
            self.repository.snapshot(EntityKind.SESSIONS),
            movie_id,
            now or datetime.now(tz=UTC),
        )

    def browse_movies(
        self, term: str = "", sort_key: SortKey = SortKey.NAME, page_number: int = 1
    ) -> Page:
        """Filter, sort and paginate the movie collection."""
        movies: tuple[Movie, ...] = self.repository.snapshot(EntityKind.MOVIES)
        matches = sort_items(filter_by_text(movies, term, "name"), sort_key)
        return paginate(matches, self.page_size, page_number, self.page_window)

    def filter_sessions(self, term: str) -> list[SessionView]:
        """Filter session views by movie name."""
        return filter_by_text(self.session_views(), term, "movie_name")

    def filter_cinemas(self, term: str) -> list[Cinema]:
        """Filter cinemas by name."""
        return filter_by_text(
            self.repository.snapshot(EntityKind.CINEMAS), term, "name"
        )

    def filter_rooms(self, term: str) -> list[Room]:
        """Filter rooms by name."""
        return filter_by_text(
            self.repository.snapshot(EntityKind.ROOMS), term, "name"
        )

    async def reservation_history(self) -> list[ReservationView] | Failure:
        """Return the current user's reservations with display fields."""

        async def fetch() -> list[ReservationView]:
            username = await self.identity.current_username()
            await self._ensure_rooms()
            reservations = await self.repository.refresh_user_reservations(username)
            return await self._resolve(reservations)

        return await _guard("load reservation history", fetch)

    async def movie_reservations(
        self, movie_id: str
    ) -> list[ReservationView] | Failure:
        """Return a movie's reservations for the admin table."""

        async def fetch() -> list[ReservationView]:
            await self._ensure_rooms()
            reservations = await self.repository.refresh_movie_reservations(
                movie_id
            )
            return await self._resolve(reservations)

        return await _guard("load movie reservations", fetch)

    async def _ensure_rooms(self) -> None:
        if not self.repository.is_loaded(EntityKind.ROOMS):
            await self.repository.refresh(EntityKind.ROOMS)

    async def _movies_for(self, reservations: tuple) -> list[Movie]:
        """Return cached movies plus any referenced movie the cache lacks."""
        movies = list(self.repository.snapshot(EntityKind.MOVIES))
        known = {movie.id for movie in movies}
        missing = list(
            dict.fromkeys(
                reservation.movie_id
                for reservation in reservations
                if reservation.movie_id not in known
            )
        )
        fetched = await asyncio.gather(
            *(self._fetch_movie(movie_id) for movie_id in missing)
        )
        return movies + [movie for movie in fetched if movie is not None]

    async def _fetch_movie(self, movie_id: str) -> Movie | None:
        try:
            return await self.repository.fetch_movie(movie_id)
        except CinemaClientError as exc:
            _logger.debug("Movie %s lookup failed: %s", movie_id, exc)
            return None

    async def _resolve(self, reservations: tuple) -> list[ReservationView]:
        views = resolve_reservations(
            reservations,
            await self._movies_for(reservations),
            self.repository.snapshot(EntityKind.ROOMS),
            self.repository.snapshot(EntityKind.CINEMAS),
        )
        unresolved = sum(
            1
            for view in views
            if isinstance(view.room_name, Unresolved)
            or isinstance(view.cinema_name, Unresolved)
        )
        if unresolved:
            _logger.debug("%s reservations have unresolved room or cinema", unresolved)
        return views


async def _guard(action: str, fetch: Callable[[], Awaitable[T]]) -> T | Failure:
    try:
        return await fetch()
    except CinemaClientError as exc:
        _logger.warning("Catalog %s failed: %s", action, exc)
        return exc.to_failure()
