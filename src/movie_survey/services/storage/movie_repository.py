"""Database persistence for the movie catalog."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from movie_survey.core.errors import ConstraintError
from movie_survey.models import Movie

from .repository import Repository, translate_integrity_error

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


def validate_titles(titles: Sequence[str | None]) -> None:
    """Reject None or blank titles, naming the 1-based position.

    Raises:
        ConstraintError: If a title is None or blank.
    """
    for position, title in enumerate(titles, 1):
        if title is None or not str(title).strip():
            raise ConstraintError(
                f"Movie title at position {position} must not be empty", row=title
            )


class MovieRepository(Repository):
    """Persist and query movies."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    def add_movies(self, session: Session, titles: Sequence[str | None]) -> list[int]:
        """Add movies to an open session and return their assigned ids."""
        validate_titles(titles)
        movies = [Movie(title=title) for title in titles]
        for movie in movies:
            session.add(movie)
            session.flush()
        return [movie.id for movie in movies]

    def insert_movies(self, titles: Sequence[str | None]) -> list[int]:
        """Insert movies in order within one transaction.

        Args:
            titles: Ordered movie titles.

        Returns:
            Assigned ids, aligned with ``titles``. On an empty table these
            are 1..N.

        Raises:
            ConstraintError: If a title is None or blank; nothing is inserted.
        """
        validate_titles(titles)
        try:
            ids = self._run_transaction(lambda session: self.add_movies(session, titles))
        except IntegrityError as e:
            raise translate_integrity_error(e, "Movie insert") from e

        logger.info("movies_inserted", count=len(ids))
        return ids

    def list_movies(self) -> list[Movie]:
        """Get all movies ordered by id."""

        def _get(session: Session) -> list[Movie]:
            statement = select(Movie).order_by(col(Movie.id))
            return list(session.exec(statement).all())

        return self._run_session(_get)

    def count_movies(self) -> int:
        """Count stored movies."""

        def _count(session: Session) -> int:
            return session.exec(select(func.count()).select_from(Movie)).one()

        return self._run_session(_count)
