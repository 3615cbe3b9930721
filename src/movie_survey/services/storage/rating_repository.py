"""Database persistence for rating records."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from movie_survey.core.errors import ConstraintError, ReferentialError
from movie_survey.models import MAX_RATING, MIN_RATING, Movie, Rating, RatingInput, RatingRow

from .repository import Repository, translate_integrity_error

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


def validate_rating_row(row: RatingRow | RatingInput) -> None:
    """Check the non-null and range constraints of a single row.

    Raises:
        ConstraintError: If the person is blank or the rating is out of range.
    """
    if not row.person or not row.person.strip():
        raise ConstraintError("Rating person must not be empty", row=row)
    if row.rating is not None and not MIN_RATING <= row.rating <= MAX_RATING:
        raise ConstraintError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING} or absent", row=row
        )


class RatingRepository(Repository):
    """Persist and query rating records."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    def add_ratings(self, session: Session, rows: Sequence[RatingRow]) -> int:
        """Add ratings to an open session after checking their movie ids.

        Raises:
            ConstraintError: If a row violates a non-null or range constraint.
            ReferentialError: If a row references a movie id that does not exist.
        """
        for row in rows:
            validate_rating_row(row)

        wanted = {row.movie_id for row in rows}
        statement = select(Movie.id).where(col(Movie.id).in_(wanted))
        known = set(session.exec(statement).all())
        for row in rows:
            if row.movie_id not in known:
                raise ReferentialError(f"Unknown movie id {row.movie_id}", row=row)
            session.add(Rating(movie_id=row.movie_id, person=row.person, rating=row.rating))
        session.flush()
        return len(rows)

    def insert_ratings(self, rows: Sequence[RatingRow]) -> int:
        """Insert a batch of ratings within one transaction.

        Args:
            rows: Ratings with explicit movie ids.

        Returns:
            Number of inserted rows.

        Raises:
            ConstraintError: If a row violates a non-null or range constraint.
            ReferentialError: If a row references a movie id that does not exist.
        """
        for row in rows:
            validate_rating_row(row)

        try:
            inserted = self._run_transaction(lambda session: self.add_ratings(session, rows))
        except IntegrityError as e:
            raise translate_integrity_error(e, "Rating insert") from e

        logger.info("ratings_inserted", count=inserted)
        return inserted

    def list_ratings(self) -> list[Rating]:
        """Get all ratings in insertion order."""

        def _get(session: Session) -> list[Rating]:
            statement = select(Rating).order_by(col(Rating.id))
            return list(session.exec(statement).all())

        return self._run_session(_get)

    def count_ratings(self, *, absent_only: bool = False) -> int:
        """Count stored ratings, optionally only those left blank."""

        def _count(session: Session) -> int:
            statement = select(func.count()).select_from(Rating)
            if absent_only:
                statement = statement.where(col(Rating.rating).is_(None))
            return session.exec(statement).one()

        return self._run_session(_count)
