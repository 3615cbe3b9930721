"""Load the ratings joined to their movie titles."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import Session, col, select

from movie_survey.models import JoinedObservation, Movie, Rating

from .repository import Repository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class JoinLoader(Repository):
    """Read the flat (title, person, rating) relation."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    def load_joined(self) -> list[JoinedObservation]:
        """Inner-join ratings to movies on ``ratings.movie_id = movies.id``.

        Rows come back in rating insertion order (``ratings.id``), so repeated
        calls on unchanged data return identical sequences. Absent ratings are
        kept as None.
        """

        def _get(session: Session) -> list[JoinedObservation]:
            statement = (
                select(Movie.title, Rating.person, Rating.rating)
                .select_from(Rating)
                .join(Movie, col(Rating.movie_id) == col(Movie.id))
                .order_by(col(Rating.id))
            )
            return [
                JoinedObservation(title=title, person=person, rating=rating)
                for title, person, rating in session.exec(statement).all()
            ]

        rows = self._run_session(_get)
        logger.info("joined_loaded", rows=len(rows))
        return rows
