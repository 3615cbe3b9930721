"""Bulk ingestion of a survey dataset into the store."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from movie_survey.core.errors import ConfigurationError, ReferentialError
from movie_survey.models import RatingInput, RatingRow, SurveyDataset
from movie_survey.services.storage import (
    MovieRepository,
    RatingRepository,
    validate_rating_row,
)
from movie_survey.services.storage.movie_repository import validate_titles
from movie_survey.services.storage.repository import Repository, translate_integrity_error

logger = structlog.get_logger()


@dataclass(frozen=True)
class IngestionSummary:
    """Counts of what an ingestion run wrote."""

    movies: int
    ratings: int
    absent: int

    @property
    def present(self) -> int:
        return self.ratings - self.absent


def check_movie_positions(ratings: list[RatingInput], catalog_size: int) -> None:
    """Ensure every rating points inside a catalog of ``catalog_size`` movies.

    Raises:
        ReferentialError: If a position falls outside the catalog.
    """
    for rating in ratings:
        if not 1 <= rating.movie <= catalog_size:
            raise ReferentialError(
                f"Movie position {rating.movie} is outside the catalog of {catalog_size}",
                row=rating,
            )


def resolve_movie_refs(
    ratings: list[RatingInput], movie_ids: list[int]
) -> list[RatingRow]:
    """Map 1-based catalog positions to the ids the store assigned."""
    check_movie_positions(ratings, len(movie_ids))
    return [
        RatingRow(
            movie_id=movie_ids[rating.movie - 1],
            person=rating.person,
            rating=rating.rating,
        )
        for rating in ratings
    ]


class IngestionService(Repository):
    """Insert the movie catalog and the ratings that refer to it in one transaction."""

    def __init__(self, movies: MovieRepository, ratings: RatingRepository) -> None:
        super().__init__(movies.engine)
        self.movies = movies
        self.ratings = ratings

    def ingest(self, dataset: SurveyDataset) -> IngestionSummary:
        """Insert a whole dataset.

        Titles, movie positions and rating values are validated before
        anything is written. Movies and ratings commit together, so any
        failure leaves the store untouched.

        Args:
            dataset: Movie catalog and ratings.

        Returns:
            Summary of inserted rows.
        """
        validate_titles(dataset.movies)
        check_movie_positions(dataset.ratings, len(dataset.movies))
        for rating in dataset.ratings:
            validate_rating_row(rating)

        def _insert(session: Session) -> tuple[list[int], int]:
            movie_ids = self.movies.add_movies(session, dataset.movies)
            rows = resolve_movie_refs(dataset.ratings, movie_ids)
            return movie_ids, self.ratings.add_ratings(session, rows)

        try:
            movie_ids, inserted = self._run_transaction(_insert)
        except IntegrityError as e:
            raise translate_integrity_error(e, "Survey insert") from e

        summary = IngestionSummary(
            movies=len(movie_ids),
            ratings=inserted,
            absent=dataset.absent_count,
        )
        logger.info(
            "ingestion_complete",
            movies=summary.movies,
            ratings=summary.ratings,
            absent=summary.absent,
        )
        return summary

    def check_stored(self, dataset: SurveyDataset) -> None:
        """Ensure the stored survey is exactly ``dataset``.

        Raises:
            ConfigurationError: If the stored movies or ratings differ.
        """
        movies = self.movies.list_movies()
        titles = [movie.title for movie in movies]
        if titles != dataset.movies:
            raise _stored_mismatch(
                f"the store holds movies {titles}, the dataset lists {dataset.movies}"
            )

        expected = resolve_movie_refs(dataset.ratings, [movie.id for movie in movies])
        stored = [
            RatingRow(movie_id=rating.movie_id, person=rating.person, rating=rating.rating)
            for rating in self.ratings.list_ratings()
        ]
        if stored != expected:
            raise _stored_mismatch(
                f"the store holds {len(stored)} ratings, the dataset has {len(expected)}"
                if len(stored) != len(expected)
                else "stored ratings differ from the dataset's ratings"
            )


def _stored_mismatch(detail: str) -> ConfigurationError:
    return ConfigurationError(
        f"Store already holds a different survey: {detail}",
        "Use a fresh run id or database_url for a new dataset.",
    )
