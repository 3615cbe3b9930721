"""Ingestion records for a survey: the movie catalog and raw observations."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RatingInput(BaseModel):
    """A single survey answer.

    ``movie`` is the 1-based position of the movie in the dataset catalog;
    ``rating`` is None when the rater gave no answer.
    """

    movie: int
    person: str
    rating: int | None = None


class RatingRow(BaseModel):
    """A rating resolved to an explicit movie id, ready for insertion."""

    movie_id: int
    person: str
    rating: int | None = None


class SurveyDataset(BaseModel):
    """Ordered movie catalog plus the ratings collected for it."""

    movies: list[str] = Field(default_factory=list)
    ratings: list[RatingInput] = Field(default_factory=list)

    @property
    def absent_count(self) -> int:
        return sum(1 for r in self.ratings if r.rating is None)

    @property
    def raters(self) -> list[str]:
        """Distinct rater names in first-seen order."""
        return list(dict.fromkeys(r.person for r in self.ratings))
