"""Joined (movie, person, rating) rows held in memory."""

from pydantic import BaseModel, ConfigDict


class JoinedObservation(BaseModel):
    """One rating row joined to its movie title.

    Attributes:
        title: Movie title, the grouping key for standardization.
        person: Rater name.
        rating: Observed rating, or None when the rater left it blank.
        zscore: Standardized rating within the title group, set by the
            standardizer (NaN for degenerate groups under the "nan" policy).
        imputed: True when ``rating`` was filled in from the global mean.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    person: str
    rating: float | None = None
    zscore: float | None = None
    imputed: bool = False

    @property
    def is_absent(self) -> bool:
        return self.rating is None
