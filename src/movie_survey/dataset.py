"""Bundled reference survey: six movies rated by ten people.

Each movie has exactly one blank answer, from a different rater each time,
so 54 of the 60 observations are present.
"""

from __future__ import annotations

from movie_survey.models import RatingInput, SurveyDataset

REFERENCE_MOVIES = [
    "Parasite",
    "Joker",
    "1917",
    "Frozen II",
    "Little Women",
    "Cats",
]

REFERENCE_RATERS = [
    "Ana",
    "Ben",
    "Carla",
    "Dev",
    "Elena",
    "Farid",
    "Grace",
    "Hiro",
    "Ines",
    "Jamal",
]

# One row per movie, one column per rater (REFERENCE_RATERS order).
REFERENCE_SCORES: list[list[int | None]] = [
    [5, 4, None, 5, 4, 5, 3, 4, 5, 4],
    [3, None, 4, 3, 3, 4, 3, 3, 4, 3],
    [4, 4, 5, None, 3, 4, 4, 5, 3, 4],
    [2, 3, 3, 3, None, 2, 3, 2, 3, 2],
    [4, 3, 3, 4, 3, None, 5, 3, 3, 4],
    [2, 2, 1, 3, 2, 1, None, 2, 1, 2],
]


def build_dataset(
    movies: list[str],
    raters: list[str],
    scores: list[list[int | None]],
) -> SurveyDataset:
    """Flatten a movie x rater score matrix into a dataset.

    Ratings are emitted movie by movie, raters in the given order.
    """
    if len(scores) != len(movies):
        msg = f"Expected {len(movies)} score rows, got {len(scores)}"
        raise ValueError(msg)

    ratings = []
    for position, row in enumerate(scores, 1):
        if len(row) != len(raters):
            msg = f"Score row {position} has {len(row)} entries for {len(raters)} raters"
            raise ValueError(msg)
        ratings.extend(
            RatingInput(movie=position, person=person, rating=score)
            for person, score in zip(raters, row, strict=True)
        )
    return SurveyDataset(movies=list(movies), ratings=ratings)


def reference_dataset() -> SurveyDataset:
    """Return a fresh copy of the bundled reference survey."""
    return build_dataset(REFERENCE_MOVIES, REFERENCE_RATERS, REFERENCE_SCORES)
