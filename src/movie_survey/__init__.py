"""Movie Survey.

Record survey-style movie ratings in a relational store, fill blank answers
with the global mean rating, and standardize ratings per movie.
"""

__version__ = "0.1.0"

from movie_survey.services.imputation import impute  # noqa: E402
from movie_survey.services.standardization import standardize  # noqa: E402

__all__ = [
    "__version__",
    "impute",
    "standardize",
]
