"""Mean imputation for blank survey answers."""

from __future__ import annotations

from collections.abc import Sequence
from statistics import mean

import structlog

from movie_survey.core.errors import ImputationError
from movie_survey.models import JoinedObservation

logger = structlog.get_logger()


def global_mean(rows: Sequence[JoinedObservation]) -> float:
    """Mean of every present rating across the whole dataset.

    Absent ratings do not count toward the denominator. The mean is taken over
    all movies and all raters at once, never per group.

    Raises:
        ImputationError: If no row carries a rating.
    """
    present = [row.rating for row in rows if row.rating is not None]
    if not present:
        raise ImputationError(len(rows))
    return float(mean(present))


def impute(rows: Sequence[JoinedObservation]) -> list[JoinedObservation]:
    """Replace every absent rating with the global mean of present ratings.

    Present ratings pass through unchanged, so running this on fully
    populated rows is a no-op. Length and order are preserved.

    Args:
        rows: Joined observations, possibly with absent ratings.

    Returns:
        New observations with no absent ratings; filled rows have
        ``imputed=True``.

    Raises:
        ImputationError: If no row carries a rating.
    """
    fill_value = global_mean(rows)

    result = [
        row.model_copy(update={"rating": fill_value, "imputed": True})
        if row.rating is None
        else row
        for row in rows
    ]

    filled = sum(1 for row in rows if row.rating is None)
    logger.info("imputation_complete", rows=len(rows), filled=filled, fill_value=fill_value)
    return result
