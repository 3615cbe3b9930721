"""Per-movie z-score standardization.

Rows are partitioned by exact title into a mapping of group statistics, then
each rating is standardized against its own group:

    zscore = (rating - mean) / stdev

where ``stdev`` is the sample standard deviation (N - 1 denominator).

A group is degenerate when it has fewer than two rows (stdev undefined) or
all its ratings are identical (stdev zero). Degenerate groups follow one
policy for the whole run:

- "raise": the run fails with StandardizationError.
- "nan": every z-score in that group is NaN; other groups are unaffected.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from statistics import mean, stdev

import structlog

from movie_survey.core.config import ZeroVariancePolicy
from movie_survey.core.errors import StandardizationError
from movie_survey.models import JoinedObservation

logger = structlog.get_logger()

MIN_GROUP_SIZE = 2


@dataclass(frozen=True)
class GroupStats:
    """Summary statistics for one title group.

    Attributes:
        key: Group key (movie title).
        count: Number of rows in the group.
        mean: Mean rating.
        stdev: Sample standard deviation, None when the group has one row.
        imputed: Number of rows whose rating was imputed.
    """

    key: str
    count: int
    mean: float
    stdev: float | None
    imputed: int = 0

    @property
    def is_degenerate(self) -> bool:
        return self.stdev is None or self.stdev == 0.0

    def zscore(self, rating: float) -> float:
        """Standardize a rating against this group."""
        if self.is_degenerate:
            return math.nan
        return (rating - self.mean) / self.stdev


def _require_ratings(rows: Sequence[JoinedObservation]) -> None:
    for position, row in enumerate(rows):
        if row.rating is None:
            raise StandardizationError(
                f"Row {position} ({row.title!r}, {row.person!r}) has no rating; impute first"
            )


def partition(rows: Sequence[JoinedObservation]) -> dict[str, list[JoinedObservation]]:
    """Group rows by exact title, keeping first-seen group order."""
    groups: dict[str, list[JoinedObservation]] = {}
    for row in rows:
        groups.setdefault(row.title, []).append(row)
    return groups


def group_statistics(rows: Sequence[JoinedObservation]) -> dict[str, GroupStats]:
    """Compute count, mean and sample stdev for every title group.

    Raises:
        StandardizationError: If any row has no rating.
    """
    _require_ratings(rows)

    stats = {}
    for key, members in partition(rows).items():
        ratings = [row.rating for row in members]
        stats[key] = GroupStats(
            key=key,
            count=len(ratings),
            mean=float(mean(ratings)),
            stdev=float(stdev(ratings)) if len(ratings) >= MIN_GROUP_SIZE else None,
            imputed=sum(1 for row in members if row.imputed),
        )
    return stats


def standardize(
    rows: Sequence[JoinedObservation],
    policy: ZeroVariancePolicy = "raise",
) -> list[JoinedObservation]:
    """Attach a per-title z-score to every row.

    Args:
        rows: Imputed observations (no absent ratings).
        policy: Degenerate-group policy, "raise" or "nan".

    Returns:
        New observations with ``zscore`` set, same length and order.

    Raises:
        StandardizationError: If a rating is absent, or a group is degenerate
            under the "raise" policy.
    """
    stats = group_statistics(rows)

    degenerate = [group for group in stats.values() if group.is_degenerate]
    if degenerate:
        if policy == "raise":
            first = degenerate[0]
            reason = (
                "Standard deviation is undefined for a single row"
                if first.stdev is None
                else "Standard deviation is zero"
            )
            raise StandardizationError(reason, group=first.key)
        logger.warning(
            "degenerate_groups_marked_nan",
            groups=[group.key for group in degenerate],
        )

    result = [
        row.model_copy(update={"zscore": stats[row.title].zscore(row.rating)}) for row in rows
    ]
    logger.info("standardization_complete", rows=len(result), groups=len(stats))
    return result
