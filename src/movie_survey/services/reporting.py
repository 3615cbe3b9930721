"""Report generation for standardized survey results."""

from __future__ import annotations

import math
from collections.abc import Sequence

import pandas as pd
from tabulate import tabulate

from movie_survey.models import JoinedObservation
from movie_survey.services.standardization import GroupStats, group_statistics

OBSERVATION_COLUMNS = ["title", "person", "rating", "imputed", "zscore"]


def observations_to_frame(rows: Sequence[JoinedObservation]) -> pd.DataFrame:
    """Convert observations to a DataFrame, one row per observation.

    Absent ratings and z-scores become NaN in the frame.
    """
    records = [row.model_dump(include=set(OBSERVATION_COLUMNS)) for row in rows]
    return pd.DataFrame.from_records(records, columns=OBSERVATION_COLUMNS)


def build_movie_summary(rows: Sequence[JoinedObservation]) -> list[GroupStats]:
    """Per-title statistics sorted by mean rating descending."""
    stats = group_statistics(rows)
    return sorted(stats.values(), key=lambda group: (-group.mean, group.key))


def _fmt(value: float | None, decimals: int) -> str:
    if value is None or math.isnan(value):
        return "n/a"
    return f"{value:.{decimals}f}"


def render_movie_summary(
    summary: Sequence[GroupStats],
    fill_value: float,
    decimals: int = 3,
) -> str:
    """Render the per-movie summary as Markdown.

    Args:
        summary: Group statistics from build_movie_summary.
        fill_value: The global mean used for imputation.
        decimals: Decimal places for numeric columns.

    Returns:
        Markdown report content.
    """
    rows = [
        (
            group.key,
            group.count,
            group.imputed,
            _fmt(group.mean, decimals),
            _fmt(group.stdev, decimals),
        )
        for group in summary
    ]
    headers = ("Movie", "Ratings", "Imputed", "Mean", "Std Dev")
    lines = [
        "# Movie Summary",
        "",
        f"Absent ratings were imputed with the global mean {_fmt(fill_value, decimals)}.",
        "",
        tabulate(rows, headers=headers, tablefmt="github"),
    ]
    return "\n".join(lines)


def render_observation_table(rows: Sequence[JoinedObservation], decimals: int = 3) -> str:
    """Render observations as a Markdown table, imputed ratings marked with '*'."""
    table = [
        (
            row.title,
            row.person,
            _fmt(row.rating, decimals) + ("*" if row.imputed else ""),
            _fmt(row.zscore, decimals),
        )
        for row in rows
    ]
    return tabulate(table, headers=("Movie", "Person", "Rating", "Z-score"), tablefmt="github")
