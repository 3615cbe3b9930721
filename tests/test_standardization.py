"""Tests for per-movie z-score standardization."""

import math
from statistics import mean, stdev

import pytest

from movie_survey.core.errors import StandardizationError
from movie_survey.dataset import reference_dataset
from movie_survey.models import JoinedObservation
from movie_survey.services.imputation import impute
from movie_survey.services.standardization import (
    GroupStats,
    group_statistics,
    partition,
    standardize,
)


def _obs(title: str, person: str, rating: float | None) -> JoinedObservation:
    return JoinedObservation(title=title, person=person, rating=rating)


def _imputed_reference_rows() -> list[JoinedObservation]:
    dataset = reference_dataset()
    rows = [_obs(dataset.movies[r.movie - 1], r.person, r.rating) for r in dataset.ratings]
    return impute(rows)


class TestPartition:
    """Tests for grouping rows by title."""

    def test_groups_by_exact_title(self):
        """Test titles differing only in case form separate groups."""
        rows = [_obs("Cats", "p1", 1), _obs("cats", "p2", 2), _obs("Cats", "p3", 3)]
        groups = partition(rows)

        assert list(groups) == ["Cats", "cats"]
        assert [r.person for r in groups["Cats"]] == ["p1", "p3"]

    def test_first_seen_order(self):
        """Test groups keep the order their first row appeared in."""
        rows = [_obs("B", "p1", 1), _obs("A", "p1", 2), _obs("B", "p2", 3)]
        assert list(partition(rows)) == ["B", "A"]


class TestGroupStatistics:
    """Tests for per-group count, mean and sample stdev."""

    def test_sample_stdev(self):
        """Test the stdev uses the N - 1 denominator."""
        rows = [_obs("A", "p1", 1), _obs("A", "p2", 3), _obs("A", "p3", 5)]
        stats = group_statistics(rows)["A"]

        assert stats.count == 3
        assert stats.mean == 3.0
        assert stats.stdev == 2.0

    def test_single_row_has_no_stdev(self):
        """Test a one-row group is degenerate with stdev None."""
        stats = group_statistics([_obs("A", "p1", 4)])["A"]

        assert stats.stdev is None
        assert stats.is_degenerate

    def test_counts_imputed_rows(self):
        """Test imputed rows are counted per group."""
        rows = impute([_obs("A", "p1", 2), _obs("A", "p2", None), _obs("B", "p1", 4)])
        stats = group_statistics(rows)

        assert stats["A"].imputed == 1
        assert stats["B"].imputed == 0

    def test_absent_rating_rejected(self):
        """Test rows must be imputed before statistics are taken."""
        with pytest.raises(StandardizationError, match="impute first"):
            group_statistics([_obs("A", "p1", 3), _obs("A", "p2", None)])

    def test_zero_variance_zscore_is_nan(self):
        """Test a degenerate group yields NaN z-scores."""
        stats = GroupStats(key="A", count=2, mean=3.0, stdev=0.0)
        assert math.isnan(stats.zscore(3.0))


class TestStandardize:
    """Tests for attaching z-scores."""

    def test_known_zscores(self):
        """Test ratings 1, 3, 5 standardize to -1, 0, 1."""
        rows = [_obs("A", "p1", 1), _obs("A", "p2", 3), _obs("A", "p3", 5)]
        result = standardize(rows)

        assert [r.zscore for r in result] == [-1.0, 0.0, 1.0]

    def test_groups_are_independent(self):
        """Test each title is standardized against its own statistics."""
        rows = [
            _obs("A", "p1", 1),
            _obs("B", "p1", 4),
            _obs("A", "p2", 3),
            _obs("B", "p2", 5),
        ]
        result = standardize(rows)

        assert [r.title for r in result] == ["A", "B", "A", "B"]
        assert result[0].zscore == pytest.approx(-math.sqrt(0.5))
        assert result[1].zscore == pytest.approx(-math.sqrt(0.5))
        assert result[2].zscore == pytest.approx(math.sqrt(0.5))

    def test_ratings_unchanged(self):
        """Test standardization only adds z-scores."""
        rows = _imputed_reference_rows()
        result = standardize(rows)

        assert [r.rating for r in result] == [r.rating for r in rows]
        assert [r.imputed for r in result] == [r.imputed for r in rows]

    def test_reference_groups_centered(self):
        """Test every reference movie has z-score mean 0 and stdev 1."""
        result = standardize(_imputed_reference_rows())

        for title, members in partition(result).items():
            zscores = [r.zscore for r in members]
            assert mean(zscores) == pytest.approx(0.0, abs=1e-9), title
            assert stdev(zscores) == pytest.approx(1.0), title

    def test_empty_input(self):
        """Test no rows standardize to no rows."""
        assert standardize([]) == []


class TestDegeneratePolicy:
    """Tests for groups whose stdev is zero or undefined."""

    def test_zero_variance_raises(self):
        """Test identical ratings fail under the raise policy."""
        rows = [_obs("Flat", "p1", 4), _obs("Flat", "p2", 4)]
        with pytest.raises(StandardizationError, match="zero") as exc_info:
            standardize(rows, policy="raise")
        assert exc_info.value.group == "Flat"

    def test_single_row_raises(self):
        """Test a one-row group fails under the raise policy."""
        rows = [_obs("A", "p1", 1), _obs("A", "p2", 5), _obs("Solo", "p1", 3)]
        with pytest.raises(StandardizationError, match="single row") as exc_info:
            standardize(rows)
        assert exc_info.value.group == "Solo"

    def test_nan_policy_marks_only_degenerate_groups(self):
        """Test the nan policy leaves healthy groups untouched."""
        rows = [
            _obs("Flat", "p1", 4),
            _obs("Flat", "p2", 4),
            _obs("Solo", "p1", 2),
            _obs("A", "p1", 1),
            _obs("A", "p2", 5),
        ]
        result = standardize(rows, policy="nan")

        assert math.isnan(result[0].zscore)
        assert math.isnan(result[1].zscore)
        assert math.isnan(result[2].zscore)
        assert result[3].zscore == pytest.approx(-math.sqrt(0.5))
        assert result[4].zscore == pytest.approx(math.sqrt(0.5))
