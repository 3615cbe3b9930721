"""Tests for end-to-end pipeline runs."""

import json
import math
import tempfile

import pytest

from movie_survey.core.config import SurveyConfig
from movie_survey.core.errors import (
    ConfigurationError,
    ImputationError,
    StandardizationError,
)
from movie_survey.models import RatingInput, SurveyDataset
from movie_survey.pipeline import SurveyPipeline, run_pipeline
from movie_survey.services.storage import open_store


@pytest.fixture
def output_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


def _constant_movie_dataset() -> SurveyDataset:
    """One movie where three raters all gave 4, one with spread."""
    return SurveyDataset(
        movies=["Flat", "Varied"],
        ratings=[
            RatingInput(movie=1, person="Ana", rating=4),
            RatingInput(movie=1, person="Ben", rating=4),
            RatingInput(movie=1, person="Carla", rating=4),
            RatingInput(movie=2, person="Ana", rating=1),
            RatingInput(movie=2, person="Ben", rating=3),
            RatingInput(movie=2, person="Carla", rating=5),
        ],
    )


class TestReferenceRun:
    """Tests for the bundled reference survey."""

    def test_run(self, output_dir):
        """Test the full pipeline on the reference survey."""
        result = run_pipeline(SurveyConfig(output_dir=output_dir), run_id="test_run")

        assert len(result.observations) == 60
        assert result.imputed_count == 6
        assert result.fill_value == 176 / 54
        assert all(row.rating is not None for row in result.observations)
        assert all(row.zscore is not None for row in result.observations)
        assert result.ingestion is not None
        assert result.ingestion.ratings == 60
        assert len(result.summary) == 6

    def test_reports_written(self, output_dir):
        """Test CSV, JSON and Markdown reports land in the run directory."""
        result = run_pipeline(SurveyConfig(output_dir=output_dir), run_id="test_run")

        run_dir = result.output_dir
        assert (run_dir / "observations.csv").exists()
        assert (run_dir / "movie_summary.md").exists()
        records = json.loads((run_dir / "observations.json").read_text())
        assert len(records) == 60
        assert set(records[0]) == {"title", "person", "rating", "imputed", "zscore"}
        assert sorted(result.report_paths) == sorted(
            run_dir / name
            for name in (
                "observations.csv",
                "observations.json",
                "observations.md",
                "movie_summary.md",
            )
        )

    def test_reports_can_be_disabled(self, output_dir):
        """Test no report files are written when disabled."""
        config = SurveyConfig(output_dir=output_dir, report={"write_files": False})
        result = run_pipeline(config, run_id="test_run")

        assert result.report_paths == []
        assert not (result.output_dir / "observations.csv").exists()

    def test_rerun_skips_ingestion(self, output_dir):
        """Test a second run on the same store loads without re-inserting."""
        config = SurveyConfig(output_dir=output_dir)
        first = run_pipeline(config, run_id="test_run")
        second = run_pipeline(config, run_id="test_run")

        assert second.ingestion is None
        assert second.observations == first.observations


class TestSharedDatabase:
    """Tests for runs pointed at one database_url."""

    def _config(self, output_dir, **overrides) -> SurveyConfig:
        return SurveyConfig(
            output_dir=output_dir,
            database_url=f"sqlite:///{output_dir}/shared.sqlite",
            **overrides,
        )

    def test_same_dataset_reuses_store(self, output_dir):
        """Test a second run with the same dataset loads the stored rows."""
        first = run_pipeline(self._config(output_dir), run_id="a")
        second = run_pipeline(self._config(output_dir), run_id="b")

        assert second.ingestion is None
        assert second.observations == first.observations

    def test_different_dataset_fails(self, output_dir):
        """Test a different dataset is refused instead of reading old rows."""
        run_pipeline(self._config(output_dir), run_id="a")

        with pytest.raises(ConfigurationError, match="different survey") as exc_info:
            run_pipeline(
                self._config(output_dir, dataset=_constant_movie_dataset()), run_id="b"
            )
        assert "fresh run id" in str(exc_info.value)

    def test_same_movies_different_ratings_fails(self, output_dir):
        """Test a changed rating on an identical catalog is refused."""
        dataset = _constant_movie_dataset()
        changed = dataset.model_copy(deep=True)
        changed.ratings[4] = RatingInput(movie=2, person="Ben", rating=2)
        run_pipeline(
            self._config(output_dir, dataset=dataset, standardization={"zero_variance": "nan"}),
            run_id="a",
        )

        with pytest.raises(ConfigurationError, match="ratings differ"):
            run_pipeline(self._config(output_dir, dataset=changed), run_id="b")


class TestFailurePaths:
    """Tests for errors surfacing from pipeline stages."""

    def test_zero_variance_raises(self, output_dir):
        """Test identical ratings fail the run under the raise policy."""
        config = SurveyConfig(output_dir=output_dir, dataset=_constant_movie_dataset())
        with pytest.raises(StandardizationError, match="Flat"):
            run_pipeline(config, run_id="test_run")

    def test_zero_variance_nan(self, output_dir):
        """Test identical ratings become NaN z-scores under the nan policy."""
        config = SurveyConfig(
            output_dir=output_dir,
            dataset=_constant_movie_dataset(),
            standardization={"zero_variance": "nan"},
        )
        result = run_pipeline(config, run_id="test_run")

        flat = [row.zscore for row in result.observations if row.title == "Flat"]
        varied = [row.zscore for row in result.observations if row.title == "Varied"]
        assert all(math.isnan(z) for z in flat)
        assert varied == [-1.0, 0.0, 1.0]

    def test_all_absent_raises(self, output_dir):
        """Test a survey with no answers fails imputation."""
        dataset = SurveyDataset(
            movies=["Parasite"],
            ratings=[RatingInput(movie=1, person="Ana"), RatingInput(movie=1, person="Ben")],
        )
        config = SurveyConfig(output_dir=output_dir, dataset=dataset)
        with pytest.raises(ImputationError):
            run_pipeline(config, run_id="test_run")

    def test_store_released_after_failure(self, output_dir):
        """Test the store is closed when a later stage fails."""
        config = SurveyConfig(output_dir=output_dir, dataset=_constant_movie_dataset())
        with pytest.raises(StandardizationError), open_store(config, "test_run") as store:
            SurveyPipeline(config, store).run()

        with pytest.raises(RuntimeError, match="closed"):
            _ = store.engine
