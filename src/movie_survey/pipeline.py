"""Pipeline orchestration for the movie survey."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from movie_survey.core.config import SurveyConfig
from movie_survey.models import JoinedObservation
from movie_survey.services.imputation import global_mean, impute
from movie_survey.services.ingestion import IngestionService, IngestionSummary
from movie_survey.services.reporting import (
    build_movie_summary,
    observations_to_frame,
    render_movie_summary,
    render_observation_table,
)
from movie_survey.services.standardization import GroupStats, standardize
from movie_survey.services.storage import SurveyStore, open_store

logger = structlog.get_logger()


@dataclass
class PipelineResult:
    """Everything a pipeline run produced.

    Attributes:
        observations: Imputed and standardized rows in load order.
        summary: Per-movie statistics, best mean first.
        fill_value: Global mean used for every absent rating.
        ingestion: Ingestion counts, None when the store already held the dataset.
        output_dir: Run directory holding the reports.
        report_paths: Files written by the report stage.
    """

    observations: list[JoinedObservation]
    summary: list[GroupStats]
    fill_value: float
    ingestion: IngestionSummary | None
    output_dir: Path
    report_paths: list[Path] = field(default_factory=list)

    @property
    def imputed_count(self) -> int:
        return sum(1 for row in self.observations if row.imputed)


class SurveyPipeline:
    """Runs schema, ingestion, join, imputation, standardization and reporting in order."""

    def __init__(self, config: SurveyConfig, store: SurveyStore) -> None:
        """Initialize the pipeline.

        Args:
            config: Survey configuration.
            store: Open store for the run.
        """
        self.config = config
        self.store = store
        self.ingestion_service = IngestionService(store.movies, store.ratings)

    def run(self) -> PipelineResult:
        """Execute the complete pipeline."""
        logger.info(
            "pipeline_start",
            movies=len(self.config.dataset.movies),
            ratings=len(self.config.dataset.ratings),
        )

        logger.info("stage_schema")
        self.store.ensure_schema()

        logger.info("stage_ingestion")
        ingestion = self._ingest()

        logger.info("stage_join")
        rows = self.store.loader.load_joined()

        logger.info("stage_imputation")
        fill_value = global_mean(rows)
        imputed = impute(rows)

        logger.info("stage_standardization")
        standardized = standardize(imputed, self.config.standardization.zero_variance)

        result = PipelineResult(
            observations=standardized,
            summary=build_movie_summary(standardized),
            fill_value=fill_value,
            ingestion=ingestion,
            output_dir=self.store.base_dir,
        )

        if self.config.report.write_files:
            logger.info("stage_report")
            result.report_paths = self._save_reports(result)

        logger.info("pipeline_complete", rows=len(standardized), imputed=result.imputed_count)
        return result

    def _ingest(self) -> IngestionSummary | None:
        """Insert the configured dataset unless the store already holds exactly it.

        Raises:
            ConfigurationError: If the store holds a different survey.
        """
        if self.store.is_populated():
            self.ingestion_service.check_stored(self.config.dataset)
            logger.info("ingestion_skipped", reason="store_matches_dataset")
            return None
        return self.ingestion_service.ingest(self.config.dataset)

    def _save_reports(self, result: PipelineResult) -> list[Path]:
        decimals = self.config.report.decimals
        frame = observations_to_frame(result.observations)
        csv_path, json_path = self.store.reports.export_observations(frame, decimals)
        summary_path = self.store.reports.save_report(
            "movie_summary.md",
            render_movie_summary(result.summary, result.fill_value, decimals),
        )
        table_path = self.store.reports.save_report(
            "observations.md",
            "# Observations\n\n" + render_observation_table(result.observations, decimals),
        )
        return [csv_path, json_path, summary_path, table_path]


def run_pipeline(config: SurveyConfig, run_id: str | None = None) -> PipelineResult:
    """Convenience function to run the whole pipeline for one run directory.

    The store is acquired before the first stage and released on every exit
    path, including failures in later stages.

    Args:
        config: Survey configuration.
        run_id: Optional run ID (defaults to a timestamp).

    Returns:
        PipelineResult with the standardized observations.
    """
    with open_store(config, run_id) as store:
        return SurveyPipeline(config, store).run()
