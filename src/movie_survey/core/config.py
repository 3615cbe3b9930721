"""Configuration schemas and loading for the survey pipeline."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from movie_survey.core.errors import ConfigurationError
from movie_survey.dataset import reference_dataset
from movie_survey.models import SurveyDataset

DATABASE_URL_ENV = "MOVIE_SURVEY_DATABASE_URL"
DATABASE_FILENAME = "survey.sqlite"

ZeroVariancePolicy = Literal["raise", "nan"]


class StandardizationConfig(BaseModel):
    """Z-score configuration.

    Attributes:
        zero_variance: What to do with a title group whose sample standard
            deviation is zero or undefined (fewer than two rows):
            - "raise": fail the run with StandardizationError.
            - "nan": mark every z-score of that group as NaN.
    """

    zero_variance: ZeroVariancePolicy = "raise"


class ReportConfig(BaseModel):
    """Report export configuration."""

    write_files: bool = True
    decimals: int = Field(default=3, ge=0, le=10)


class SurveyConfig(BaseModel):
    """Complete pipeline configuration."""

    dataset: SurveyDataset = Field(default_factory=reference_dataset)
    standardization: StandardizationConfig = Field(default_factory=StandardizationConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    output_dir: str = "./runs"
    database_url: str | None = None

    @field_validator("dataset")
    @classmethod
    def validate_catalog(cls, v: SurveyDataset) -> SurveyDataset:
        """Ensure the catalog lists at least one movie."""
        if not v.movies:
            msg = "Dataset must list at least one movie"
            raise ValueError(msg)
        return v

    def get_database_url(self, run_dir: Path) -> str:
        """Get the database URL from config, environment, or the run directory."""
        url = self.database_url or os.environ.get(DATABASE_URL_ENV)
        if url:
            return url
        return f"sqlite:///{run_dir / DATABASE_FILENAME}"


def load_config(path: str | Path) -> SurveyConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated SurveyConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If the file is not a YAML mapping.
        pydantic.ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping at the top of {config_path}",
            "Start the file with keys such as output_dir or dataset.",
        )

    return SurveyConfig.model_validate(data)
