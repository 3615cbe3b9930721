"""Core configuration and errors for the survey pipeline."""

from movie_survey.core.config import (
    DATABASE_URL_ENV,
    ReportConfig,
    StandardizationConfig,
    SurveyConfig,
    ZeroVariancePolicy,
    load_config,
)
from movie_survey.core.errors import (
    ConfigurationError,
    ConstraintError,
    ImputationError,
    ReferentialError,
    SchemaError,
    StandardizationError,
    SurveyError,
)

__all__ = [
    "DATABASE_URL_ENV",
    "ReportConfig",
    "StandardizationConfig",
    "SurveyConfig",
    "ZeroVariancePolicy",
    "load_config",
    "ConfigurationError",
    "ConstraintError",
    "ImputationError",
    "ReferentialError",
    "SchemaError",
    "StandardizationError",
    "SurveyError",
]
