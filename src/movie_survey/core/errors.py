"""Custom exceptions for the survey pipeline."""

from __future__ import annotations

from typing import Any


class SurveyError(Exception):
    """Base exception for survey errors with optional suggestions."""

    category = "Survey Error"

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[{self.category}] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class ConfigurationError(SurveyError):
    """Error when the configuration cannot be used."""

    category = "Configuration Error"


class SchemaError(SurveyError):
    """Error when an existing table conflicts with the expected schema."""

    category = "Schema Error"

    def __init__(self, table: str, column: str, reason: str) -> None:
        self.table = table
        self.column = column
        super().__init__(
            f"Table '{table}' column '{column}' {reason}",
            "Point database_url at a fresh database; schemas are never migrated.",
        )


class ConstraintError(SurveyError):
    """Error when an ingested row violates a non-null or range constraint."""

    category = "Constraint Error"

    def __init__(self, reason: str, row: Any = None) -> None:
        self.row = row
        message = reason if row is None else f"{reason}: {row!r}"
        super().__init__(message)


class ReferentialError(SurveyError):
    """Error when a rating references a movie that does not exist."""

    category = "Referential Error"

    def __init__(self, reason: str, row: Any = None) -> None:
        self.row = row
        message = reason if row is None else f"{reason}: {row!r}"
        super().__init__(message, "Insert the movie catalog before its ratings.")


class ImputationError(SurveyError):
    """Error when no present rating exists to compute a mean from."""

    category = "Imputation Error"

    def __init__(self, total_rows: int) -> None:
        self.total_rows = total_rows
        super().__init__(
            f"Cannot compute a mean: none of {total_rows} rows carries a rating",
            "Ingest at least one present rating.",
        )


class StandardizationError(SurveyError):
    """Error when a group's standard deviation is zero or undefined."""

    category = "Standardization Error"

    def __init__(self, reason: str, group: str | None = None) -> None:
        self.group = group
        if group is None:
            super().__init__(reason)
            return
        super().__init__(
            f"{reason} (group '{group}')",
            "Set standardization.zero_variance to 'nan' to mark such groups instead.",
        )
