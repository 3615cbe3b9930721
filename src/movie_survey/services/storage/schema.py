"""Create-if-absent schema handling for the movies and ratings tables."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import inspect
from sqlalchemy.types import TypeDecorator
from sqlmodel import SQLModel

from movie_survey.core.errors import SchemaError
from movie_survey.models import Movie, Rating

if TYPE_CHECKING:
    from sqlalchemy import Engine, Table
    from sqlalchemy.types import TypeEngine

logger = structlog.get_logger()

SURVEY_TABLES = (Movie.__table__, Rating.__table__)


def _python_type(column_type: TypeEngine) -> type | None:
    """Python type a column type maps to, or None when the dialect can't tell."""
    if isinstance(column_type, TypeDecorator):
        column_type = column_type.impl
    try:
        return column_type.python_type
    except NotImplementedError:
        return None


def check_table(table: Table, reflected: list[dict]) -> None:
    """Compare one expected table with its reflected columns.

    Raises:
        SchemaError: If a column is missing or has an incompatible type.
    """
    existing = {column["name"]: column for column in reflected}
    for column in table.columns:
        found = existing.get(column.name)
        if found is None:
            raise SchemaError(table.name, column.name, "is missing")

        expected_type = _python_type(column.type)
        actual_type = _python_type(found["type"])
        if actual_type is None or expected_type != actual_type:
            raise SchemaError(
                table.name,
                column.name,
                f"has type {found['type']}, expected {column.type}",
            )


def ensure_schema(engine: Engine) -> None:
    """Create the survey tables if absent and validate any that already exist.

    Existing tables are never altered.

    Raises:
        SchemaError: If an existing table conflicts with the expected columns.
    """
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())

    for table in SURVEY_TABLES:
        if table.name in existing_tables:
            check_table(table, inspector.get_columns(table.name))

    missing = [table for table in SURVEY_TABLES if table.name not in existing_tables]
    if missing:
        SQLModel.metadata.create_all(engine, tables=missing)
    logger.info(
        "schema_ready",
        created=[table.name for table in missing],
        existing=sorted(existing_tables & {table.name for table in SURVEY_TABLES}),
    )
