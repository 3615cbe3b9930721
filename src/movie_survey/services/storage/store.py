"""Survey storage layer: engine lifecycle, repositories and run artifacts."""

from __future__ import annotations

import gc
import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog
import yaml
from sqlalchemy import Engine, event
from sqlalchemy.pool import NullPool
from sqlmodel import create_engine

from movie_survey import __version__
from movie_survey.core.config import SurveyConfig

from .join_loader import JoinLoader
from .movie_repository import MovieRepository
from .rating_repository import RatingRepository
from .report_store import ReportStore
from .schema import ensure_schema

logger = structlog.get_logger()


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    """SQLite only enforces foreign keys when asked to on each connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SurveyStore:
    """Persistence layer for one pipeline run.

    Handles:
    - The SQLModel engine for the movies and ratings tables
    - Repositories for inserts and the joined read
    - Run artifacts (config snapshot, metadata, reports)
    """

    def __init__(
        self,
        config: SurveyConfig,
        run_id: str | None = None,
    ) -> None:
        """Initialize survey store.

        Args:
            config: Survey configuration.
            run_id: Optional run identifier (defaults to timestamp).
        """
        self.config = config
        self.run_id = run_id or datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        self.base_dir = Path(config.output_dir) / self.run_id
        self.database_url = config.get_database_url(self.base_dir)
        self._engine = None
        self._init_directories()
        self._init_db()
        self._save_metadata()

        self.movies = MovieRepository(self._engine)
        self.ratings = RatingRepository(self._engine)
        self.loader = JoinLoader(self._engine)
        self.reports = ReportStore(self.base_dir)

    def _init_directories(self) -> None:
        """Create base output directory."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info("store_init", run_id=self.run_id, path=str(self.base_dir))

    def _init_db(self) -> None:
        """Create the engine; tables are created by ensure_schema."""
        # NullPool: no connection outlives the store
        self._engine = create_engine(self.database_url, poolclass=NullPool)
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)

    def _save_metadata(self) -> None:
        """Save config snapshot and run metadata."""
        config_path = self.base_dir / "config_snapshot.yaml"
        with config_path.open("w") as f:
            config_dict = self.config.model_dump(mode="json")
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

        metadata = {
            "run_id": self.run_id,
            "started_at": datetime.now(UTC).isoformat(),
            "movie_survey_version": __version__,
            "database_dialect": self._engine.dialect.name,
            "zero_variance_policy": self.config.standardization.zero_variance,
        }
        metadata_path = self.base_dir / "run_metadata.json"
        with metadata_path.open("w") as f:
            json.dump(metadata, f, indent=2)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            msg = "Store is closed"
            raise RuntimeError(msg)
        return self._engine

    def ensure_schema(self) -> None:
        """Create or validate the movies and ratings tables."""
        ensure_schema(self.engine)

    def is_populated(self) -> bool:
        """True when the catalog already holds movies."""
        return self.movies.count_movies() > 0

    # ==================== Lifecycle ====================

    def close(self) -> None:
        """Dispose of the database engine."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.debug("store_closed", run_id=self.run_id)

        gc.collect()


@contextmanager
def open_store(config: SurveyConfig, run_id: str | None = None) -> Iterator[SurveyStore]:
    """Acquire a store for the duration of a block, closing it on every exit path."""
    store = SurveyStore(config, run_id)
    try:
        yield store
    finally:
        store.close()
