"""Report export for pipeline results."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    import pandas as pd

logger = structlog.get_logger()


class ReportStore:
    """Write pipeline reports into the run directory."""

    def __init__(self, base_dir: Path) -> None:
        """Initialize report store.

        Args:
            base_dir: Run directory reports are written into.
        """
        self.base_dir = base_dir

    def save_report(self, filename: str, content: str) -> Path:
        """Save a generic report file (Markdown/Text)."""
        path = self.base_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.debug("saved_report", path=str(path))
        return path

    def export_observations(self, frame: pd.DataFrame, decimals: int = 3) -> tuple[Path, Path]:
        """Export the standardized observations to CSV and JSON.

        Returns:
            Paths of the CSV and JSON files.
        """
        csv_path = self.base_dir / "observations.csv"
        frame.to_csv(csv_path, index=False, float_format=f"%.{decimals}f")

        json_path = self.base_dir / "observations.json"
        frame.round(decimals).to_json(json_path, orient="records", indent=2)

        logger.debug("exported_observations", csv=str(csv_path), json=str(json_path))
        return csv_path, json_path
