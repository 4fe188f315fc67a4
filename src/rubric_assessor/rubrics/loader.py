"""Rubric template loader."""

import csv
import json
from pathlib import Path
from typing import Any

import yaml

from ..utils.logging import get_logger
from .defaults import load_default_workbook
from .models import RubricWorkbook, Sheet

logger = get_logger(__name__)


class RubricLoader:
    """Loads rubric template workbooks from JSON, YAML or CSV files."""

    def __init__(self, rubrics_dir: Path | None = None):
        """Initialize the rubric loader.

        Args:
            rubrics_dir: Directory that relative template paths are resolved against
        """
        self.rubrics_dir = rubrics_dir or Path("rubrics")

    def load(self, rubric_file: str | Path | None = None) -> RubricWorkbook:
        """Load a template workbook.

        Args:
            rubric_file: Path to a ``.json``, ``.yaml``/``.yml`` or ``.csv`` file.
                ``None`` returns the built-in templates.

        Returns:
            Parsed RubricWorkbook

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file type or its structure is not supported
        """
        if rubric_file is None:
            return load_default_workbook()

        path = self._resolve_path(rubric_file)
        if not path.exists():
            raise FileNotFoundError(f"Rubric file not found: {path}")

        logger.debug(f"Loading rubric templates from: {path}")
        suffix = path.suffix.lower()
        if suffix == ".csv":
            return self._load_csv(path)
        if suffix == ".json":
            return self._parse_workbook(json.loads(path.read_text(encoding="utf-8")), path)
        if suffix in {".yaml", ".yml"}:
            with open(path, encoding="utf-8") as f:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as exc:
                    raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
            return self._parse_workbook(data, path)
        raise ValueError(f"Unsupported rubric file type: {path.suffix}")

    def _resolve_path(self, file_path: str | Path) -> Path:
        """Resolve a rubric file path."""
        path = Path(file_path).expanduser()
        if not path.is_absolute() and not path.exists():
            path = self.rubrics_dir / path
        return path

    def _load_csv(self, path: Path) -> RubricWorkbook:
        """A CSV file holds exactly one sheet, named after the file."""
        with open(path, encoding="utf-8-sig", newline="") as f:
            rows = [list(row) for row in csv.reader(f)]
        return RubricWorkbook(file_name=path.name, sheets=[Sheet(name=path.stem, rows=rows)])

    def _parse_workbook(self, data: Any, path: Path) -> RubricWorkbook:
        """Accept a full workbook object, a single sheet object or a bare grid."""
        if isinstance(data, dict) and "sheets" in data:
            workbook = RubricWorkbook.from_dict(data)
            if not workbook.file_name:
                workbook.file_name = path.name
        elif isinstance(data, dict) and "rows" in data:
            sheet = Sheet.from_dict(data)
            if not sheet.name:
                sheet.name = path.stem
            workbook = RubricWorkbook(file_name=path.name, sheets=[sheet])
        elif isinstance(data, list):
            workbook = RubricWorkbook(
                file_name=path.name,
                sheets=[Sheet.from_dict({"name": path.stem, "rows": data})],
            )
        else:
            raise ValueError(
                f"Rubric file must hold a 'sheets' list, a sheet with 'rows' or a grid of rows: {path}"
            )

        if not workbook.sheets:
            raise ValueError(f"Rubric file has no sheets: {path}")
        return workbook
