"""Rubric data models."""

import time
from dataclasses import dataclass, field
from typing import Any

# Levels given to a criterion added by hand. The aggregate maximum assumes
# every criterion tops out at 3.
DEFAULT_LEVELS = (
    (1, "Needs Work (1)"),
    (2, "Developing (2)"),
    (3, "Exceeds (3)"),
)


@dataclass
class Level:
    """A selectable performance level within a criterion."""

    score: int
    label: str
    description: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Level":
        return cls(
            score=int(data["score"]),
            label=str(data.get("label", "")),
            description=str(data.get("description", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "label": self.label, "description": self.description}


@dataclass
class Criterion:
    """A single graded dimension of a rubric."""

    id: str
    label: str
    levels: list[Level] = field(default_factory=list)

    def get_level_by_score(self, score: int) -> Level | None:
        """Return the first level carrying exactly ``score``, if any."""
        for level in self.levels:
            if level.score == score:
                return level
        return None

    @property
    def scores(self) -> list[int]:
        return [level.score for level in self.levels]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Criterion":
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", "")),
            levels=[Level.from_dict(level) for level in data.get("levels", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "levels": [level.to_dict() for level in self.levels],
        }


@dataclass
class Rubric:
    """A rubric: a title plus ordered criteria.

    Produced by the sheet parser, edited during an assessment session and
    snapshotted into every saved assessment.
    """

    title: str
    criteria: list[Criterion] = field(default_factory=list)

    def get_criterion(self, criterion_id: str) -> Criterion | None:
        for criterion in self.criteria:
            if criterion.id == criterion_id:
                return criterion
        return None

    def find_criterion(self, key: str) -> Criterion | None:
        """Look a criterion up by id, by label (case-insensitive) or by 1-based position.

        Args:
            key: Criterion id, label or position

        Returns:
            The matching criterion, or None
        """
        by_id = self.get_criterion(key)
        if by_id is not None:
            return by_id

        wanted = key.strip().casefold()
        for criterion in self.criteria:
            if criterion.label.strip().casefold() == wanted:
                return criterion

        if key.strip().isdigit():
            position = int(key)
            if 1 <= position <= len(self.criteria):
                return self.criteria[position - 1]
        return None

    def replace_criterion(self, updated: Criterion) -> bool:
        """Swap in ``updated`` for the criterion with the same id.

        Returns:
            True if a criterion was replaced
        """
        for index, criterion in enumerate(self.criteria):
            if criterion.id == updated.id:
                self.criteria[index] = updated
                return True
        return False

    def add_criterion(self, label: str = "New Criterion", now_ms: int | None = None) -> Criterion:
        """Append a hand-made criterion with the three default levels.

        Args:
            label: Criterion label
            now_ms: Epoch milliseconds used to build the id (defaults to now)

        Returns:
            The new criterion
        """
        if now_ms is None:
            now_ms = int(time.time() * 1000)

        base_id = f"custom_{now_ms}"
        new_id = base_id
        suffix = 1
        while self.get_criterion(new_id) is not None:
            new_id = f"{base_id}_{suffix}"
            suffix += 1

        criterion = Criterion(
            id=new_id,
            label=label,
            levels=[
                Level(score=score, label=level_label, description=f"Description for level {score}...")
                for score, level_label in DEFAULT_LEVELS
            ],
        )
        self.criteria.append(criterion)
        return criterion

    def remove_criterion(self, criterion_id: str) -> bool:
        """Drop a criterion by id. Returns True if one was removed."""
        remaining = [c for c in self.criteria if c.id != criterion_id]
        removed = len(remaining) != len(self.criteria)
        self.criteria = remaining
        return removed

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rubric":
        return cls(
            title=str(data.get("title", "")),
            criteria=[Criterion.from_dict(c) for c in data.get("criteria", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "criteria": [c.to_dict() for c in self.criteria]}


@dataclass
class Sheet:
    """One rubric template as a raw grid of text cells."""

    name: str
    rows: list[list[str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sheet":
        rows = [
            ["" if cell is None else str(cell) for cell in row]
            for row in data.get("rows", [])
        ]
        return cls(name=str(data.get("name", "")), rows=rows)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "rows": [list(row) for row in self.rows]}


@dataclass
class RubricWorkbook:
    """A template file: a set of named sheets."""

    file_name: str
    sheets: list[Sheet] = field(default_factory=list)

    def get_sheet(self, key: str) -> Sheet | None:
        """Find a sheet by name (case-insensitive) or by 1-based position."""
        wanted = key.strip().casefold()
        for sheet in self.sheets:
            if sheet.name.strip().casefold() == wanted:
                return sheet

        if key.strip().isdigit():
            position = int(key)
            if 1 <= position <= len(self.sheets):
                return self.sheets[position - 1]
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RubricWorkbook":
        return cls(
            file_name=str(data.get("file_name", "")),
            sheets=[Sheet.from_dict(s) for s in data.get("sheets", [])],
        )
