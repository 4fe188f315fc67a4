"""Assessment data models."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..rubrics.models import Rubric


def today_iso() -> str:
    return date.today().isoformat()


@dataclass
class AssessmentState:
    """The editable assessment of one student, before it is saved."""

    student_name: str = ""
    date: str = field(default_factory=today_iso)
    task: str = ""
    scores: dict[str, int] = field(default_factory=dict)
    feedback: str = ""
    strengths: str = ""
    improvements: str = ""
    student_reflection: str = ""


@dataclass
class SavedAssessment:
    """A stored assessment with its own copy of the rubric it was scored against.

    Serialised with camelCase keys (``studentName``, ``totalScore``, ...).
    """

    id: str
    timestamp: int
    student_name: str
    date: str
    task: str
    rubric: Rubric
    scores: dict[str, int]
    feedback: str
    strengths: str
    improvements: str
    total_score: int
    max_score: int
    average_score: str
    student_reflection: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedAssessment":
        reflection = data.get("studentReflection")
        return cls(
            id=str(data["id"]),
            timestamp=int(data.get("timestamp", 0)),
            student_name=data.get("studentName", ""),
            date=data.get("date", ""),
            task=data.get("task", ""),
            rubric=Rubric.from_dict(data.get("rubric") or {}),
            scores={str(k): int(v) for k, v in (data.get("scores") or {}).items()},
            feedback=data.get("feedback", ""),
            strengths=data.get("strengths", ""),
            improvements=data.get("improvements", ""),
            total_score=int(data.get("totalScore", 0)),
            max_score=int(data.get("maxScore", 0)),
            average_score=str(data.get("averageScore", "0.0")),
            student_reflection=reflection if reflection is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "studentName": self.student_name,
            "date": self.date,
            "task": self.task,
            "rubric": self.rubric.to_dict(),
            "scores": dict(self.scores),
            "feedback": self.feedback,
            "strengths": self.strengths,
            "improvements": self.improvements,
            "totalScore": self.total_score,
            "maxScore": self.max_score,
            "averageScore": self.average_score,
        }
        if self.student_reflection is not None:
            data["studentReflection"] = self.student_reflection
        return data

    def to_state(self) -> AssessmentState:
        """Working copy of this record's editable fields."""
        return AssessmentState(
            student_name=self.student_name,
            date=self.date,
            task=self.task,
            scores=dict(self.scores),
            feedback=self.feedback,
            strengths=self.strengths,
            improvements=self.improvements,
            student_reflection=self.student_reflection or "",
        )
