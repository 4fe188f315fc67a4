"""The assessment editing session.

Holds the rubric and working state a teacher is editing, and enforces the
rules around feedback requests and saving: feedback needs at least one
score, saving needs a student name, only one feedback request may be
pending, and every saved record gets its own copy of the rubric.
"""

from __future__ import annotations

import copy
import time
import uuid
from typing import TYPE_CHECKING, Callable

from ..grading.feedback import FeedbackGenerator, FeedbackRequest, GeneratedFeedback
from ..grading.scoring import ScoreSummary, aggregate
from ..rubrics.models import Criterion, Rubric, Sheet
from ..rubrics.parser import parse_rubric_sheet
from ..utils.logging import get_logger
from .models import AssessmentState, SavedAssessment

if TYPE_CHECKING:
    from ..storage.store import AssessmentStore

logger = get_logger(__name__)


class ValidationError(Exception):
    """A user action that cannot be carried out as requested."""


class FeedbackInProgressError(ValidationError):
    """A feedback request is already pending for this session."""


class AssessmentSession:
    """One teacher editing one assessment at a time."""

    def __init__(
        self,
        store: AssessmentStore,
        generator: FeedbackGenerator | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the session.

        Args:
            store: Where saved assessments go
            generator: Feedback generator (AI feedback is unavailable without one)
            clock: Source of the current time in seconds
        """
        self.store = store
        self.generator = generator
        self.clock = clock

        self.rubric = Rubric(title="", criteria=[])
        self.state = AssessmentState()
        self.current_id: str | None = None
        self.show_reflection = False
        self.generating = False

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_sheet(self, sheet: Sheet) -> Rubric:
        """Start a fresh assessment on a template sheet."""
        self.rubric = parse_rubric_sheet(sheet)
        self.state = AssessmentState()
        self.current_id = None
        self.show_reflection = False
        logger.debug(f"Loaded sheet '{sheet.name}' with {len(self.rubric.criteria)} criteria")
        return self.rubric

    def load_saved(self, record: SavedAssessment) -> None:
        """Reopen a saved assessment for editing; saving again updates it in place."""
        self.rubric = copy.deepcopy(record.rubric)
        self.state = record.to_state()
        self.current_id = record.id
        self.show_reflection = bool(record.student_reflection)

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def set_score(self, criterion_id: str, score: int) -> None:
        """Select the level of ``criterion_id`` that carries ``score``."""
        criterion = self.rubric.get_criterion(criterion_id)
        if criterion is None:
            raise ValidationError(f"Unknown criterion: {criterion_id}")
        if score not in criterion.scores:
            raise ValidationError(
                f"'{criterion.label}' has no level scored {score}; choose one of {criterion.scores}"
            )
        self.state.scores[criterion_id] = score

    def clear_score(self, criterion_id: str) -> None:
        self.state.scores.pop(criterion_id, None)

    def rename_rubric(self, title: str) -> None:
        self.rubric.title = title

    def update_criterion(self, criterion: Criterion) -> None:
        if not self.rubric.replace_criterion(criterion):
            raise ValidationError(f"Unknown criterion: {criterion.id}")

    def add_criterion(self, label: str = "New Criterion") -> Criterion:
        return self.rubric.add_criterion(label, now_ms=int(self.clock() * 1000))

    def delete_criterion(self, criterion_id: str) -> None:
        """Remove a criterion together with its selected score."""
        self.rubric.remove_criterion(criterion_id)
        self.state.scores.pop(criterion_id, None)

    def totals(self) -> ScoreSummary:
        return aggregate(self.rubric.criteria, self.state.scores)

    # -------------------------------------------------------------------------
    # Feedback
    # -------------------------------------------------------------------------

    def generate_feedback(self) -> GeneratedFeedback:
        """Ask the generator for narrative feedback and store it in the working state.

        The current feedback text is passed along as teacher notes. On any
        error the existing feedback, strengths and improvements are kept.

        Raises:
            FeedbackInProgressError: If a request is already pending
            ValidationError: If no score has been selected or no generator is set
            FeedbackError: If the generator fails
        """
        if self.generating:
            raise FeedbackInProgressError("Feedback is already being generated.")
        if not self.state.scores:
            raise ValidationError("Please select at least one score before generating feedback.")
        if self.generator is None:
            raise ValidationError("AI feedback is not configured.")

        request = FeedbackRequest(
            student_name=self.state.student_name,
            task=self.state.task,
            scores=dict(self.state.scores),
            criteria=copy.deepcopy(self.rubric.criteria),
            notes=self.state.feedback or None,
            reflection=self.state.student_reflection if self.show_reflection else None,
        )

        self.generating = True
        try:
            result = self.generator.generate(request)
        finally:
            self.generating = False

        self.state.feedback = result.feedback
        self.state.strengths = result.strengths
        self.state.improvements = result.improvements
        return result

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def build_record(self) -> SavedAssessment:
        """Snapshot the session into a record without storing it.

        Raises:
            ValidationError: If the student name is empty
        """
        if not self.state.student_name.strip():
            raise ValidationError("Please enter a student name to save.")

        summary = self.totals()
        return SavedAssessment(
            id=self.current_id or str(uuid.uuid4()),
            timestamp=int(self.clock() * 1000),
            student_name=self.state.student_name,
            date=self.state.date,
            task=self.state.task,
            rubric=copy.deepcopy(self.rubric),
            scores=dict(self.state.scores),
            feedback=self.state.feedback,
            strengths=self.state.strengths,
            improvements=self.state.improvements,
            total_score=summary.total,
            max_score=summary.max_score,
            average_score=summary.average,
            student_reflection=self.state.student_reflection if self.show_reflection else None,
        )

    def save(self) -> SavedAssessment:
        """Save the assessment, updating the earlier record if it was saved before."""
        record = self.build_record()
        self.store.save(record)
        self.current_id = record.id
        return record
