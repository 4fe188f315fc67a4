"""
Assessment module.

Working assessment state, saved records and the editing session.
"""

from .models import AssessmentState, SavedAssessment
from .session import AssessmentSession, FeedbackInProgressError, ValidationError

__all__ = [
    "AssessmentState",
    "SavedAssessment",
    "AssessmentSession",
    "FeedbackInProgressError",
    "ValidationError",
]
