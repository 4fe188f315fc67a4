"""
Grading module.

Score aggregation and AI-assisted narrative feedback.
"""

from .feedback import (
    FeedbackError,
    FeedbackGenerationError,
    FeedbackGenerator,
    FeedbackRequest,
    GeneratedFeedback,
    MissingAPIKeyError,
)
from .scoring import ScoreSummary, aggregate

__all__ = [
    "FeedbackError",
    "FeedbackGenerationError",
    "FeedbackGenerator",
    "FeedbackRequest",
    "GeneratedFeedback",
    "MissingAPIKeyError",
    "ScoreSummary",
    "aggregate",
]
