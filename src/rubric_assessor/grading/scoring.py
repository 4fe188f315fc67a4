"""Score aggregation for an assessment."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

from ..rubrics.models import Criterion

# Every criterion is assumed to top out at this score.
MAX_SCORE_PER_CRITERION = 3


@dataclass(frozen=True)
class ScoreSummary:
    """Aggregate scores for one assessment."""

    total: int
    max_score: int
    average: str


def format_average(total: int, count: int) -> str:
    """Mean of ``count`` scores to one decimal place, rounding halves up.

    The float quotient is rounded at its exact binary value, so 23/20
    (stored just below 1.15) gives "1.1" while 9/4 gives "2.3".
    """
    if count <= 0:
        return "0.0"
    mean = Decimal(total / count)
    return str(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def aggregate(criteria: Sequence[Criterion], scores: Mapping[str, int]) -> ScoreSummary:
    """Compute total, maximum and average for the selected scores.

    Only criteria present in ``criteria`` count, so scores left over from a
    deleted criterion are ignored. Missing, zero and negative scores add
    nothing and are left out of the average.

    Args:
        criteria: Criteria currently in the rubric
        scores: Mapping of criterion id to selected score

    Returns:
        ScoreSummary with ``average`` formatted as text
    """
    selected = [scores.get(criterion.id) or 0 for criterion in criteria]
    positive = [score for score in selected if score > 0]

    total = sum(positive)
    return ScoreSummary(
        total=total,
        max_score=MAX_SCORE_PER_CRITERION * len(criteria),
        average=format_average(total, len(positive)),
    )
