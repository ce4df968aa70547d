#!/usr/bin/env python3
"""
Candidate Ranking - builds a subject's RankedCandidates and selects the top K.

Ordering is ascending by distance; equal distances keep the order in which
candidates appear in the candidate sequence.
"""
import heapq
import logging
from typing import Any, Callable, List, Optional, Sequence

from core.matcher.exceptions import MetricError
from core.matcher.models import RankedCandidate
from core.matcher.similarity import DistanceCalculator

logger = logging.getLogger(__name__)


def rank_candidates(
    subject: Any,
    choices: Sequence[Any],
    calculator: DistanceCalculator,
    on_failure: Optional[Callable[[int, Any, MetricError], None]] = None
) -> List[RankedCandidate]:
    """
    Score every candidate against one subject.

    Candidates the metric cannot score are left out of the ranking and
    reported through ``on_failure(position, candidate, error)``.

    Args:
        subject: The subject being matched
        choices: Candidate sequence, read only
        calculator: Validating distance calculator
        on_failure: Optional callback for skipped pairs

    Returns:
        Scored entries in candidate-sequence order; select_closest()
        applies the (distance, position) ordering
    """
    ranked = []
    for position, candidate in enumerate(choices):
        try:
            distance = calculator.calculate(subject, candidate)
        except MetricError as e:
            if on_failure:
                on_failure(position, candidate, e)
            continue
        ranked.append(RankedCandidate(distance=distance, position=position, candidate=candidate))

    return ranked


def select_closest(ranked: Sequence[RankedCandidate], k: int) -> List[RankedCandidate]:
    """
    Return the ``k`` closest entries in ascending order.

    Fewer than ``k`` entries is not an error; the result is just shorter.
    """
    if k <= 0:
        return []
    return heapq.nsmallest(k, ranked, key=lambda r: r.sort_key)
