"""Matcher Module - paced top-K nearest-candidate matching."""
from core.matcher.models import (
    Candidate, Profile, RankedCandidate, MatchFailure, EngineState
)
from core.matcher.engine import MatchEngine
from core.matcher.exceptions import (
    MatcherException, MatcherConfigurationError, InvalidTransitionError, MetricError
)
from core.matcher.ranking import rank_candidates, select_closest
from core.matcher.similarity import (
    DistanceCalculator, get_metric, squared_euclidean_distance,
    euclidean_distance, cosine_distance
)

__all__ = [
    'MatchEngine', 'EngineState',
    'Candidate', 'Profile', 'RankedCandidate', 'MatchFailure',
    'MatcherException', 'MatcherConfigurationError', 'InvalidTransitionError', 'MetricError',
    'rank_candidates', 'select_closest',
    'DistanceCalculator', 'get_metric', 'squared_euclidean_distance',
    'euclidean_distance', 'cosine_distance'
]
