#!/usr/bin/env python3
"""
Distance Metrics - pluggable (subject, candidate) -> distance functions.

Lower distance means a more compatible pair. Metrics must be pure and
deterministic so that repeated runs produce identical rankings.
"""
import logging
import math
from typing import Any, Callable, Dict

import numpy as np

from core.matcher.exceptions import MatcherConfigurationError, MetricError

logger = logging.getLogger(__name__)

DistanceMetric = Callable[[Any, Any], float]


def _as_vectors(subject: Any, candidate: Any):
    vec1 = np.asarray(subject.attributes, dtype=float)
    vec2 = np.asarray(candidate.attributes, dtype=float)
    if vec1.shape != vec2.shape:
        raise MetricError(
            f"Attribute shape mismatch: {vec1.shape} vs {vec2.shape}"
        )
    return vec1, vec2


def squared_euclidean_distance(subject: Any, candidate: Any) -> float:
    """Sum of squared attribute differences."""
    vec1, vec2 = _as_vectors(subject, candidate)
    diff = vec1 - vec2
    return float(np.dot(diff, diff))


def euclidean_distance(subject: Any, candidate: Any) -> float:
    return math.sqrt(squared_euclidean_distance(subject, candidate))


def cosine_distance(subject: Any, candidate: Any) -> float:
    """
    Cosine distance (1 - cosine similarity), in range [0.0, 2.0].

    A zero vector has no direction, so it is treated as orthogonal to
    everything (distance 1.0).
    """
    vec1, vec2 = _as_vectors(subject, candidate)
    norm1 = np.linalg.norm(vec1)
    norm2 = np.linalg.norm(vec2)

    if norm1 == 0 or norm2 == 0:
        return 1.0

    raw_cosine = float(np.dot(vec1, vec2) / (norm1 * norm2))
    return max(0.0, min(2.0, 1.0 - raw_cosine))


METRICS: Dict[str, DistanceMetric] = {
    "squared_euclidean": squared_euclidean_distance,
    "euclidean": euclidean_distance,
    "cosine": cosine_distance,
}


def get_metric(name: str) -> DistanceMetric:
    """
    Look up a distance metric by its configured name.

    Raises:
        MatcherConfigurationError: If no metric is registered under ``name``
    """
    try:
        return METRICS[name]
    except KeyError:
        raise MatcherConfigurationError(
            f"Unknown distance metric '{name}'. Available: {', '.join(sorted(METRICS))}"
        ) from None


class DistanceCalculator:
    """Wraps a metric and rejects values that cannot be ranked."""

    def __init__(self, metric: DistanceMetric):
        self.metric = metric

    def calculate(self, subject: Any, candidate: Any) -> float:
        """
        Compute a validated distance for one pair.

        Raises:
            MetricError: If the metric raises or returns NaN, infinity,
                a negative or a non-numeric value
        """
        try:
            value = self.metric(subject, candidate)
        except MetricError:
            raise
        except Exception as e:
            raise MetricError(f"Metric raised {e.__class__.__name__}: {e}") from e
        return self.validate(value)

    @staticmethod
    def validate(value: Any) -> float:
        if isinstance(value, bool):
            raise MetricError(f"Metric returned non-numeric value {value!r}")
        try:
            distance = float(value)
        except (TypeError, ValueError):
            raise MetricError(f"Metric returned non-numeric value {value!r}") from None

        if math.isnan(distance):
            raise MetricError("Metric returned NaN")
        if math.isinf(distance):
            raise MetricError("Metric returned an infinite distance")
        if distance < 0:
            raise MetricError(f"Metric returned negative distance {distance}")
        return distance
