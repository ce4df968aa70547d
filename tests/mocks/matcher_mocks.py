#!/usr/bin/env python3
"""
Test Mock Implementations - deterministic metrics and data builders.

These helpers give the engine tests exact control over distances so
orderings and tie-breaks can be asserted precisely.
"""
from typing import Any, Dict, List, Optional, Sequence
import random

from core.matcher.models import Candidate, Profile


class TableMetric:
    """
    Metric that returns a fixed distance per candidate id.

    Values may be floats, NaN or exception instances; exceptions are raised
    when that candidate is scored. Every call is recorded.
    """

    def __init__(self, distances: Dict[str, Any], default: Optional[float] = None):
        self.distances = distances
        self.default = default
        self.calls: List[tuple] = []

    def __call__(self, subject: Any, candidate: Any) -> float:
        self.calls.append((subject.id, candidate.id))
        value = self.distances.get(candidate.id, self.default)
        if isinstance(value, BaseException):
            raise value
        return value


class CountingSubject:
    """Subject that counts writes to its match-list slot."""

    def __init__(self, id: str, attributes: Sequence[float] = ()):
        self.id = id
        self.attributes = list(attributes)
        self.writes = 0
        self._matches: List[Any] = []

    @property
    def matches(self) -> List[Any]:
        return self._matches

    @matches.setter
    def matches(self, value: List[Any]) -> None:
        self.writes += 1
        self._matches = value


def make_profiles(attributes: Sequence[Sequence[float]], prefix: str = "s",
                  category: Optional[str] = None) -> List[Profile]:
    """Build Profiles with ids ``{prefix}0``, ``{prefix}1``, ..."""
    return [
        Profile(id=f"{prefix}{i}", category=category, attributes=list(attrs))
        for i, attrs in enumerate(attributes)
    ]


def make_candidates(attributes: Sequence[Sequence[float]], prefix: str = "c",
                    category: Optional[str] = None) -> List[Candidate]:
    return [
        Candidate(id=f"{prefix}{i}", category=category, attributes=tuple(attrs))
        for i, attrs in enumerate(attributes)
    ]


def random_attributes(count: int, dims: int = 3, seed: int = 42, grid: int = 4) -> List[List[float]]:
    """
    Small-integer attribute vectors; the coarse grid produces plenty of
    equal distances so tie-breaking is exercised.
    """
    rng = random.Random(seed)
    return [[float(rng.randint(0, grid)) for _ in range(dims)] for _ in range(count)]


def expected_matches(subject: Any, choices: Sequence[Any], metric, k: int) -> List[Any]:
    """Reference top-K: stable sort by distance, then truncate."""
    ordered = sorted(enumerate(choices), key=lambda pair: (metric(subject, pair[1]), pair[0]))
    return [candidate for _, candidate in ordered[:k]]
