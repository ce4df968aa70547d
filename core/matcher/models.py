#!/usr/bin/env python3
"""
Matcher Models - Data structures for matching.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class EngineState(str, Enum):
    """Lifecycle states of a MatchEngine."""
    CREATED = "created"
    PREPARED = "prepared"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (EngineState.COMPLETED, EngineState.CANCELLED)


@dataclass(frozen=True)
class Candidate:
    """Read-only record eligible to be matched to a subject."""
    id: str
    category: Optional[str] = None
    attributes: Tuple[float, ...] = ()


@dataclass
class Profile:
    """Subject record. ``matches`` is written by the engine that owns it."""
    id: str
    category: Optional[str] = None
    attributes: List[float] = field(default_factory=list)
    matches: List[Candidate] = field(default_factory=list)

    def as_candidate(self) -> Candidate:
        """Snapshot this profile into an immutable candidate record."""
        return Candidate(
            id=self.id,
            category=self.category,
            attributes=tuple(float(a) for a in self.attributes)
        )


@dataclass(frozen=True)
class RankedCandidate:
    """One entry of a subject's ranking.

    ``position`` is the candidate's index in the candidate sequence and
    breaks ties between equal distances.
    """
    distance: float
    position: int
    candidate: Candidate

    @property
    def sort_key(self) -> Tuple[float, int]:
        return (self.distance, self.position)


@dataclass(frozen=True)
class MatchFailure:
    """A subject/candidate pair the metric could not score."""
    subject_index: int
    subject_id: Optional[str]
    candidate_position: int
    candidate_id: Optional[str]
    reason: str
