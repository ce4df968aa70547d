#!/usr/bin/env python3
"""
Match Engine - paced nearest-candidate matching.

Walks a subject sequence one subject per tick. For each subject every
candidate is scored with the distance metric and the ``match_amount``
closest candidates are written into the subject's ``matches`` slot.

The engine is a plain state machine and is not thread-safe: exactly one
owner (see pipeline.runner.EngineRunner) calls its methods. Several
engines may run at once on disjoint data without any coordination.

Lifecycle:
    CREATED -> PREPARED -> RUNNING <-> PAUSED -> COMPLETED
    RUNNING | PAUSED -> CANCELLED
"""
import logging
from typing import Any, Callable, List, MutableSequence, Optional, Sequence

from core.config_loader import MatcherConfig
from core.matcher.exceptions import (
    InvalidTransitionError, MatcherConfigurationError, MetricError
)
from core.matcher.models import EngineState, MatchFailure
from core.matcher.ranking import rank_candidates, select_closest
from core.matcher.similarity import DistanceCalculator, DistanceMetric, get_metric

logger = logging.getLogger(__name__)


class MatchEngine:
    """
    Incremental, pausable top-K matcher over one subject/candidate pair of sequences.

    Neither sequence is copied. ``subjects`` must only be written by this
    engine while a run is active, and ``choices`` must not change at all.
    """

    def __init__(
        self,
        subjects: MutableSequence[Any],
        choices: Sequence[Any],
        config: MatcherConfig,
        metric: Optional[DistanceMetric] = None,
        on_progress: Optional[Callable[[int], None]] = None,
        on_done: Optional[Callable[[], None]] = None,
        on_failure: Optional[Callable[[MatchFailure], None]] = None,
        name: Optional[str] = None
    ):
        """
        Initialize the engine.

        Args:
            subjects: Mutable subject sequence; each item gets a ``matches`` list
            choices: Read-only candidate sequence
            config: MatcherConfig with pacing and K
            metric: Distance function; defaults to ``config.metric`` from the registry
            on_progress: Called with the cursor after every processed subject
            on_done: Called once when the last subject has been processed
            on_failure: Called for every pair the metric could not score
            name: Label used in log lines

        Raises:
            MatcherConfigurationError: If matches_per_second <= 0,
                match_amount < 0 or the metric name is unknown
        """
        if config.matches_per_second <= 0:
            raise MatcherConfigurationError(
                f"matches_per_second must be > 0, got {config.matches_per_second}"
            )
        if config.match_amount < 0:
            raise MatcherConfigurationError(
                f"match_amount must be >= 0, got {config.match_amount}"
            )

        self.subjects = subjects
        self.choices = choices
        self.config = config
        self.calculator = DistanceCalculator(metric or get_metric(config.metric))
        self.on_progress = on_progress
        self.on_done = on_done
        self.on_failure = on_failure
        self.name = name or "engine"

        self.state = EngineState.CREATED
        self.cursor = 0
        self.failures: List[MatchFailure] = []
        self.last_rejection: Optional[InvalidTransitionError] = None

    @property
    def matches_per_second(self) -> float:
        return self.config.matches_per_second

    @property
    def match_amount(self) -> int:
        return self.config.match_amount

    @property
    def interval(self) -> float:
        """Seconds between ticks."""
        return 1.0 / self.config.matches_per_second

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    @property
    def remaining(self) -> int:
        return len(self.subjects) - self.cursor

    def prepare(self) -> bool:
        """CREATED -> PREPARED. Resets the cursor."""
        if self.state is not EngineState.CREATED:
            return self._reject("prepare")
        self.cursor = 0
        self.failures = []
        self._transition(EngineState.PREPARED)
        return True

    def start(self) -> bool:
        """PREPARED | PAUSED -> RUNNING. Starts or resumes ticking."""
        if self.state not in (EngineState.PREPARED, EngineState.PAUSED):
            return self._reject("start")
        self._transition(EngineState.RUNNING)
        return True

    def pause(self) -> bool:
        """RUNNING -> PAUSED. The cursor is kept."""
        if self.state is not EngineState.RUNNING:
            return self._reject("pause")
        self._transition(EngineState.PAUSED)
        return True

    def cancel(self) -> bool:
        """RUNNING | PAUSED -> CANCELLED. Permanent; the cursor is kept for inspection."""
        if self.state not in (EngineState.RUNNING, EngineState.PAUSED):
            return self._reject("cancel")
        self._transition(EngineState.CANCELLED)
        return True

    def step(self) -> bool:
        """
        Run one tick.

        Processes the subject at the cursor, advances the cursor and reports
        progress. The run completes on the tick that processes the last
        subject, or on the first tick when there are no subjects.

        Returns:
            True if the tick ran, False if the engine is not running
        """
        if self.state is not EngineState.RUNNING:
            return self._reject("step")

        if self.cursor < len(self.subjects):
            self._match_subject(self.cursor)
            self.cursor += 1
            logger.debug(f"[{self.name}] Processed subject {self.cursor}/{len(self.subjects)}")
            if self.on_progress:
                self.on_progress(self.cursor)

        # A callback may have paused or cancelled the engine
        if self.state is EngineState.RUNNING and self.cursor >= len(self.subjects):
            self._complete()
        return True

    def run_to_completion(self) -> None:
        """Process all remaining subjects without pacing."""
        while self.state is EngineState.RUNNING:
            self.step()

    def _match_subject(self, index: int) -> None:
        subject = self.subjects[index]

        def record_failure(position: int, candidate: Any, error: MetricError) -> None:
            failure = MatchFailure(
                subject_index=index,
                subject_id=getattr(subject, 'id', None),
                candidate_position=position,
                candidate_id=getattr(candidate, 'id', None),
                reason=str(error)
            )
            logger.warning(
                f"[{self.name}] Skipping candidate {failure.candidate_id} for "
                f"subject {failure.subject_id}: {failure.reason}"
            )
            self.failures.append(failure)
            if self.on_failure:
                self.on_failure(failure)

        ranked = rank_candidates(subject, self.choices, self.calculator, on_failure=record_failure)
        closest = select_closest(ranked, self.config.match_amount)
        subject.matches = [entry.candidate for entry in closest]

    def _complete(self) -> None:
        self._transition(EngineState.COMPLETED)
        logger.info(
            f"[{self.name}] Matching complete: {self.cursor} subjects, "
            f"{len(self.failures)} skipped pairs"
        )
        if self.on_done:
            self.on_done()

    def _transition(self, new_state: EngineState) -> None:
        logger.info(f"[{self.name}] {self.state.value} -> {new_state.value} (cursor={self.cursor})")
        self.state = new_state

    def _reject(self, operation: str) -> bool:
        self.last_rejection = InvalidTransitionError(operation, self.state)
        logger.warning(f"[{self.name}] {self.last_rejection}")
        return False
