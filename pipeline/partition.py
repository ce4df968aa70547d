"""Partitioned matching across concurrently running engines.

Profiles are grouped by category and one engine runs per pairing
(subject category -> candidate category), each on its own runner thread.
Candidate partitions are snapshotted into read-only Candidate tuples before
any engine starts, so no engine ever reads a sequence another one writes.
"""

import time
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.config_loader import MatchingConfig
from core.matcher.engine import MatchEngine
from core.matcher.exceptions import MatcherConfigurationError
from core.matcher.models import Candidate, EngineState, MatchFailure, Profile
from core.matcher.similarity import DistanceMetric
from pipeline.runner import EngineRunner

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.05


@dataclass
class EngineSummary:
    """Outcome of one engine in a partitioned run."""
    subject_category: str
    candidate_category: str
    subjects: int
    candidates: int
    cursor: int
    state: EngineState
    failures: List[MatchFailure] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.state is EngineState.COMPLETED


@dataclass
class PartitionedMatchResult:
    """Result of running partitioned matching."""
    success: bool
    summaries: List[EngineSummary] = field(default_factory=list)
    error: Optional[str] = None
    execution_time: float = 0.0

    @property
    def processed_count(self) -> int:
        return sum(s.cursor for s in self.summaries)


def partition_by_category(profiles: Iterable[Profile]) -> Dict[str, List[Profile]]:
    """Group profiles by category, keeping first-seen category order and profile order."""
    partitions: Dict[str, List[Profile]] = OrderedDict()
    for profile in profiles:
        partitions.setdefault(profile.category, []).append(profile)
    return partitions


def resolve_pairings(categories: List[str], pairings: Dict[str, str]) -> List[Tuple[str, str]]:
    """
    Decide which (subject category, candidate category) engines to run.

    Explicit pairings win. Without them, exactly two categories are paired
    with each other; any other count is a configuration problem.
    """
    if pairings:
        return list(pairings.items())

    if len(categories) == 2:
        first, second = categories
        return [(first, second), (second, first)]

    raise ValueError(
        f"Cannot infer pairings for {len(categories)} categories "
        f"({', '.join(map(str, categories))}); set matching.pairings"
    )


def run_partitioned_matching(
    profiles: List[Profile],
    config: MatchingConfig,
    stop_event: Optional[threading.Event] = None,
    progress_callback: Optional[Callable[[str, int, int], None]] = None,
    metric: Optional[DistanceMetric] = None
) -> PartitionedMatchResult:
    """Run one paced engine per pairing, all at once, and wait for them.

    Args:
        profiles: Subjects of every category; their ``matches`` are overwritten
        config: Matching configuration
        stop_event: Optional event; when set, every engine is cancelled
        progress_callback: Called as (subject_category, cursor, total) from
            the engine threads after each processed subject
        metric: Optional metric overriding ``config.matcher.metric``

    Returns:
        PartitionedMatchResult; success is True only if every engine completed
    """
    if stop_event is None:
        stop_event = threading.Event()

    run_start = time.time()

    if not config.enabled:
        logger.info("=== MATCHING: Skipped (disabled in config) ===")
        return PartitionedMatchResult(success=True, error="Matching disabled in config")

    if not profiles:
        logger.info("=== MATCHING: Nothing to match (no profiles) ===")
        return PartitionedMatchResult(success=True, execution_time=time.time() - run_start)

    partitions = partition_by_category(profiles)
    try:
        pairings = resolve_pairings(list(partitions.keys()), config.pairings)
    except ValueError as e:
        logger.error(str(e))
        return PartitionedMatchResult(success=False, error=str(e))

    snapshots: Dict[str, Tuple[Candidate, ...]] = {
        category: tuple(p.as_candidate() for p in group)
        for category, group in partitions.items()
    }

    runners: List[EngineRunner] = []
    pairs: List[Tuple[str, str]] = []
    for subject_category, candidate_category in pairings:
        subjects = partitions.get(subject_category)
        if subjects is None:
            logger.warning(f"No profiles in category '{subject_category}', skipping")
            continue
        choices = snapshots.get(candidate_category, ())
        if not choices:
            logger.warning(
                f"No candidates in category '{candidate_category}'; "
                f"'{subject_category}' profiles will get empty match lists"
            )

        def on_progress(cursor: int, category=subject_category, total=len(subjects)):
            if progress_callback:
                progress_callback(category, cursor, total)

        try:
            engine = MatchEngine(
                subjects,
                choices,
                config.matcher,
                metric=metric,
                on_progress=on_progress,
                name=str(subject_category)
            )
        except MatcherConfigurationError as e:
            # No runner thread has been started yet
            logger.error(f"Invalid matcher configuration: {e}")
            return PartitionedMatchResult(
                success=False,
                error=f"Invalid matcher configuration: {e}",
                execution_time=time.time() - run_start
            )
        runners.append(EngineRunner(engine))
        pairs.append((subject_category, candidate_category))

    logger.info(f"Starting {len(runners)} engines: {', '.join(f'{s}->{c}' for s, c in pairs)}")
    for runner in runners:
        runner.start_thread()
        runner.prepare()
        runner.start()

    last_log = time.time()
    while not all(r.done_event.is_set() for r in runners):
        if stop_event.wait(timeout=POLL_INTERVAL_SECONDS):
            logger.info("Stop requested, cancelling engines")
            for runner in runners:
                runner.cancel()
                runner.shutdown()
            for runner in runners:
                runner.wait()
            break
        if time.time() - last_log >= config.progress_log_interval_seconds:
            logger.info("Progress: " + ", ".join(
                f"{r.name} {r.engine.cursor}/{len(r.engine.subjects)}" for r in runners
            ))
            last_log = time.time()

    summaries = [
        EngineSummary(
            subject_category=subject_category,
            candidate_category=candidate_category,
            subjects=len(runner.engine.subjects),
            candidates=len(runner.engine.choices),
            cursor=runner.engine.cursor,
            state=runner.engine.state,
            failures=list(runner.engine.failures)
        )
        for runner, (subject_category, candidate_category) in zip(runners, pairs)
    ]

    errors = [f"{r.name}: {r.error}" for r in runners if r.error is not None]
    success = not errors and all(s.completed for s in summaries)
    if not success and not errors and stop_event.is_set():
        errors.append("Matching cancelled")

    execution_time = time.time() - run_start
    logger.info(
        f"Partitioned matching finished in {execution_time:.2f}s: "
        f"{sum(s.cursor for s in summaries)} subjects processed, success={success}"
    )
    return PartitionedMatchResult(
        success=success,
        summaries=summaries,
        error="; ".join(errors) or None,
        execution_time=execution_time
    )
