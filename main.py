import time
import logging
import signal
import sys
import json
import threading
import argparse
from typing import Dict, List, Optional

import yaml

from core.config_loader import load_config
from core.matcher.models import Profile
from core.matcher.similarity import get_metric
from pipeline.partition import run_partitioned_matching

logger = logging.getLogger(__name__)

# Set by SIGINT/SIGTERM; engines are cancelled at their next tick boundary
stop_event = threading.Event()


def signal_handler(sig, frame):
    logger.info("Shutdown signal received")
    stop_event.set()


def load_profiles(profiles_file_path: str) -> Optional[List[Profile]]:
    """Load profiles from a JSON list of {"id", "category", "attributes"} objects."""
    logger.info(f"Loading profiles from {profiles_file_path}")
    try:
        with open(profiles_file_path, 'r') as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.error(f"Profiles file not found: {profiles_file_path}")
        return None
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in profiles file: {e}")
        return None

    if not isinstance(raw, list):
        logger.error("Profiles file must contain a JSON list")
        return None

    profiles = []
    seen_ids = set()
    for i, item in enumerate(raw):
        try:
            profile = Profile(
                id=str(item['id']),
                category=item.get('category'),
                attributes=[float(a) for a in item.get('attributes', [])]
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid profile at index {i}: {e}")
            return None
        # The match report is keyed by id
        if profile.id in seen_ids:
            logger.error(f"Duplicate profile id '{profile.id}' at index {i}")
            return None
        seen_ids.add(profile.id)
        profiles.append(profile)

    logger.info(f"Loaded {len(profiles)} profiles")
    return profiles


def build_match_report(profiles: List[Profile], metric) -> Dict[str, List[dict]]:
    """Map each profile id to its ordered matches with their distances."""
    return {
        profile.id: [
            {"id": match.id, "distance": metric(profile, match)}
            for match in profile.matches
        ]
        for profile in profiles
    }


def save_match_report(report: Dict[str, List[dict]], output_path: str) -> None:
    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2)
    logger.info(f"Wrote matches for {len(report)} profiles to {output_path}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Paced nearest-candidate matcher")
    parser.add_argument('--config', default='config.yaml', help='Path to config YAML')
    parser.add_argument('--input', required=True, help='Profiles JSON file')
    parser.add_argument('--output', required=True, help='Where to write the match report')
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        metric = get_metric(config.matching.matcher.metric)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # Logging is not configured yet; the last-resort handler prints this to stderr
        logger.error(f"Failed to load configuration: {e}")
        return 1

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format
    )
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    profiles = load_profiles(args.input)
    if profiles is None:
        return 1

    logger.info("=" * 60)
    logger.info("STARTING MATCHING")
    logger.info("=" * 60)

    run_start = time.time()
    result = run_partitioned_matching(profiles, config.matching, stop_event=stop_event)

    for summary in result.summaries:
        logger.info(
            f"{summary.subject_category} -> {summary.candidate_category}: "
            f"{summary.cursor}/{summary.subjects} subjects, state={summary.state.value}, "
            f"{len(summary.failures)} skipped pairs"
        )

    if not result.success:
        logger.error(f"Matching did not complete: {result.error}")
        return 1

    report = build_match_report(profiles, metric)
    save_match_report(report, args.output)

    logger.info(f"=== Completed in {time.time() - run_start:.2f}s ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
