import yaml
import os
from typing import Dict
from pydantic import BaseModel, ConfigDict, Field


class MatcherConfig(BaseModel):
    """
    Run configuration for a single MatchEngine.

    Immutable once built; the engine validates the values at construction.
    """
    model_config = ConfigDict(frozen=True)

    matches_per_second: float = 10.0  # Pacing: subjects processed per second
    match_amount: int = 5  # K: matches assigned to each subject
    metric: str = "squared_euclidean"  # Name in core.matcher.similarity.METRICS


class MatchingConfig(BaseModel):
    """
    Top-level matching configuration.
    """
    enabled: bool = True
    matcher: MatcherConfig = MatcherConfig()

    # Subject category -> candidate category. One engine runs per entry.
    # Empty means: when exactly two categories exist, pair each with the other.
    #   pairings:
    #     male: female
    #     female: male
    pairings: Dict[str, str] = Field(default_factory=dict)

    # Seconds between progress log lines while waiting for engines
    progress_log_interval_seconds: float = 5.0


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class AppConfig(BaseModel):
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from another directory), use the repo default
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    matcher_overrides = {
        "MATCHES_PER_SECOND": ("matches_per_second", float),
        "MATCH_AMOUNT": ("match_amount", int),
        "MATCH_METRIC": ("metric", str),
    }
    for env_name, (key, cast) in matcher_overrides.items():
        env_value = os.environ.get(env_name)
        if env_value:
            matching = data.get('matching') or {}
            matcher = matching.get('matcher') or {}
            matcher[key] = cast(env_value)
            matching['matcher'] = matcher
            data['matching'] = matching

    env_log_level = os.environ.get("LOG_LEVEL")
    if env_log_level:
        if not data.get('logging'):
            data['logging'] = {}
        data['logging']['level'] = env_log_level.upper()

    return AppConfig(**data)
