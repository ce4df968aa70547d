"""Pipeline execution modules: engine runners and partitioned matching."""

from .control import CommandChannel, EngineCommand
from .runner import EngineRunner
from .partition import run_partitioned_matching, PartitionedMatchResult, EngineSummary

__all__ = [
    'CommandChannel', 'EngineCommand', 'EngineRunner',
    'run_partitioned_matching', 'PartitionedMatchResult', 'EngineSummary'
]
