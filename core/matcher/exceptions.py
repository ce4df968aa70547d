#!/usr/bin/env python3
"""
Matcher exceptions.
"""


class MatcherException(Exception):
    """Base exception for match engine errors."""
    pass


class MatcherConfigurationError(MatcherException, ValueError):
    """Raised when an engine cannot be built from its configuration."""
    pass


class InvalidTransitionError(MatcherException):
    """Describes a lifecycle request that is not valid in the current state.

    Never raised by the engine itself; the engine logs it, keeps its state,
    and exposes it as ``last_rejection``.
    """

    def __init__(self, operation: str, state):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation}() while engine is {state.value}")


class MetricError(MatcherException):
    """Raised when a distance metric fails or yields an unusable value."""
    pass
