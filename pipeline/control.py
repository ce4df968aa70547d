"""Command channel between external controllers and an engine's own thread.

Controllers never touch a MatchEngine directly. They post commands here and
the thread that owns the engine applies them between ticks.
"""

import queue
import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class EngineCommand(str, Enum):
    PREPARE = "prepare"
    START = "start"
    PAUSE = "pause"
    CANCEL = "cancel"
    SHUTDOWN = "shutdown"  # stop the owning loop without touching engine state


@dataclass
class CommandRequest:
    """A command plus the future that receives the engine's answer."""
    command: EngineCommand
    result: Future = field(default_factory=Future)


class CommandChannel:
    """
    FIFO of CommandRequests consumed by exactly one engine loop.

    ``send`` is safe to call from any thread. The returned future resolves to
    True when the transition was applied and False when the engine rejected it.
    """

    def __init__(self):
        self._queue: "queue.Queue[CommandRequest]" = queue.Queue()

    def send(self, command: EngineCommand) -> Future:
        request = CommandRequest(command=EngineCommand(command))
        self._queue.put(request)
        logger.debug(f"Queued command: {request.command.value}")
        return request.result

    def receive(self, timeout: Optional[float] = None) -> Optional[CommandRequest]:
        """
        Wait for the next command.

        Args:
            timeout: Seconds to wait; None blocks until a command arrives

        Returns:
            The next CommandRequest, or None if the timeout expired
        """
        if timeout is not None and timeout <= 0:
            try:
                return self._queue.get_nowait()
            except queue.Empty:
                return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> int:
        """Reject every pending command. Returns how many were dropped."""
        dropped = 0
        while True:
            try:
                request = self._queue.get_nowait()
            except queue.Empty:
                return dropped
            if not request.result.done():
                request.result.set_result(False)
            dropped += 1

    def __len__(self) -> int:
        return self._queue.qsize()
