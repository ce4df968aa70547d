"""Paced engine runner.

Gives one MatchEngine its own thread. That thread is the tick source: it
calls ``step()`` once per ``1 / matches_per_second`` seconds while the engine
is running and applies queued commands only between ticks, so a subject is
never interrupted halfway through its match-list write.
"""

import time
import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional

from core.matcher.engine import MatchEngine
from core.matcher.models import EngineState
from pipeline.control import CommandChannel, EngineCommand

logger = logging.getLogger(__name__)


class EngineRunner:
    """
    Owns a MatchEngine and drives it from a dedicated daemon thread.

    All control methods are safe to call from any thread and return a
    Future that resolves to True if the engine accepted the transition.
    """

    def __init__(
        self,
        engine: MatchEngine,
        name: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.engine = engine
        self.name = name or engine.name
        self._clock = clock
        self._commands = CommandChannel()
        self._thread = threading.Thread(
            target=self._run,
            name=f"match-engine-{self.name}",
            daemon=True
        )
        self.done_event = threading.Event()
        self.error: Optional[BaseException] = None

    def start_thread(self) -> "EngineRunner":
        self._thread.start()
        return self

    def prepare(self) -> Future:
        return self._send(EngineCommand.PREPARE)

    def start(self) -> Future:
        return self._send(EngineCommand.START)

    def pause(self) -> Future:
        return self._send(EngineCommand.PAUSE)

    def cancel(self) -> Future:
        return self._send(EngineCommand.CANCEL)

    def shutdown(self) -> Future:
        """Stop the loop after pending commands, leaving the engine state as is."""
        return self._send(EngineCommand.SHUTDOWN)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop has exited. Returns False on timeout."""
        return self.done_event.wait(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _send(self, command: EngineCommand) -> Future:
        future = self._commands.send(command)
        if self.done_event.is_set():
            self._commands.drain()
        return future

    def _apply(self, command: EngineCommand) -> bool:
        if command is EngineCommand.PREPARE:
            return self.engine.prepare()
        if command is EngineCommand.START:
            return self.engine.start()
        if command is EngineCommand.PAUSE:
            return self.engine.pause()
        if command is EngineCommand.CANCEL:
            return self.engine.cancel()
        raise ValueError(f"Unsupported command: {command}")

    def _run(self) -> None:
        logger.info(f"[{self.name}] Runner started ({self.engine.matches_per_second}/s)")
        next_tick = None
        try:
            while True:
                timeout = None
                if self.engine.state is EngineState.RUNNING:
                    now = self._clock()
                    if next_tick is None:
                        next_tick = now + self.engine.interval
                    timeout = max(0.0, next_tick - now)
                else:
                    next_tick = None

                request = self._commands.receive(timeout)
                if request is not None:
                    if request.command is EngineCommand.SHUTDOWN:
                        request.result.set_result(True)
                        break
                    request.result.set_result(self._apply(request.command))
                else:
                    self.engine.step()
                    now = self._clock()
                    next_tick += self.engine.interval
                    if next_tick <= now:
                        # Fell behind; re-base rather than firing a burst of catch-up ticks
                        next_tick = now + self.engine.interval

                if self.engine.is_finished:
                    break
        except Exception as e:
            logger.exception(f"[{self.name}] Runner stopped by unexpected error")
            self.error = e
        finally:
            logger.info(
                f"[{self.name}] Runner stopped: state={self.engine.state.value}, "
                f"cursor={self.engine.cursor}/{len(self.engine.subjects)}"
            )
            # Set before draining so _send() can see that nobody will answer
            self.done_event.set()
            dropped = self._commands.drain()
            if dropped:
                logger.debug(f"[{self.name}] Dropped {dropped} pending commands")
