"""Single-flight guard for the job check cycle."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator


class GateState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class RunGate:
    """Admits one holder at a time; others are turned away, not queued.

    The timer and manual checks both go through the same gate, so a second
    trigger while a cycle is in flight is rejected instead of racing on the
    stored id sets.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = GateState.IDLE

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is GateState.RUNNING

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Yield True when this caller owns the gate, False when it is busy.

        The gate is released on exit even if the body raises.
        """
        if not self._lock.acquire(blocking=False):
            yield False
            return
        self._state = GateState.RUNNING
        try:
            yield True
        finally:
            self._state = GateState.IDLE
            self._lock.release()

    def run(self, cycle: Callable[[], None], on_busy: Callable[[], None] | None = None) -> bool:
        """Run ``cycle`` unless another one is in flight. Returns True if it ran."""
        with self.hold() as acquired:
            if not acquired:
                if on_busy is not None:
                    on_busy()
                return False
            cycle()
            return True
