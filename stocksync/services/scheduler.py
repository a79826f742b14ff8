from __future__ import annotations

import logging
import sched
import time
from collections.abc import Callable
from pathlib import Path

"""Deferred lock release.

After a successful push the cloud lock is kept for a short grace period before
it is released. Releases are queued on a ``sched.scheduler`` that is driven by
the caller (run_pending / drain); nothing runs on a background thread and
nothing fires implicitly when objects are garbage collected.

Each queued release captures the target path by value, so it stays correct even
if the cloud folder setting changes before it fires. Scheduling a new release
for a path cancels the pending one for that path.
"""

__all__ = [
    "RELEASE_GRACE_SECONDS",
    "ReleaseScheduler",
]

logger = logging.getLogger(__name__)

RELEASE_GRACE_SECONDS = 1.0


class ReleaseScheduler:
    def __init__(
        self,
        release: Callable[[Path], object],
        *,
        clock: Callable[[], float] = time.monotonic,
        grace: float = RELEASE_GRACE_SECONDS,
    ) -> None:
        self._release = release
        self._clock = clock
        self.grace = grace
        # delayfunc is only used by blocking runs, which this class never does
        self._scheduler = sched.scheduler(clock, lambda _delay: None)
        self._pending: dict[Path, sched.Event] = {}

    @property
    def pending(self) -> list[Path]:
        return list(self._pending)

    def schedule(self, target: Path, delay: float | None = None) -> None:
        self.cancel(target)
        wait = self.grace if delay is None else delay
        event = self._scheduler.enter(wait, 1, self._fire, (target,))
        self._pending[target] = event
        logger.debug(f"lock release for {target} scheduled in {wait}s")

    def cancel(self, target: Path) -> bool:
        event = self._pending.pop(target, None)
        if event is None:
            return False
        try:
            self._scheduler.cancel(event)
        except ValueError:
            # already fired
            return False
        return True

    def run_pending(self) -> int:
        """Fire every release whose delay has elapsed. Never blocks."""
        before = len(self._pending)
        self._scheduler.run(blocking=False)
        return before - len(self._pending)

    def drain(self) -> int:
        """Fire all pending releases now, regardless of their delay."""
        targets = list(self._pending)
        for target in targets:
            self.cancel(target)
            self._fire(target)
        return len(targets)

    def _fire(self, target: Path) -> None:
        self._pending.pop(target, None)
        self._release(target)
