from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

"""Cooperative sentinel-file locking for the shared cloud folder.

A lock on ``<target>`` is the file ``<target>.lock``:
- content: name of the user holding it (UTF-8)
- mtime:   acquisition time
- a sentinel older than STALE_AFTER_SECONDS is ignored (but not deleted)

All state lives in the filesystem; the coordinator keeps no lock table. The
protocol is advisory: a participant that ignores sentinels can still overwrite
the shared workbook.

Known limitation: acquire() checks and then writes. Two processes can both
observe "unlocked" and both write the sentinel; the later write wins the
content. Stale and own-user sentinels are overwritten in place.
"""

__all__ = [
    "LOCK_SUFFIX",
    "STALE_AFTER_SECONDS",
    "LockCoordinator",
    "sentinel_path",
]

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"
STALE_AFTER_SECONDS = 300


def sentinel_path(target: Path) -> Path:
    return target.with_name(target.name + LOCK_SUFFIX)


class LockCoordinator:
    def __init__(
        self,
        current_user: Callable[[], str],
        *,
        clock: Callable[[], float] = time.time,
        stale_after: float = STALE_AFTER_SECONDS,
    ) -> None:
        """
        Args:
            current_user: returns the name locks are taken under (read on every call,
                so a user change applies immediately)
            clock: wall clock in epoch seconds, compared against sentinel mtimes
            stale_after: sentinel age in seconds after which it is ignored
        """
        self._current_user = current_user
        self._clock = clock
        self.stale_after = stale_after

    @property
    def user(self) -> str:
        return self._current_user()

    def age(self, target: Path) -> float | None:
        """Seconds since the sentinel was written, None when there is none."""
        lock = sentinel_path(target)
        try:
            mtime = lock.stat().st_mtime
        except FileNotFoundError:
            return None
        return self._clock() - mtime

    def is_stale(self, target: Path) -> bool:
        age = self.age(target)
        return age is not None and age > self.stale_after

    def owner(self, target: Path) -> str | None:
        """Recorded owner of a live (non-stale) sentinel, None otherwise."""
        age = self.age(target)
        if age is None or age > self.stale_after:
            return None
        try:
            return sentinel_path(target).read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning(f"cannot read lock file {sentinel_path(target)}: {e}")
            return None

    def is_locked(self, target: Path) -> bool:
        """True when another user holds a non-stale lock on target."""
        lock = sentinel_path(target)
        if not lock.exists():
            return False
        if self.is_stale(target):
            logger.debug(f"stale lock ignored: {lock}")
            return False
        holder = self.owner(target)
        if holder is None:
            return False
        if holder != self.user:
            logger.info(f"file locked by: {holder}")
            return True
        return False

    def acquire(self, target: Path) -> bool:
        if self.is_locked(target):
            return False
        lock = sentinel_path(target)
        now = self._clock()
        try:
            lock.write_text(self.user, encoding="utf-8")
            os.utime(lock, (now, now))
        except OSError as e:
            logger.warning(f"failed to write lock file {lock}: {e}")
            try:
                lock.unlink(missing_ok=True)
            except OSError:
                logger.warning(f"failed to remove partial lock file {lock}")
            return False
        logger.debug(f"locked {target} as {self.user}")
        return True

    def release(self, target: Path) -> bool:
        """Delete the sentinel if present. Returns True when a sentinel was removed."""
        lock = sentinel_path(target)
        try:
            lock.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"failed to remove lock file {lock}: {e}")
            return False
        logger.debug(f"unlocked {target}")
        return True
