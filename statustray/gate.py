# SPDX-FileCopyrightText: 2024-present The Statustray Authors
#
# SPDX-License-Identifier: MIT

import logging
import threading
import time

from .errors import StartupTimeoutError

logger = logging.getLogger(__name__)


class ReadinessGate:
    """
    One-shot rendezvous between the watcher thread and the host.

    The watcher calls open() once it owns its bus name and has exported the
    registry object, or fail() if it could not get there. The host blocks in
    wait() until one of the two happens. There is no way back to "not ready".
    """

    def __init__(self, settle_delay: float = 0.0):
        """
        Args:
            settle_delay (float): Seconds the waiter sleeps after the gate opens,
                giving the bus daemon time to make the new name visible to
                other connections. Zero disables it.
        """
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._error: BaseException | None = None
        self._settle_delay = settle_delay

    def open(self):
        with self._lock:
            if self._event.is_set():
                raise RuntimeError("Readiness gate already released")
            self._event.set()
        logger.debug("Readiness gate opened.")

    def fail(self, error: BaseException):
        """Releases every waiter with an error instead of a ready signal."""
        with self._lock:
            if self._event.is_set():
                raise RuntimeError("Readiness gate already released")
            self._error = error
            self._event.set()
        logger.debug(f"Readiness gate failed: {error}")

    @property
    def is_open(self) -> bool:
        return self._event.is_set() and self._error is None

    def wait(self, timeout: float | None = None):
        """
        Blocks until the watcher is ready.

        Raises:
            StartupTimeoutError: if nothing happened within timeout seconds.
            Exception: whatever the watcher passed to fail().
        """
        if not self._event.wait(timeout):
            raise StartupTimeoutError(f"Watcher was not ready after {timeout} seconds")
        if self._error is not None:
            raise self._error
        if self._settle_delay > 0:
            time.sleep(self._settle_delay)
