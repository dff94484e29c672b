"""Fixed-rate background task used for cache refresh.

:class:`PollingTask` runs an action on a daemon thread every ``interval``
seconds, measured from the start of each run.  Runs never overlap: an
action that overruns its period delays the next run instead of stacking
a second one, and missed ticks are dropped rather than replayed.

The action receives the task's stop :class:`threading.Event` so that long
runs can bail out between units of work once :meth:`PollingTask.stop` is
called.  ``stop`` wakes the timer immediately and does not wait for the
in-flight run unless a join timeout is given.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

from weathersdk.output import get_output


class PollingTask:
    """A restartable, non-reentrant fixed-rate timer thread.

    Args:
        action: Called once per tick with the stop event.  Exceptions are
            reported and do not end the loop.
        interval: Seconds between run starts.
        name: Thread name, shown in diagnostics.
        initial_delay: Seconds before the first run.
    """

    def __init__(
        self,
        action: Callable[[threading.Event], Any],
        interval: float,
        name: str = "weathersdk-poll",
        initial_delay: float = 0.0,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._action = action
        self._interval = interval
        self._name = name
        self._initial_delay = initial_delay
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    def start(self) -> bool:
        """Start the timer thread.

        Returns:
            ``True`` if a thread was started, ``False`` if already running.
        """
        with self._lock:
            if self._stop_event is not None and not self._stop_event.is_set():
                return False
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run, args=(stop_event,), name=self._name, daemon=True
            )
            self._stop_event = stop_event
            self._thread = thread
        thread.start()
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel pending runs and signal the current one to stop.

        Args:
            timeout: When given, wait up to this many seconds for the
                thread to exit.  By default return immediately.
        """
        with self._lock:
            stop_event, thread = self._stop_event, self._thread
            if stop_event is None:
                return
            stop_event.set()
        if timeout is not None and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self, stop_event: threading.Event) -> None:
        next_run = time.monotonic() + self._initial_delay
        while not stop_event.wait(max(0.0, next_run - time.monotonic())):
            started = time.monotonic()
            try:
                self._action(stop_event)
            except Exception as exc:  # keep the timer alive
                get_output().error(f"{self._name}: polling run failed: {exc!r}")
            next_run = max(started + self._interval, time.monotonic())
