"""Cache-aside weather retrieval and background refresh.

:class:`WeatherService` ties one :class:`~weathersdk.cache.WeatherCache` to
one :class:`~weathersdk.client.OpenWeatherAdapter`:

- **Request path** -- :meth:`WeatherService.get_current_weather` validates
  input, normalizes the location, serves fresh cache hits, and on a miss
  fetches, maps, stores and returns a
  :class:`~weathersdk.models.WeatherRecord`.
- **Refresh path** -- :meth:`WeatherService.refresh_all` re-fetches every
  cached key with the stored credential.  In ``POLLING`` mode a
  :class:`~weathersdk.scheduler.PollingTask` calls it at a fixed rate.
  Failures are isolated per key: a failing key keeps its previous entry
  and the loop moves on.

No lock is held across a network call; the cache serializes its own
operations.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Optional

from weathersdk.cache import WeatherCache, normalize_key
from weathersdk.client import OpenWeatherAdapter
from weathersdk.exceptions import InvalidParameterError
from weathersdk.models import Failure, Mode, WeatherRecord
from weathersdk.output import get_output
from weathersdk.scheduler import PollingTask


@dataclass
class RefreshResult:
    """Result of one refresh cycle."""

    total: int
    success: int
    failed: int
    skipped: int
    duration_ms: int

    @property
    def success_rate(self) -> float:
        """Percentage of successful refreshes."""
        if self.total == 0:
            return 0.0
        return (self.success / self.total) * 100

    def __str__(self) -> str:
        return (
            f"Refresh complete: {self.success}/{self.total} successful, "
            f"{self.failed} failed, {self.skipped} skipped "
            f"({self.duration_ms}ms)"
        )


class WeatherService:
    """Cache-aside orchestrator owning the background refresh loop.

    Args:
        adapter: Upstream adapter used on misses and refreshes.
        cache: The client's private cache.
        mode: ``POLLING`` starts the refresh loop in :meth:`init`.
        poll_interval_seconds: Period of the refresh loop.
    """

    def __init__(
        self,
        adapter: OpenWeatherAdapter,
        cache: WeatherCache,
        mode: Mode = Mode.ON_DEMAND,
        poll_interval_seconds: float = 60.0,
    ) -> None:
        self._adapter = adapter
        self._cache = cache
        self._mode = mode
        self._poll_interval = poll_interval_seconds
        self._credential: Optional[str] = None
        self._task: Optional[PollingTask] = None
        self._closed = False
        self._task_lock = threading.Lock()
        # Orders refresh stores against clear_cache; never held across fetch.
        self._store_lock = threading.Lock()

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_polling(self) -> bool:
        with self._task_lock:
            return self._task is not None and self._task.is_running

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def init(self, credential: str) -> None:
        """Store the refresh credential and start polling in ``POLLING`` mode."""
        self._credential = credential
        if self._mode is Mode.POLLING:
            self.start_polling()

    def start_polling(self) -> None:
        """Start the fixed-rate refresh loop.

        No-op if already polling or after :meth:`shutdown`.
        """
        with self._task_lock:
            if self._closed:
                return
            if self._task is not None and self._task.is_running:
                return
            self._task = PollingTask(
                self.refresh_all,
                interval=self._poll_interval,
                name="weathersdk-refresh",
            )
            self._task.start()
        get_output().debug(f"Polling started with interval {self._poll_interval}s")

    def stop_polling(self) -> None:
        """Cancel the refresh loop promptly. No-op if not polling."""
        with self._task_lock:
            task, self._task = self._task, None
        if task is not None:
            task.stop()
            get_output().debug("Polling stopped")

    def clear_cache(self) -> None:
        with self._store_lock:
            self._cache.clear()

    def shutdown(self) -> None:
        """Stop polling for good and clear the cache.

        Later :meth:`init` or :meth:`start_polling` calls start nothing.
        Idempotent.
        """
        with self._task_lock:
            self._closed = True
            task, self._task = self._task, None
        if task is not None:
            task.stop()
            get_output().debug("Polling stopped")
        self.clear_cache()

    # ------------------------------------------------------------------ #
    # Request path
    # ------------------------------------------------------------------ #

    def get_current_weather(self, credential: str, location: str) -> WeatherRecord:
        """Return current weather for *location*, from cache when fresh.

        Args:
            credential: Provider API key used on a miss.
            location: Free-form location name; trimmed and lowercased
                before any cache or upstream use.

        Raises:
            InvalidParameterError: If *credential* or *location* is blank.
            CityNotFoundError: If the provider names no location.
            ExternalApiError: On provider 4xx/5xx or exhausted retries.
        """
        if not credential or not credential.strip():
            raise InvalidParameterError("credential is required")
        if not location or not location.strip():
            raise InvalidParameterError("location is required")

        key = normalize_key(location)
        output = get_output()

        cached = self._cache.get_if_fresh(key)
        if cached is not None:
            output.debug(f"Cache hit for '{key}'")
            return cached

        output.debug(f"Cache miss for '{key}', calling API")
        outcome = self._adapter.fetch(credential, key)
        if isinstance(outcome, Failure):
            raise outcome.to_error()

        record = WeatherRecord.from_payload(outcome)
        self._cache.put(key, record)
        return record

    # ------------------------------------------------------------------ #
    # Refresh path
    # ------------------------------------------------------------------ #

    def refresh_all(self, cancel: Optional[threading.Event] = None) -> RefreshResult:
        """Re-fetch every cached key, isolating failures per key.

        Works on a snapshot of the keys.  A key whose fetch fails keeps its
        previous entry untouched.  When *cancel* is set, the remaining keys
        are skipped.  Never raises.

        Args:
            cancel: Optional stop signal checked before each key.

        Returns:
            Counts of refreshed, failed and skipped keys.
        """
        start = time.monotonic()
        output = get_output()
        keys = sorted(self._cache.keys())
        success = failed = skipped = 0

        credential = self._credential
        if credential is None:
            output.warning("Skipping refresh: credential not initialized")
            return RefreshResult(len(keys), 0, 0, len(keys), 0)

        for key in keys:
            if cancel is not None and cancel.is_set():
                skipped += 1
                continue
            try:
                outcome = self._adapter.fetch(credential, key)
            except Exception as exc:
                if cancel is not None and cancel.is_set():
                    # The owning client was destroyed mid-fetch.
                    skipped += 1
                    continue
                failed += 1
                output.error(f"Unexpected error refreshing '{key}': {exc!r}")
                continue
            if isinstance(outcome, Failure):
                failed += 1
                output.warning(f"Failed to refresh '{key}': {outcome.message}")
                continue
            record = WeatherRecord.from_payload(outcome)
            with self._store_lock:
                # A stop during the fetch must not repopulate a cleared cache.
                if cancel is not None and cancel.is_set():
                    skipped += 1
                    continue
                self._cache.put(key, record)
            success += 1
            output.debug(f"Refreshed weather for '{key}'")

        duration_ms = int((time.monotonic() - start) * 1000)
        result = RefreshResult(len(keys), success, failed, skipped, duration_ms)
        output.debug(str(result))
        return result
