"""Per-credential client registry.

A :class:`ClientRegistry` owns at most one :class:`WeatherClient` per
credential.  Each client bundles a private
:class:`~weathersdk.cache.WeatherCache`, an
:class:`~weathersdk.client.OpenWeatherAdapter`, and the
:class:`~weathersdk.service.WeatherService` that orchestrates them.

Creation builds the bundle outside the registry lock, then checks for a
duplicate and inserts in one critical section, so concurrent
``create_client`` calls for the same credential yield exactly one client
and :class:`~weathersdk.exceptions.DuplicateClientError` for the rest.

The module also keeps a lazily-created process-wide registry behind the
:func:`create_client`, :func:`get_client` and :func:`delete_client`
functions exported by :mod:`weathersdk`.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

import httpx

from weathersdk.cache import WeatherCache
from weathersdk.client import OpenWeatherAdapter
from weathersdk.config import resolve_settings
from weathersdk.exceptions import (
    DuplicateClientError,
    InvalidParameterError,
    WeatherSdkError,
)
from weathersdk.models import ClientSettings, Mode, WeatherRecord
from weathersdk.output import get_output, mask_secret
from weathersdk.service import WeatherService


class WeatherClient:
    """Handle for one credential's cache, adapter and service.

    Obtained from :meth:`ClientRegistry.create_client`; do not construct
    directly.
    """

    def __init__(
        self,
        credential: str,
        cache: WeatherCache,
        adapter: OpenWeatherAdapter,
        service: WeatherService,
        on_destroy: Optional[Callable[[WeatherClient], None]] = None,
    ) -> None:
        self._credential = credential
        self._cache = cache
        self._adapter = adapter
        self._service = service
        self._on_destroy = on_destroy
        self._destroyed = False
        self._destroy_lock = threading.Lock()

    @property
    def credential(self) -> str:
        return self._credential

    @property
    def cache(self) -> WeatherCache:
        return self._cache

    @property
    def adapter(self) -> OpenWeatherAdapter:
        return self._adapter

    @property
    def service(self) -> WeatherService:
        return self._service

    @property
    def mode(self) -> Mode:
        return self._service.mode

    @property
    def is_polling(self) -> bool:
        return self._service.is_polling

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def get_current_weather(self, location: str) -> WeatherRecord:
        """Return the current weather for *location*.

        Raises:
            WeatherSdkError: Always a subclass carrying a ``kind``;
                unexpected exceptions are wrapped with kind ``GENERIC``.
        """
        try:
            return self._service.get_current_weather(self._credential, location)
        except WeatherSdkError:
            raise
        except Exception as exc:
            raise WeatherSdkError(f"Failed to get weather: {exc}") from exc

    def destroy(self) -> None:
        """Shut the service down, close the adapter, and unregister.

        Idempotent.  A client destroyed before its service was initialized
        never starts polling.
        """
        with self._destroy_lock:
            if self._destroyed:
                return
            self._destroyed = True
        self._service.shutdown()
        self._adapter.close()
        if self._on_destroy is not None:
            self._on_destroy(self)
        get_output().info(f"Client destroyed for credential {mask_secret(self._credential)}")

    def __repr__(self) -> str:
        return (
            f"WeatherClient(credential={mask_secret(self._credential)!r}, "
            f"mode={self.mode.value!r})"
        )


class ClientRegistry:
    """Registry enforcing one live :class:`WeatherClient` per credential.

    Args:
        settings: Tunables for every client.  When ``None``,
            :func:`~weathersdk.config.resolve_settings` is called on first
            use.
        transport: Optional httpx transport handed to each adapter.
        clock: Time source handed to each cache.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._clock = clock
        self._clients: dict[str, WeatherClient] = {}
        self._lock = threading.Lock()

    @property
    def settings(self) -> ClientSettings:
        if self._settings is None:
            self._settings = resolve_settings()
        return self._settings

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def create_client(self, credential: str, mode: Mode) -> WeatherClient:
        """Create and register the client for *credential*.

        Args:
            credential: Provider API key.  Must not be blank.
            mode: :class:`~weathersdk.models.Mode` member or its value.

        Raises:
            InvalidParameterError: If *credential* is blank or *mode* is
                missing or unknown.
            DuplicateClientError: If a client for *credential* exists.
        """
        if not isinstance(credential, str) or not credential.strip():
            raise InvalidParameterError("credential is required")
        if mode is None:
            raise InvalidParameterError("mode is required")
        try:
            mode = Mode(mode)
        except ValueError as exc:
            raise InvalidParameterError(f"Unknown mode: {mode!r}") from exc

        with self._lock:
            if credential in self._clients:
                raise DuplicateClientError("Client with this credential already exists")

        client = self._build_client(credential, mode)

        with self._lock:
            if credential in self._clients:
                duplicate = True
            else:
                duplicate = False
                self._clients[credential] = client
        if duplicate:
            client.adapter.close()
            raise DuplicateClientError("Client with this credential already exists")

        client.service.init(credential)
        get_output().info(
            f"WeatherClient created for credential {mask_secret(credential)} ({mode.value})"
        )
        return client

    def get_client(self, credential: str) -> Optional[WeatherClient]:
        """Return the client registered for *credential*, or ``None``."""
        with self._lock:
            return self._clients.get(credential)

    def delete_client(self, credential: str) -> None:
        """Unregister and destroy the client for *credential*. No-op if absent."""
        with self._lock:
            client = self._clients.pop(credential, None)
        if client is not None:
            client.destroy()

    def credentials(self) -> list[str]:
        """Return the registered credentials."""
        with self._lock:
            return list(self._clients)

    def close_all(self) -> None:
        """Destroy every registered client."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.destroy()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, credential: object) -> bool:
        with self._lock:
            return credential in self._clients

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_client(self, credential: str, mode: Mode) -> WeatherClient:
        settings = self.settings
        adapter = OpenWeatherAdapter(settings, transport=self._transport)
        cache = WeatherCache(settings.cache_size, settings.ttl_seconds, clock=self._clock)
        service = WeatherService(
            adapter,
            cache,
            mode=mode,
            poll_interval_seconds=settings.poll_interval_seconds,
        )
        return WeatherClient(credential, cache, adapter, service, on_destroy=self._discard)

    def _discard(self, client: WeatherClient) -> None:
        """Drop *client* from the map if it is still the registered instance."""
        with self._lock:
            if self._clients.get(client.credential) is client:
                del self._clients[client.credential]


# ------------------------------------------------------------------ #
# Process-wide default registry
# ------------------------------------------------------------------ #

_default_registry: Optional[ClientRegistry] = None
_default_lock = threading.Lock()


def get_default_registry() -> ClientRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = ClientRegistry()
        return _default_registry


def set_default_registry(registry: ClientRegistry) -> None:
    """Install *registry* as the process-wide registry.

    Lets an application choose settings or an httpx transport for the
    module-level functions.  A previously installed registry is left as is;
    call :meth:`ClientRegistry.close_all` on it first if it holds clients.
    """
    global _default_registry
    with _default_lock:
        _default_registry = registry


def reset_default_registry() -> None:
    """Destroy all default-registry clients and forget the registry.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _default_registry
    with _default_lock:
        registry, _default_registry = _default_registry, None
    if registry is not None:
        registry.close_all()


def create_client(credential: str, mode: Mode) -> WeatherClient:
    """Create a client in the default registry. See :meth:`ClientRegistry.create_client`."""
    return get_default_registry().create_client(credential, mode)


def get_client(credential: str) -> Optional[WeatherClient]:
    """Look up a client in the default registry."""
    return get_default_registry().get_client(credential)


def delete_client(credential: str) -> None:
    """Destroy a client in the default registry. No-op if absent."""
    get_default_registry().delete_client(credential)
