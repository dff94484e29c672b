"""weathersdk -- cached current-weather client for the OpenWeather API.

Callers create one client per API key, then ask it for the weather by
location name.  Results are cached in memory per client; in ``POLLING``
mode a background task keeps every cached location fresh.

Typical use::

    import weathersdk
    from weathersdk import Mode

    client = weathersdk.create_client(api_key, Mode.ON_DEMAND)
    record = client.get_current_weather("Berlin")
    print(record.to_dict())
    weathersdk.delete_client(api_key)

Modules:
    registry: per-credential client registry and the public entry points.
    service: cache-aside retrieval and background refresh.
    cache: bounded recency + TTL cache.
    client: OpenWeather HTTP adapter with retry and classification.
    scheduler: fixed-rate, non-reentrant polling thread.
    models: Pydantic models for settings, wire payloads and records.
    config: settings resolution from overrides, env and config file.
    exceptions: exception hierarchy carrying an ``ErrorKind``.
    output: stderr diagnostics built on Rich.
"""

from weathersdk.error_kinds import ErrorKind
from weathersdk.exceptions import (
    CityNotFoundError,
    ConfigError,
    DuplicateClientError,
    ExternalApiError,
    InvalidParameterError,
    WeatherSdkError,
)
from weathersdk.models import ClientSettings, Mode, WeatherRecord
from weathersdk.registry import (
    ClientRegistry,
    WeatherClient,
    create_client,
    delete_client,
    get_client,
    set_default_registry,
)

__version__ = "1.0.1"

__all__ = [
    "CityNotFoundError",
    "ClientRegistry",
    "ClientSettings",
    "ConfigError",
    "DuplicateClientError",
    "ErrorKind",
    "ExternalApiError",
    "InvalidParameterError",
    "Mode",
    "WeatherClient",
    "WeatherRecord",
    "WeatherSdkError",
    "create_client",
    "delete_client",
    "get_client",
    "set_default_registry",
]
