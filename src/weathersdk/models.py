"""Canonical Pydantic models shared across all weathersdk modules.

The models fall into three groups:

**Configuration** -- :class:`Mode` and :class:`ClientSettings`, which
select a client's refresh behaviour and carry its tunables.

**Provider wire shape** -- :class:`OpenWeatherPayload` and its nested
blocks, validated from the JSON body of ``/data/2.5/weather``.  Unknown
fields are ignored.

**Domain output** -- :class:`WeatherRecord`, the frozen normalized value
handed to callers, and :class:`Failure`, the typed outcome the upstream
adapter returns instead of raising.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from weathersdk.error_kinds import ErrorKind
from weathersdk.exceptions import (
    CityNotFoundError,
    ExternalApiError,
    InvalidParameterError,
    WeatherSdkError,
)


# --- Configuration ---


class Mode(str, enum.Enum):
    """How a client keeps its cache warm.

    ``ON_DEMAND`` fetches only when a caller misses the cache.  ``POLLING``
    additionally starts a background task that re-fetches every cached
    location at a fixed interval.
    """

    ON_DEMAND = "on_demand"
    POLLING = "polling"


class ClientSettings(BaseModel):
    """Tunables applied to every client created by a registry.

    Resolved from overrides, environment, and config file by
    :func:`~weathersdk.config.resolve_settings`.
    """

    base_url: str = Field(
        default="https://api.openweathermap.org",
        description="Scheme and host of the provider",
    )
    units: str = Field(default="standard", description="Provider unit system")
    cache_size: int = Field(default=10, ge=1, description="Max cached locations")
    ttl_seconds: float = Field(default=600, ge=0, description="Cache freshness window")
    max_retries: int = Field(
        default=2, ge=0, description="Extra attempts after a transport failure"
    )
    request_timeout: float = Field(
        default=5.0, gt=0, description="Per-attempt timeout in seconds"
    )
    retry_backoff: float = Field(
        default=1.0, ge=0, description="Base backoff delay, doubled per attempt"
    )
    poll_interval_seconds: float = Field(
        default=60, gt=0, description="Refresh period in POLLING mode"
    )


# --- Provider wire shape ---


class ConditionPayload(BaseModel):
    main: Optional[str] = None
    description: Optional[str] = None


class MainPayload(BaseModel):
    temp: Optional[float] = None
    feels_like: Optional[float] = None


class WindPayload(BaseModel):
    speed: Optional[float] = None


class SysPayload(BaseModel):
    sunrise: Optional[int] = None
    sunset: Optional[int] = None


class OpenWeatherPayload(BaseModel):
    """Raw current-weather response as returned by the provider.

    Every field is optional: the adapter decides what counts as a usable
    response (a non-blank ``name``), and :meth:`WeatherRecord.from_payload`
    fills missing blocks with ``None`` values.
    """

    model_config = ConfigDict(extra="ignore")

    weather: list[ConditionPayload] = Field(default_factory=list)
    main: Optional[MainPayload] = None
    visibility: Optional[int] = None
    wind: Optional[WindPayload] = None
    dt: Optional[int] = None
    sys: Optional[SysPayload] = None
    timezone: Optional[int] = None
    name: Optional[str] = None


# --- Domain output ---


class WeatherBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    main: Optional[str] = None
    description: Optional[str] = None


class TemperatureBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    temp: Optional[float] = None
    feels_like: Optional[float] = None


class WindBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    speed: Optional[float] = None


class SysBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    sunrise: Optional[int] = None
    sunset: Optional[int] = None


class WeatherRecord(BaseModel):
    """Normalized current weather for one location.

    Instances are frozen; the cache hands out the same object to every
    caller, so nothing downstream may mutate it.

    Example::

        record = client.get_current_weather("Berlin")
        record.temperature.temp      # 281.4 (Kelvin with units=standard)
        record.to_dict()             # null fields and empty blocks dropped
    """

    model_config = ConfigDict(frozen=True)

    weather: WeatherBlock = Field(default_factory=WeatherBlock)
    temperature: TemperatureBlock = Field(default_factory=TemperatureBlock)
    visibility: Optional[int] = None
    wind: WindBlock = Field(default_factory=WindBlock)
    datetime: Optional[int] = None
    sys: SysBlock = Field(default_factory=SysBlock)
    timezone: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: OpenWeatherPayload) -> WeatherRecord:
        """Map the provider shape onto a record.

        Only the first entry of ``raw.weather`` is kept.  Absent blocks
        become blocks whose fields are all ``None``.
        """
        condition = raw.weather[0] if raw.weather else ConditionPayload()
        main = raw.main or MainPayload()
        wind = raw.wind or WindPayload()
        sys_block = raw.sys or SysPayload()
        return cls(
            weather=WeatherBlock(main=condition.main, description=condition.description),
            temperature=TemperatureBlock(temp=main.temp, feels_like=main.feels_like),
            visibility=raw.visibility,
            wind=WindBlock(speed=wind.speed),
            datetime=raw.dt,
            sys=SysBlock(sunrise=sys_block.sunrise, sunset=sys_block.sunset),
            timezone=raw.timezone,
            name=raw.name,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting ``None`` fields and blocks left empty by that."""
        data = self.model_dump(exclude_none=True)
        return {k: v for k, v in data.items() if v != {}}


class Failure(BaseModel):
    """Typed outcome of an unsuccessful upstream fetch.

    The adapter returns a ``Failure`` rather than raising so that the
    refresh loop can skip a key without exception plumbing.  The request
    path converts it with :meth:`to_error`.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    location: str = ""
    status_code: Optional[int] = None
    body: Optional[str] = None

    def to_error(self) -> WeatherSdkError:
        """Build the exception matching :attr:`kind`."""
        if self.kind is ErrorKind.CITY_NOT_FOUND:
            return CityNotFoundError(self.location)
        if self.kind is ErrorKind.EXTERNAL_API:
            return ExternalApiError(self.message, self.status_code, self.body)
        if self.kind is ErrorKind.INVALID_PARAMETER:
            return InvalidParameterError(self.message)
        return WeatherSdkError(self.message, kind=self.kind)
