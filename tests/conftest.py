"""Shared test fixtures for weathersdk.

Provides a controllable clock, canned provider payloads, settings tuned
for fast tests, and httpx mock transports.  These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import httpx
import pytest

from weathersdk.models import ClientSettings, OpenWeatherPayload, WeatherRecord
from weathersdk.output import OutputManager, reset_output, set_output
from weathersdk.registry import reset_default_registry


# ---------------------------------------------------------------------------
# Global state reset
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _quiet_output_between_tests():
    """Install a silent OutputManager and reset it after every test."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_default_registry():
    """Destroy clients left in the process-wide registry."""
    yield
    reset_default_registry()


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user config and WEATHERSDK_* variables out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("WEATHERSDK_CONFIG", raising=False)
    for field in ClientSettings.model_fields:
        monkeypatch.delenv(f"WEATHERSDK_{field.upper()}", raising=False)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced time source for cache TTL tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Payloads and records
# ---------------------------------------------------------------------------


def make_payload(name: Optional[str] = "Berlin", temp: float = 281.4, **extra: Any) -> dict[str, Any]:
    """Build a provider response body in the OpenWeather shape."""
    data: dict[str, Any] = {
        "coord": {"lon": 13.41, "lat": 52.52},
        "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
        "base": "stations",
        "main": {"temp": temp, "feels_like": temp - 2.0, "pressure": 1012, "humidity": 70},
        "visibility": 10000,
        "wind": {"speed": 4.1, "deg": 250},
        "dt": 1_700_000_000,
        "sys": {"country": "DE", "sunrise": 1_699_940_000, "sunset": 1_699_972_000},
        "timezone": 3600,
        "id": 2950159,
        "name": name,
        "cod": 200,
    }
    data.update(extra)
    return data


def make_record(name: str = "Berlin", temp: float = 281.4) -> WeatherRecord:
    return WeatherRecord.from_payload(
        OpenWeatherPayload.model_validate(make_payload(name=name, temp=temp))
    )


@pytest.fixture
def payload_factory() -> Callable[..., dict[str, Any]]:
    return make_payload


@pytest.fixture
def record_factory() -> Callable[..., WeatherRecord]:
    return make_record


# ---------------------------------------------------------------------------
# Settings and transports
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> ClientSettings:
    """Settings with a fast poll interval and no backoff delay."""
    return ClientSettings(
        base_url="https://api.example.com",
        cache_size=3,
        ttl_seconds=600,
        max_retries=2,
        request_timeout=1.0,
        retry_backoff=0.0,
        poll_interval_seconds=0.05,
    )


class RecordingHandler:
    """httpx handler that answers per city and counts calls.

    ``responses`` maps a lowercased ``q`` value to either a response body,
    an :class:`httpx.Response`, or an exception to raise.  Unknown cities
    get a payload named after the query.
    """

    def __init__(self, responses: Optional[dict[str, Any]] = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        city = request.url.params.get("q", "")
        answer = self.responses.get(city)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, httpx.Response):
            return answer
        if answer is None:
            answer = make_payload(name=city.title())
        return httpx.Response(200, json=answer)

    def calls_for(self, city: str) -> int:
        return sum(1 for r in self.calls if r.url.params.get("q") == city)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def transport(handler: RecordingHandler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)
