"""Exception hierarchy for weathersdk.

All exceptions inherit from :class:`WeatherSdkError`, which carries a
``kind`` attribute taken from :class:`~weathersdk.error_kinds.ErrorKind`.
Code that embeds the SDK can catch ``WeatherSdkError`` once and inspect
``exc.kind``; unexpected exceptions raised below the public surface are
wrapped in a plain ``WeatherSdkError`` (kind ``GENERIC``).

Subclass hierarchy::

    WeatherSdkError            (generic)
    +-- InvalidParameterError  (invalid_parameter)
    +-- CityNotFoundError      (city_not_found)
    +-- ExternalApiError       (external_api)
    +-- DuplicateClientError   (duplicate_client)
    +-- ConfigError            (config)
"""

from __future__ import annotations

from typing import Optional

from weathersdk.error_kinds import ErrorKind


class WeatherSdkError(Exception):
    """Base exception for all weathersdk errors.

    Args:
        message: Human-readable error description.
        kind: Optional override for the class-level kind.
    """

    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class InvalidParameterError(WeatherSdkError):
    """Raised when a credential, location, or mode is blank or missing."""

    kind = ErrorKind.INVALID_PARAMETER


class CityNotFoundError(WeatherSdkError):
    """Raised when the provider response names no location."""

    kind = ErrorKind.CITY_NOT_FOUND

    def __init__(self, city: str):
        super().__init__(f"City not found: {city}")
        self.city = city


class ExternalApiError(WeatherSdkError):
    """Raised for provider 4xx/5xx responses and exhausted transport retries.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the provider response, or ``None``
            when no response was received.
        body: Raw response body, when one was received.
    """

    kind = ErrorKind.EXTERNAL_API

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DuplicateClientError(WeatherSdkError):
    """Raised when a client for the same credential is already registered."""

    kind = ErrorKind.DUPLICATE_CLIENT


class ConfigError(WeatherSdkError):
    """Raised for unreadable config files or invalid setting values."""

    kind = ErrorKind.CONFIG
