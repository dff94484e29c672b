"""Error discriminators shared by exceptions and adapter failures.

Each :class:`~weathersdk.exceptions.WeatherSdkError` subclass carries a
class-level ``kind`` taken from :class:`ErrorKind`, and every
:class:`~weathersdk.models.Failure` returned by the upstream adapter is
tagged the same way.  Callers branch on ``kind`` instead of walking the
exception hierarchy.

Example::

    try:
        record = client.get_current_weather("Atlantis")
    except WeatherSdkError as exc:
        if exc.kind is ErrorKind.CITY_NOT_FOUND:
            ...
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Enumeration of failure categories."""

    GENERIC = "generic"
    """An unclassified error, wrapped so it still carries a kind."""

    INVALID_PARAMETER = "invalid_parameter"
    """A required input (credential, location, mode) was blank or missing."""

    CITY_NOT_FOUND = "city_not_found"
    """The provider answered but did not name a resolvable location."""

    EXTERNAL_API = "external_api"
    """The provider returned 4xx/5xx, or transport retries were exhausted."""

    DUPLICATE_CLIENT = "duplicate_client"
    """A client for the credential is already registered."""

    CONFIG = "config"
    """Settings could not be loaded or failed validation."""
