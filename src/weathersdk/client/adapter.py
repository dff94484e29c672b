"""Blocking OpenWeather adapter with timeout, retry, and failure classification.

:meth:`OpenWeatherAdapter.fetch` sends ``GET /data/2.5/weather`` and
returns either the validated :class:`~weathersdk.models.OpenWeatherPayload`
or a :class:`~weathersdk.models.Failure`.  Classification:

- **HTTP 4xx/5xx** -- ``EXTERNAL_API`` failure carrying the status and body.
  Never retried.
- **Valid body without a name** -- ``CITY_NOT_FOUND`` failure.  Never
  retried.
- **Transport faults** (connect errors, timeouts, other network errors)
  and **malformed bodies** (not JSON, wrong shape) -- retried up to
  ``max_retries`` more times with delays of ``retry_backoff * 2**attempt``
  (1 s, 2 s, 4 s, ... with the default backoff).  Exhaustion yields an
  ``EXTERNAL_API`` failure without a status code.

``request_timeout`` is handed to httpx, which applies it to each phase of
an attempt (connect, write, read, pool acquisition) separately and anew on
every retry.  A read timeout bounds the gap between received chunks, not
the whole body, so a server trickling a response can keep one attempt
open past ``request_timeout``.
"""

from __future__ import annotations

import time
from typing import Optional, Union

import httpx

from weathersdk.error_kinds import ErrorKind
from weathersdk.models import ClientSettings, Failure, OpenWeatherPayload
from weathersdk.output import get_output

WEATHER_PATH = "/data/2.5/weather"


class OpenWeatherAdapter:
    """Performs current-weather lookups against the provider.

    Args:
        settings: Supplies ``base_url``, ``units``, ``request_timeout``,
            ``max_retries`` and ``retry_backoff``.
        transport: Optional httpx transport.  Tests pass an
            :class:`httpx.MockTransport`; ``None`` uses the network.
    """

    def __init__(
        self,
        settings: ClientSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._client: Optional[httpx.Client] = httpx.Client(
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            transport=transport,
            follow_redirects=True,
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> OpenWeatherAdapter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client. Safe to call repeatedly."""
        if self._client is not None:
            self._client.close()
            self._client = None

    @property
    def closed(self) -> bool:
        return self._client is None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def fetch(
        self, credential: str, location: str
    ) -> Union[OpenWeatherPayload, Failure]:
        """Fetch the current weather for *location*.

        Args:
            credential: Provider API key, sent as ``appid``.
            location: Location query, sent as ``q``.

        Returns:
            The validated payload, or a :class:`Failure` describing why
            none could be obtained.

        Raises:
            RuntimeError: If the adapter has been closed.
        """
        if self._client is None:
            raise RuntimeError("Adapter is closed")

        params = {
            "q": location,
            "appid": credential,
            "units": self._settings.units,
        }
        max_retries = self._settings.max_retries
        output = get_output()
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                response = self._client.get(WEATHER_PATH, params=params)
                if response.status_code >= 400:
                    return self._api_failure(location, response)
                # ValueError covers both JSON decoding and pydantic validation.
                payload = OpenWeatherPayload.model_validate(response.json())
            except (httpx.RequestError, ValueError) as exc:
                last_error = exc
                if attempt < max_retries:
                    delay = self._settings.retry_backoff * (2 ** attempt)
                    output.debug(
                        f"Transport error for '{location}': {exc!r}, retrying in "
                        f"{delay}s (attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                break

            if not payload.name or not payload.name.strip():
                return Failure(
                    kind=ErrorKind.CITY_NOT_FOUND,
                    message=f"Empty response or city not found: {location}",
                    location=location,
                    status_code=response.status_code,
                )
            return payload

        return Failure(
            kind=ErrorKind.EXTERNAL_API,
            message=(
                f"Failed to call OpenWeather after {max_retries + 1} attempts: "
                f"{last_error}"
            ),
            location=location,
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _api_failure(self, location: str, response: httpx.Response) -> Failure:
        """Build a non-retryable failure from a 4xx/5xx response."""
        body = response.text
        get_output().debug(f"OpenWeather returned HTTP {response.status_code} for '{location}'")
        return Failure(
            kind=ErrorKind.EXTERNAL_API,
            message=f"OpenWeather error: HTTP {response.status_code}: {body[:200]}",
            location=location,
            status_code=response.status_code,
            body=body,
        )
