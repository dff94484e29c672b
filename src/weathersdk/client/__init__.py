"""Upstream HTTP access for weathersdk.

Provides :class:`OpenWeatherAdapter`, a blocking adapter over
:class:`httpx.Client` that performs one current-weather lookup per call
with a per-attempt timeout, bounded retry with exponential backoff, and
classification of failures into :class:`~weathersdk.models.Failure`
values.  It does no caching; that is the job of
:class:`~weathersdk.service.WeatherService`.

Example::

    from weathersdk.client import OpenWeatherAdapter

    with OpenWeatherAdapter(settings) as adapter:
        outcome = adapter.fetch(api_key, "berlin")
"""

from weathersdk.client.adapter import WEATHER_PATH, OpenWeatherAdapter

__all__ = ["OpenWeatherAdapter", "WEATHER_PATH"]
