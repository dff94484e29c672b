"""In-memory weather caching for weathersdk.

This package provides :class:`WeatherCache`, a bounded map from a
normalized location key to the last :class:`~weathersdk.models.WeatherRecord`
fetched for it.  Capacity is enforced by least-recently-used eviction on
insertion; freshness is judged separately against a TTL on lookup.

Each :class:`~weathersdk.registry.WeatherClient` owns exactly one cache,
sized by :class:`~weathersdk.models.ClientSettings`.
"""

from weathersdk.cache.cache import WeatherCache, normalize_key

__all__ = ["WeatherCache", "normalize_key"]
