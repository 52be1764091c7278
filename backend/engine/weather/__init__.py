"""Weather input module (hourly irradiance series)."""

from .radiation import HOURS_PER_DAY, RadiationSeries

__all__ = [
    "HOURS_PER_DAY",
    "RadiationSeries",
]
