"""Hourly irradiance series for a single day."""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from types import MappingProxyType

import numpy as np

HOURS_PER_DAY: int = 24


class RadiationSeries(Mapping[int, float]):
    """Read-only hour-of-day -> irradiance (W/m^2) mapping.

    Hours without an entry read as 0 through :meth:`irradiance_at`.
    Keys must be integers 0-23 and values finite and non-negative.
    """

    def __init__(self, data: Mapping[int, float] | None = None) -> None:
        values: dict[int, float] = {}
        for hour, irradiance in (data or {}).items():
            if isinstance(hour, bool) or not isinstance(hour, (int, np.integer)):
                raise ValueError(f"hour keys must be integers, got {hour!r}")
            if not 0 <= hour < HOURS_PER_DAY:
                raise ValueError(f"hour must be in [0, 23], got {hour}")
            irradiance = float(irradiance)
            if not math.isfinite(irradiance) or irradiance < 0:
                raise ValueError(
                    f"irradiance for hour {hour} must be finite and >= 0, got {irradiance}"
                )
            values[int(hour)] = irradiance
        self._data = MappingProxyType(values)

    def __getitem__(self, hour: int) -> float:
        return self._data[hour]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._data))

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"RadiationSeries({dict(self._data)!r})"

    def irradiance_at(self, hour: int) -> float:
        """Irradiance for *hour*, or 0 when the hour has no entry."""
        return self._data.get(hour, 0.0)

    def hourly_array(self) -> np.ndarray:
        """Dense 24-element array, index = hour of day."""
        arr = np.zeros(HOURS_PER_DAY, dtype=np.float64)
        for hour, irradiance in self._data.items():
            arr[hour] = irradiance
        return arr

    @property
    def daily_insolation_wh_m2(self) -> float:
        """Sum over the day, assuming each value holds for its full hour."""
        return float(sum(self._data.values()))
