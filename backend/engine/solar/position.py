"""
Solar position providers.

The day simulation consumes sun positions through the
:class:`SolarPositionProvider` interface so that the ephemeris algorithm
can be swapped out (or replaced by a fixed-position double in tests).
Two adapters are provided:

* :class:`SpaPositionProvider` -- the NREL Solar Position Algorithm as
  implemented by ``pvlib`` (accuracy ~0.0003 degrees).
* :class:`SpencerPositionProvider` -- Spencer's Fourier-series
  approximation (accuracy ~1 degree), with the equation-of-time and
  longitude corrections needed to go from clock time to solar time.

References
----------
- Reda I., Andreas A., "Solar position algorithm for solar radiation
  applications", Solar Energy, 76(5):577-589, 2004.
- Spencer J.W., "Fourier series representation of the position of
  the sun", Search, 2(5):172, 1971.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo

import numpy as np
import pandas as pd
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


class PositionProviderError(RuntimeError):
    """The solar position computation failed for a given instant."""

    def __init__(self, timestamp: datetime, reason: str) -> None:
        self.timestamp = timestamp
        self.reason = reason
        super().__init__(
            f"Solar position calculation failed at {timestamp.isoformat()}: {reason}"
        )


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Location:
    """Observer site handed to the position provider.

    Parameters
    ----------
    latitude : float
        Degrees, positive north [-90, 90].
    longitude : float
        Degrees, positive east [-180, 180].
    timezone_offset : float
        Hours from UTC of the clock used for sample timestamps.
    elevation : float
        Metres above sea level.
    pressure : float
        Annual average local pressure (mbar).
    temperature : float
        Annual average local temperature (degC).
    atmos_refract : float
        Atmospheric refraction at sunrise and sunset (degrees).
    """

    latitude: float
    longitude: float
    timezone_offset: float = 0.0
    elevation: float = 20.0
    pressure: float = 1013.0
    temperature: float = 5.0
    atmos_refract: float = 0.5667

    def __post_init__(self) -> None:
        for name in (
            "latitude", "longitude", "timezone_offset",
            "elevation", "pressure", "temperature", "atmos_refract",
        ):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude must be in [-90, 90], got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude must be in [-180, 180], got {self.longitude}")
        if not -18.0 <= self.timezone_offset <= 18.0:
            raise ValueError(
                f"timezone_offset must be in [-18, 18] hours, got {self.timezone_offset}"
            )
        if self.pressure <= 0:
            raise ValueError(f"pressure must be positive, got {self.pressure}")

    @property
    def tzinfo(self) -> tzinfo:
        """Fixed-offset timezone matching ``timezone_offset``."""
        return timezone(timedelta(hours=self.timezone_offset))

    def localize(self, timestamp: datetime) -> datetime:
        """Attach the site's fixed offset to a naive timestamp."""
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=self.tzinfo)
        return timestamp


@dataclass(frozen=True)
class SolarPosition:
    """Sun position for one instant.

    ``altitude`` is always derived as ``90 - zenith``; it cannot be passed
    in, so the two angles stay complementary.
    """

    azimuth: float  # degrees clockwise from true north [0, 360)
    zenith: float   # degrees from overhead; > 90 means below the horizon
    altitude: float = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "altitude", 90.0 - self.zenith)

    @property
    def is_daylight(self) -> bool:
        return self.zenith <= 90.0


# ---------------------------------------------------------------------------
# Provider interface
# ---------------------------------------------------------------------------

class SolarPositionProvider(ABC):
    """Interface every solar position source must implement."""

    @abstractmethod
    def get_solar_position(self, timestamp: datetime, location: Location) -> SolarPosition:
        """Return the sun position at *timestamp* for *location*.

        Parameters
        ----------
        timestamp : datetime
            Instant to evaluate.  Naive values are read as local clock
            time at ``location.timezone_offset``.
        location : Location
            Observer site.

        Raises
        ------
        PositionProviderError
            If the position cannot be computed.
        """


def _checked_position(timestamp: datetime, azimuth: float, zenith: float) -> SolarPosition:
    """Build a SolarPosition, rejecting values outside the provider contract."""
    if not (math.isfinite(azimuth) and math.isfinite(zenith)):
        raise PositionProviderError(
            timestamp, f"non-finite result (azimuth={azimuth}, zenith={zenith})"
        )
    if not 0.0 <= zenith <= 180.0:
        raise PositionProviderError(timestamp, f"zenith {zenith:.4f} outside [0, 180]")
    azimuth = azimuth % 360.0
    return SolarPosition(azimuth=azimuth, zenith=zenith)


# ---------------------------------------------------------------------------
# NREL SPA (pvlib)
# ---------------------------------------------------------------------------

class SpaPositionProvider(SolarPositionProvider):
    """NREL SPA adapter backed by :func:`pvlib.solarposition.get_solarposition`.

    Returns the apparent (refraction-corrected) zenith, which is what
    decides whether the sun is visible above the horizon.
    """

    def __init__(self, method: str = "nrel_numpy") -> None:
        self.method = method

    def get_solar_position(self, timestamp: datetime, location: Location) -> SolarPosition:
        from pvlib import solarposition

        local_ts = location.localize(timestamp)
        times = pd.DatetimeIndex([local_ts])
        try:
            solpos = solarposition.get_solarposition(
                times,
                location.latitude,
                location.longitude,
                altitude=location.elevation,
                pressure=location.pressure * 100.0,  # mbar -> Pa
                method=self.method,
                temperature=location.temperature,
                atmos_refract=location.atmos_refract,
            )
        except Exception as exc:
            raise PositionProviderError(timestamp, str(exc)) from exc

        zenith = float(solpos["apparent_zenith"].iloc[0])
        azimuth = float(solpos["azimuth"].iloc[0])
        return _checked_position(timestamp, azimuth, zenith)


# ---------------------------------------------------------------------------
# Spencer approximation
# ---------------------------------------------------------------------------

def equation_of_time(day_of_year: NDArray[np.float64] | float) -> NDArray[np.float64]:
    """Equation of time in minutes (Spencer 1971, via Iqbal 1983)."""
    day_of_year = np.asarray(day_of_year, dtype=np.float64)
    day_angle = 2.0 * np.pi * (day_of_year - 1.0) / 365.0
    return 229.18 * (
        0.000075
        + 0.001868 * np.cos(day_angle)
        - 0.032077 * np.sin(day_angle)
        - 0.014615 * np.cos(2.0 * day_angle)
        - 0.040849 * np.sin(2.0 * day_angle)
    )


def solar_time(
    day_of_year: NDArray[np.float64] | float,
    clock_hour: NDArray[np.float64] | float,
    longitude: float,
    timezone_offset: float,
) -> NDArray[np.float64]:
    """Convert local standard clock hours to apparent solar hours."""
    clock_hour = np.asarray(clock_hour, dtype=np.float64)
    correction_min = 4.0 * (longitude - 15.0 * timezone_offset) + equation_of_time(day_of_year)
    return clock_hour + correction_min / 60.0


def solar_declination(day_of_year: NDArray[np.float64] | float) -> NDArray[np.float64]:
    """Solar declination in radians (Spencer's Fourier series)."""
    day_angle = 2.0 * np.pi * (np.asarray(day_of_year, dtype=np.float64) - 1.0) / 365.0
    return (
        0.006918
        - 0.399912 * np.cos(day_angle)
        + 0.070257 * np.sin(day_angle)
        - 0.006758 * np.cos(2.0 * day_angle)
        + 0.000907 * np.sin(2.0 * day_angle)
        - 0.002697 * np.cos(3.0 * day_angle)
        + 0.00148 * np.sin(3.0 * day_angle)
    )


def spencer_solar_position(
    day_of_year: NDArray[np.float64] | float,
    hour: NDArray[np.float64] | float,
    latitude: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Sun zenith and azimuth from Spencer's declination and the hour angle.

    Parameters
    ----------
    day_of_year : array_like
        Day of year (1-365/366).
    hour : array_like
        Hour of day in *solar time* (0-23.999).  Use :func:`solar_time`
        to convert from clock time.
    latitude : float
        Site latitude in degrees (positive north).

    Returns
    -------
    zenith : ndarray
        Solar zenith angle in degrees [0, 180].
    azimuth : ndarray
        Solar azimuth angle in degrees, measured clockwise from north
        [0, 360).
    """
    dec = solar_declination(day_of_year)
    # Hour angle: 0 at solar noon, 15 deg per hour, negative before noon
    omega = np.radians(15.0 * (np.asarray(hour, dtype=np.float64) - 12.0))
    phi = np.radians(latitude)

    sin_alt = np.sin(phi) * np.sin(dec) + np.cos(phi) * np.cos(dec) * np.cos(omega)
    zenith = 90.0 - np.degrees(np.arcsin(np.clip(sin_alt, -1.0, 1.0)))

    # atan2 form is measured from south, positive westward; shift to north-based
    azimuth = np.degrees(
        np.arctan2(np.sin(omega), np.cos(omega) * np.sin(phi) - np.tan(dec) * np.cos(phi))
    ) + 180.0

    return zenith, np.mod(azimuth, 360.0)


class SpencerPositionProvider(SolarPositionProvider):
    """Low-fidelity provider using :func:`spencer_solar_position`.

    Ignores elevation, pressure and refraction; zenith is geometric.
    """

    def get_solar_position(self, timestamp: datetime, location: Location) -> SolarPosition:
        local_ts = location.localize(timestamp).astimezone(location.tzinfo)
        day_of_year = local_ts.timetuple().tm_yday
        clock_hour = local_ts.hour + local_ts.minute / 60.0 + local_ts.second / 3600.0

        hour = solar_time(day_of_year, clock_hour, location.longitude, location.timezone_offset)
        zenith, azimuth = spencer_solar_position(day_of_year, hour, location.latitude)
        return _checked_position(timestamp, float(azimuth), float(zenith))


_PROVIDERS: dict[str, type[SolarPositionProvider]] = {
    "spa": SpaPositionProvider,
    "spencer": SpencerPositionProvider,
}


def make_position_provider(method: str = "spa") -> SolarPositionProvider:
    """Instantiate a provider by name (``"spa"`` or ``"spencer"``)."""
    try:
        provider_cls = _PROVIDERS[method]
    except KeyError:
        raise ValueError(
            f"Unknown position method '{method}'. "
            f"Choose from: {sorted(_PROVIDERS.keys())}"
        ) from None
    logger.debug("Using %s solar position provider", provider_cls.__name__)
    return provider_cls()
