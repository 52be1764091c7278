"""Shared test fixtures for RoofPV engine and app tests."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable

import pytest

from engine.solar.position import (
    Location,
    PositionProviderError,
    SolarPosition,
    SolarPositionProvider,
)
from engine.solar.pv_string import PanelStringConfig
from engine.weather.radiation import RadiationSeries

GOTHENBURG_LAT = 57.70887
GOTHENBURG_LON = 11.97456
JUNE_DAY = date(2025, 6, 15)

FORECAST_RADIATION = {9: 1, 10: 51, 11: 111, 12: 141, 13: 134, 14: 92, 15: 28}


# ======================================================================
# Position provider doubles
# ======================================================================

class FixedPositionProvider(SolarPositionProvider):
    """Returns positions from a function of the timestamp's hour.

    ``positions`` maps hour -> ``(azimuth, zenith)``; hours not listed
    fall back to ``default``.
    """

    def __init__(
        self,
        positions: dict[int, tuple[float, float]] | None = None,
        default: tuple[float, float] = (0.0, 120.0),
    ) -> None:
        self.positions = positions or {}
        self.default = default
        self.calls: list[datetime] = []

    def get_solar_position(self, timestamp: datetime, location: Location) -> SolarPosition:
        self.calls.append(timestamp)
        azimuth, zenith = self.positions.get(timestamp.hour, self.default)
        return SolarPosition(azimuth=azimuth, zenith=zenith)


class FailingPositionProvider(FixedPositionProvider):
    """Behaves like FixedPositionProvider until ``fail_at_hour``."""

    def __init__(self, fail_at_hour: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.fail_at_hour = fail_at_hour

    def get_solar_position(self, timestamp: datetime, location: Location) -> SolarPosition:
        if timestamp.hour == self.fail_at_hour:
            raise PositionProviderError(timestamp, "SPA Calculation Error: 12")
        return super().get_solar_position(timestamp, location)


def altitude_profile(
    altitudes: list[float],
    azimuth: Callable[[int], float] | None = None,
) -> dict[int, tuple[float, float]]:
    """Hour -> (azimuth, zenith) mapping from a list of hourly altitudes."""
    azimuth = azimuth or (lambda h: 15.0 * h)
    return {h: (azimuth(h), 90.0 - alt) for h, alt in enumerate(altitudes)}


# A stylised mid-latitude summer day: up at 04, down at 22, sun due south at 12
SUMMER_ALTITUDES = [
    -12, -13, -10, -5, 2, 8, 15, 23, 31, 38, 45, 50,
    52, 50, 45, 38, 31, 23, 15, 8, 3, -1, -5, -9,
]


@pytest.fixture
def fixed_provider() -> type[FixedPositionProvider]:
    return FixedPositionProvider


@pytest.fixture
def failing_provider() -> type[FailingPositionProvider]:
    return FailingPositionProvider


@pytest.fixture
def summer_positions() -> dict[int, tuple[float, float]]:
    """Hourly (azimuth, zenith) for SUMMER_ALTITUDES, azimuth 15 deg per hour."""
    return altitude_profile(SUMMER_ALTITUDES)


@pytest.fixture
def summer_provider(summer_positions) -> FixedPositionProvider:
    return FixedPositionProvider(positions=summer_positions)


# ======================================================================
# Site / configuration fixtures
# ======================================================================

@pytest.fixture
def gothenburg() -> Location:
    """Central Gothenburg, CET clock."""
    return Location(latitude=GOTHENBURG_LAT, longitude=GOTHENBURG_LON, timezone_offset=1.0)


@pytest.fixture
def longyearbyen() -> Location:
    """Svalbard: polar day in June, polar night in December."""
    return Location(latitude=78.22, longitude=15.65, timezone_offset=1.0)


@pytest.fixture
def nww_string() -> PanelStringConfig:
    return PanelStringConfig(
        name="NWW",
        panel_count=18,
        nominal_power=375.0,
        panel_efficiency=0.2059,
        overall_efficiency=0.85,
        panel_area=1.755 * 1.038,
        slope=30.0,
        azimuth=285.0,
    )


@pytest.fixture
def see_string() -> PanelStringConfig:
    return PanelStringConfig(
        name="SEE",
        panel_count=26,
        nominal_power=375.0,
        panel_efficiency=0.2059,
        overall_efficiency=0.85,
        panel_area=1.755 * 1.038,
        slope=30.0,
        azimuth=105.0,
    )


@pytest.fixture
def roof_strings(nww_string, see_string) -> list[PanelStringConfig]:
    return [nww_string, see_string]


@pytest.fixture
def forecast_radiation() -> RadiationSeries:
    """Forecast irradiance for Gothenburg (W/m²), non-zero 09-15 only."""
    return RadiationSeries(FORECAST_RADIATION)
