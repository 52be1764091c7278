"""
String-level PV power models.

Two independent estimates are produced for each panel string:

* **Nominal-scaled power** -- the string's STC rating scaled by the
  orientation factor and the overall system efficiency.  This is the
  orientation-only envelope: it assumes STC irradiance is always
  available.
* **Irradiance-driven power** -- measured or forecast irradiance,
  reduced by the orientation factor, converted through panel area and
  panel efficiency, then the overall system efficiency.

Temperature derating, shading, soiling and inverter clipping are not
modelled.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .orientation import orientation_factor


# ---------------------------------------------------------------------------
# String configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PanelStringConfig:
    """Immutable description of one fixed panel string.

    Parameters
    ----------
    name : str
        Label used in frames, series and reports.
    panel_count : int
        Number of panels in the string (> 0).
    nominal_power : float
        Rated power per panel at STC (W, > 0).
    panel_efficiency : float
        Module conversion efficiency in (0, 1].
    overall_efficiency : float
        Inverter / balance-of-system efficiency in (0, 1].
    panel_area : float
        Area of a single panel (m^2, > 0).
    slope : float
        Tilt from horizontal in degrees [0, 90].
    azimuth : float
        Direction the panels face, degrees clockwise from true north
        [0, 360).
    """

    name: str
    panel_count: int
    nominal_power: float
    panel_efficiency: float
    overall_efficiency: float
    panel_area: float
    slope: float
    azimuth: float

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must be a non-empty string")
        if isinstance(self.panel_count, bool) or not isinstance(self.panel_count, (int, np.integer)):
            raise ValueError(f"panel_count must be an integer, got {self.panel_count!r}")
        if self.panel_count <= 0:
            raise ValueError(f"panel_count must be positive, got {self.panel_count}")
        for name in ("nominal_power", "panel_area"):
            value = getattr(self, name)
            if not np.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        if self.nominal_power <= 0:
            raise ValueError(f"nominal_power must be positive, got {self.nominal_power}")
        if not 0 < self.panel_efficiency <= 1.0:
            raise ValueError(
                f"panel_efficiency must be in (0, 1], got {self.panel_efficiency}"
            )
        if not 0 < self.overall_efficiency <= 1.0:
            raise ValueError(
                f"overall_efficiency must be in (0, 1], got {self.overall_efficiency}"
            )
        if self.panel_area <= 0:
            raise ValueError(f"panel_area must be positive, got {self.panel_area}")
        if not 0 <= self.slope <= 90.0:
            raise ValueError(f"slope must be in [0, 90], got {self.slope}")
        if not 0 <= self.azimuth < 360.0:
            raise ValueError(f"azimuth must be in [0, 360), got {self.azimuth}")

    @property
    def nominal_capacity_w(self) -> float:
        """String STC rating (W)."""
        return self.nominal_power * self.panel_count

    @property
    def total_area_m2(self) -> float:
        return self.panel_area * self.panel_count


# ---------------------------------------------------------------------------
# Power models
# ---------------------------------------------------------------------------

def nominal_string_power(
    config: PanelStringConfig,
    orientation: ArrayLike,
) -> float | NDArray[np.float64]:
    """Nominal-scaled string power (W).

    ``nominal_power * panel_count * orientation * overall_efficiency``.
    """
    power = np.asarray(orientation, dtype=np.float64) * (
        config.nominal_capacity_w * config.overall_efficiency
    )
    if power.ndim == 0:
        return float(power)
    return power


def effective_irradiance(
    raw_irradiance: ArrayLike,
    sun_azimuth: ArrayLike,
    sun_zenith: ArrayLike,
    surface_azimuth: float,
    surface_slope: float,
) -> float | NDArray[np.float64]:
    """Irradiance captured by the panel plane (W/m^2).

    Zero whenever the sun is below the horizon or behind the panel.
    """
    factor = orientation_factor(sun_azimuth, sun_zenith, surface_azimuth, surface_slope)
    effective = np.asarray(raw_irradiance, dtype=np.float64) * factor
    if effective.ndim == 0:
        return float(effective)
    return effective


def irradiance_string_power(
    config: PanelStringConfig,
    raw_irradiance: ArrayLike,
    orientation: ArrayLike,
) -> float | NDArray[np.float64]:
    """Irradiance-driven string power (W).

    Parameters
    ----------
    config : PanelStringConfig
        String being evaluated.
    raw_irradiance : float or array_like
        Measured / forecast irradiance for the sample (W/m^2, >= 0).
    orientation : float or array_like
        Orientation factor from
        :func:`engine.solar.orientation.orientation_factor`.

    Returns
    -------
    float or ndarray
        ``raw_irradiance * orientation * panel_area * panel_count
        * panel_efficiency * overall_efficiency``.
    """
    effective = np.asarray(raw_irradiance, dtype=np.float64) * np.asarray(
        orientation, dtype=np.float64
    )
    power = effective * (
        config.total_area_m2 * config.panel_efficiency * config.overall_efficiency
    )
    if power.ndim == 0:
        return float(power)
    return power
