"""
Angle-of-incidence geometry for fixed tilted panels.

The orientation factor is the cosine of the angle between the sun vector
and the panel normal, clamped to zero when the sun is below the horizon
or behind the panel plane.  It scales both power models in
:mod:`engine.solar.pv_string`.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def orientation_factor(
    sun_azimuth: ArrayLike,
    sun_zenith: ArrayLike,
    surface_azimuth: ArrayLike,
    surface_slope: ArrayLike,
) -> float | NDArray[np.float64]:
    """Angle-of-incidence cosine between the sun and a tilted surface.

    Parameters
    ----------
    sun_azimuth : float or array_like
        Solar azimuth in degrees clockwise from north.
    sun_zenith : float or array_like
        Solar zenith in degrees.  Values above 90 (sun below the horizon)
        yield 0.
    surface_azimuth : float or array_like
        Direction the panel faces, degrees clockwise from north.
    surface_slope : float or array_like
        Panel tilt from horizontal in degrees.

    Returns
    -------
    float or ndarray
        Factor in [0, 1].  A plain ``float`` when every input is scalar.
    """
    sun_azimuth = np.asarray(sun_azimuth, dtype=np.float64)
    sun_zenith = np.asarray(sun_zenith, dtype=np.float64)

    zen_r = np.radians(sun_zenith)
    slope_r = np.radians(np.asarray(surface_slope, dtype=np.float64))
    az_diff_r = np.radians(sun_azimuth - np.asarray(surface_azimuth, dtype=np.float64))

    cos_theta = (
        np.cos(zen_r) * np.cos(slope_r)
        + np.sin(zen_r) * np.sin(slope_r) * np.cos(az_diff_r)
    )

    # Sun below the horizon, or panel plane facing away from the sun
    factor = np.where((sun_zenith > 90.0) | (cos_theta <= 0.0), 0.0, cos_theta)
    factor = np.minimum(factor, 1.0)

    if factor.ndim == 0:
        return float(factor)
    return factor
