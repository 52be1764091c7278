"""
Solar PV engine module.

Provides solar position providers (NREL SPA via pvlib, Spencer 1971),
angle-of-incidence geometry for fixed tilted panels, nominal-scaled and
irradiance-driven string power models, and sunrise / sunset detection.
"""

from .orientation import orientation_factor
from .position import (
    Location,
    PositionProviderError,
    SolarPosition,
    SolarPositionProvider,
    SpaPositionProvider,
    SpencerPositionProvider,
    make_position_provider,
)
from .pv_string import (
    PanelStringConfig,
    effective_irradiance,
    irradiance_string_power,
    nominal_string_power,
)
from .sun_events import (
    HorizonState,
    SunEvent,
    SunEventDetector,
    SunEventKind,
    detect_sun_events,
)

__all__ = [
    # orientation
    "orientation_factor",
    # position
    "Location",
    "PositionProviderError",
    "SolarPosition",
    "SolarPositionProvider",
    "SpaPositionProvider",
    "SpencerPositionProvider",
    "make_position_provider",
    # pv_string
    "PanelStringConfig",
    "effective_irradiance",
    "irradiance_string_power",
    "nominal_string_power",
    # sun_events
    "HorizonState",
    "SunEvent",
    "SunEventDetector",
    "SunEventKind",
    "detect_sun_events",
]
