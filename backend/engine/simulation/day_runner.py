"""Single-day simulation driver for fixed PV strings.

``DaySimulator`` samples the sun position at regular instants over one
calendar day, evaluates the orientation factor and both string power
models for every configured string, and tracks sunrise / sunset with a
:class:`~engine.solar.sun_events.SunEventDetector`.  Samples are
processed strictly in time order because the detector is stateful.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from engine.solar.orientation import orientation_factor
from engine.solar.position import (
    Location,
    SolarPosition,
    SolarPositionProvider,
    SpaPositionProvider,
)
from engine.solar.pv_string import (
    PanelStringConfig,
    irradiance_string_power,
    nominal_string_power,
)
from engine.solar.sun_events import SunEvent, SunEventDetector, SunEventKind
from engine.weather.radiation import RadiationSeries

logger = logging.getLogger(__name__)

MINUTES_PER_DAY: int = 24 * 60


# ======================================================================
# Result types
# ======================================================================

@dataclass(frozen=True)
class StringFrame:
    """Per-string results for one sample."""

    name: str
    orientation_factor: float
    nominal_power_w: float
    irradiance_power_w: float


@dataclass(frozen=True)
class SimulationFrame:
    """Everything computed for one sampled instant."""

    timestamp: datetime
    position: SolarPosition
    irradiance: float
    strings: tuple[StringFrame, ...]

    def string(self, name: str) -> StringFrame:
        for frame in self.strings:
            if frame.name == name:
                return frame
        raise KeyError(name)


@dataclass(frozen=True)
class DaySimulationResult:
    """Ordered frames and sun events for one simulated day."""

    day: date
    location: Location
    step_minutes: int
    string_names: tuple[str, ...]
    frames: tuple[SimulationFrame, ...]
    events: tuple[SunEvent, ...]

    @property
    def step_hours(self) -> float:
        return self.step_minutes / 60.0

    @property
    def has_sun_transitions(self) -> bool:
        """False on polar day / polar night (no sunrise and no sunset)."""
        return len(self.events) > 0

    def first_event(self, kind: SunEventKind) -> SunEvent | None:
        for event in self.events:
            if event.kind is kind:
                return event
        return None

    def power_series(self) -> dict[str, NDArray[np.float64]]:
        """Chart-ready arrays.

        Returns
        -------
        dict
            ``"hour"`` -- fractional hour of day of each frame, plus
            ``"<name>_nominal_w"``, ``"<name>_irradiance_w"`` and
            ``"<name>_orientation"`` for every string.
        """
        series: dict[str, NDArray[np.float64]] = {
            "hour": np.array(
                [f.timestamp.hour + f.timestamp.minute / 60.0 for f in self.frames],
                dtype=np.float64,
            ),
            "altitude": np.array([f.position.altitude for f in self.frames], dtype=np.float64),
            "irradiance": np.array([f.irradiance for f in self.frames], dtype=np.float64),
        }
        for idx, name in enumerate(self.string_names):
            series[f"{name}_orientation"] = np.array(
                [f.strings[idx].orientation_factor for f in self.frames], dtype=np.float64
            )
            series[f"{name}_nominal_w"] = np.array(
                [f.strings[idx].nominal_power_w for f in self.frames], dtype=np.float64
            )
            series[f"{name}_irradiance_w"] = np.array(
                [f.strings[idx].irradiance_power_w for f in self.frames], dtype=np.float64
            )
        return series


# ======================================================================
# Sampling
# ======================================================================

def sample_times(
    day: date,
    step_minutes: int = 60,
    tz: tzinfo | None = None,
) -> list[datetime]:
    """Ascending sample instants covering *day*, starting at 00:00.

    With the default hourly step this yields hours 0--23.
    """
    if step_minutes <= 0 or MINUTES_PER_DAY % step_minutes != 0:
        raise ValueError(
            f"step_minutes must be a positive divisor of {MINUTES_PER_DAY}, "
            f"got {step_minutes}"
        )
    start = datetime(day.year, day.month, day.day, tzinfo=tz)
    return [
        start + timedelta(minutes=m)
        for m in range(0, MINUTES_PER_DAY, step_minutes)
    ]


# ======================================================================
# Simulator
# ======================================================================

class DaySimulator:
    """Simulate fixed PV strings over one day.

    Parameters
    ----------
    location : Location
        Observer site; its ``timezone_offset`` defines the local clock of
        the sample instants.
    day : date
        Calendar day to simulate.
    strings : sequence of PanelStringConfig
        Panel strings to evaluate.  Names must be unique.
    radiation : RadiationSeries, mapping or None
        Hourly irradiance (W/m^2).  ``None`` means no irradiance data, in
        which case irradiance-driven power is zero throughout.
    provider : SolarPositionProvider or None
        Sun position source.  Defaults to :class:`SpaPositionProvider`.
    step_minutes : int
        Sampling cadence; must divide a day.  Default 60 (hours 0--23).
    progress_callback : callable or None
        Optional ``callback(step: str, fraction: float)``.
    """

    def __init__(
        self,
        location: Location,
        day: date,
        strings: Sequence[PanelStringConfig],
        radiation: RadiationSeries | dict[int, float] | None = None,
        provider: SolarPositionProvider | None = None,
        step_minutes: int = 60,
        progress_callback: Callable[[str, float], None] | None = None,
    ) -> None:
        if not strings:
            raise ValueError("At least one panel string must be configured")
        names = [s.name for s in strings]
        if len(set(names)) != len(names):
            raise ValueError(f"Panel string names must be unique, got {names}")

        self.location = location
        self.day = day
        self.strings: tuple[PanelStringConfig, ...] = tuple(strings)
        if radiation is None or isinstance(radiation, RadiationSeries):
            self.radiation = radiation or RadiationSeries()
        else:
            self.radiation = RadiationSeries(radiation)
        self.provider = provider or SpaPositionProvider()
        self.step_minutes = step_minutes
        self.times = sample_times(day, step_minutes, location.tzinfo)
        self._progress = progress_callback

        self.frames: list[SimulationFrame] = []
        self.detector = SunEventDetector(on_event=self._log_event)

    @property
    def events(self) -> list[SunEvent]:
        return self.detector.events

    # ------------------------------------------------------------------
    # Progress reporting
    # ------------------------------------------------------------------

    def _report(self, step: str, fraction: float) -> None:
        """Fire the progress callback if one was provided."""
        if self._progress is not None:
            try:
                self._progress(step, fraction)
            except Exception:
                logger.warning("Progress callback failed at %r", step, exc_info=True)
        logger.debug("Day simulation step: %s (%.0f %%)", step, fraction * 100)

    @staticmethod
    def _log_event(event: SunEvent) -> None:
        logger.info(
            "%s detected at %s (azimuth %.2f deg)",
            event.kind.value.capitalize(),
            event.timestamp.strftime("%H:%M"),
            event.azimuth,
        )

    # ------------------------------------------------------------------
    # Per-sample evaluation
    # ------------------------------------------------------------------

    def _evaluate(self, timestamp: datetime, position: SolarPosition) -> SimulationFrame:
        irradiance = self.radiation.irradiance_at(timestamp.hour)

        string_frames = []
        for cfg in self.strings:
            factor = orientation_factor(
                position.azimuth, position.zenith, cfg.azimuth, cfg.slope,
            )
            string_frames.append(
                StringFrame(
                    name=cfg.name,
                    orientation_factor=factor,
                    nominal_power_w=nominal_string_power(cfg, factor),
                    irradiance_power_w=irradiance_string_power(cfg, irradiance, factor),
                )
            )

        return SimulationFrame(
            timestamp=timestamp,
            position=position,
            irradiance=irradiance,
            strings=tuple(string_frames),
        )

    # ------------------------------------------------------------------
    # Main simulation
    # ------------------------------------------------------------------

    def run(self) -> DaySimulationResult:
        """Simulate every sample instant of the day, in order.

        Frames and events produced before a failure stay available on
        :attr:`frames` and :attr:`events`.

        Raises
        ------
        PositionProviderError
            If the provider cannot compute a position.  No frame is
            emitted for the failing instant.
        """
        self.frames.clear()
        self.detector.reset()

        n = len(self.times)
        progress_interval = max(1, n // 4)
        self._report("Sampling solar positions", 0.0)

        for idx, timestamp in enumerate(self.times):
            position = self.provider.get_solar_position(timestamp, self.location)
            self.detector.update(timestamp, position.altitude, position.azimuth)
            self.frames.append(self._evaluate(timestamp, position))

            if idx > 0 and idx % progress_interval == 0:
                self._report("Sampling solar positions", idx / n)

        result = DaySimulationResult(
            day=self.day,
            location=self.location,
            step_minutes=self.step_minutes,
            string_names=tuple(s.name for s in self.strings),
            frames=tuple(self.frames),
            events=tuple(self.detector.events),
        )

        if not result.has_sun_transitions:
            logger.info(
                "No sunrise or sunset on %s at (%.4f, %.4f)",
                self.day.isoformat(),
                self.location.latitude,
                self.location.longitude,
            )
        self._report("Day simulation complete", 1.0)
        return result
