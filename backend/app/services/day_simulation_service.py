import logging
import time
from collections.abc import Sequence
from datetime import date

from app.config import settings
from app.core.logging import run_context
from app.schemas.day_simulation import (
    DaySimulationRequest,
    DaySimulationResponse,
    LocationIn,
    PanelStringIn,
    SimulationFrameOut,
    StringEnergyOut,
    StringFrameOut,
    SunEventOut,
)
from engine.reporting.day_summary import build_day_summary, daily_energy_wh
from engine.simulation.day_runner import DaySimulator, SimulationFrame
from engine.solar.position import (
    PositionProviderError,
    SolarPositionProvider,
    make_position_provider,
)
from engine.solar.sun_events import SunEvent

logger = logging.getLogger(__name__)

# Forecast irradiance for Gothenburg (W/m²), 2024-12-27 third-party prognosis
REFERENCE_RADIATION: dict[int, float] = {
    9: 1, 10: 51, 11: 111, 12: 141, 13: 134, 14: 92, 15: 28,
}
REFERENCE_DAY = date(2025, 6, 15)


def reference_request(day: date | None = None) -> DaySimulationRequest:
    """Two roof strings (NWW 18 panels, SEE 26 panels) at the configured site."""
    panel = {
        "nominal_power_w": 375.0,
        "panel_efficiency": 0.2059,
        "overall_efficiency": 0.85,
        "panel_area_m2": 1.755 * 1.038,
        "slope_deg": 30.0,
    }
    return DaySimulationRequest(
        day=day or REFERENCE_DAY,
        location=LocationIn(
            latitude=settings.site_latitude,
            longitude=settings.site_longitude,
            timezone_offset=settings.site_timezone_offset,
            elevation=settings.site_elevation,
            pressure=settings.site_pressure,
            temperature=settings.site_temperature,
        ),
        strings=[
            PanelStringIn(name="NWW", panel_count=18, azimuth_deg=285.0, **panel),
            PanelStringIn(name="SEE", panel_count=26, azimuth_deg=105.0, **panel),
        ],
        radiation=dict(REFERENCE_RADIATION),
        step_minutes=settings.sample_step_minutes,
        position_method=settings.position_method,
    )


def _frames_out(frames: Sequence[SimulationFrame]) -> list[SimulationFrameOut]:
    return [
        SimulationFrameOut(
            timestamp=f.timestamp,
            azimuth=f.position.azimuth,
            zenith=f.position.zenith,
            altitude=f.position.altitude,
            irradiance=f.irradiance,
            strings=[StringFrameOut.model_validate(s) for s in f.strings],
        )
        for f in frames
    ]


def _events_out(events: Sequence[SunEvent]) -> list[SunEventOut]:
    return [
        SunEventOut(kind=e.kind.value, timestamp=e.timestamp, azimuth=e.azimuth)
        for e in events
    ]


def run_day_simulation(
    request: DaySimulationRequest,
    provider: SolarPositionProvider | None = None,
) -> DaySimulationResponse:
    """Validate, simulate and package one day.

    A solar position failure does not raise: the response is marked
    ``failed`` and carries the frames computed before the failing sample.
    """
    with run_context() as run_id:
        simulator = DaySimulator(
            location=request.location.to_engine(),
            day=request.day,
            strings=[s.to_engine() for s in request.strings],
            radiation=request.radiation_series(),
            provider=provider or make_position_provider(request.position_method),
            step_minutes=request.step_minutes,
        )

        logger.info(
            "Starting day simulation for %s",
            request.day.isoformat(),
            extra={
                "day": request.day.isoformat(),
                "latitude": request.location.latitude,
                "longitude": request.location.longitude,
                "strings": [s.name for s in request.strings],
            },
        )
        start = time.perf_counter()

        try:
            result = simulator.run()
        except PositionProviderError as exc:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            logger.error(
                "Day simulation failed at %s after %d frame(s): %s",
                exc.timestamp.isoformat(),
                len(simulator.frames),
                exc.reason,
                extra={
                    "sample_time": exc.timestamp.isoformat(),
                    "status": "failed",
                    "duration_ms": duration_ms,
                },
            )
            return DaySimulationResponse(
                run_id=run_id,
                status="failed",
                error_message=str(exc),
                day=request.day,
                frames=_frames_out(simulator.frames),
                events=_events_out(simulator.events),
                has_sun_transitions=bool(simulator.events),
            )

        energy = daily_energy_wh(result)
        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        logger.info(
            "Day simulation complete: %d frames, %d sun event(s) (%.1fms)",
            len(result.frames),
            len(result.events),
            duration_ms,
            extra={"status": "completed", "duration_ms": duration_ms},
        )

        return DaySimulationResponse(
            run_id=run_id,
            status="completed",
            day=request.day,
            frames=_frames_out(result.frames),
            events=_events_out(result.events),
            has_sun_transitions=result.has_sun_transitions,
            energy={name: StringEnergyOut(**vals) for name, vals in energy.items()},
            summary=build_day_summary(result),
        )
