"""Human-readable summaries of a simulated day."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from engine.simulation.day_runner import DaySimulationResult
from engine.solar.sun_events import SunEvent, SunEventKind

NO_TRANSITION_MESSAGE = "The sun does not rise or set on this day at the given location."


def _fmt(v: float | None, fmt_str: str = ",.0f", suffix: str = "") -> str:
    """Safe number formatting."""
    if v is None:
        return "N/A"
    return f"{v:{fmt_str}}{suffix}"


def _event_line(event: SunEvent) -> str:
    label = "Sunrise" if event.kind is SunEventKind.SUNRISE else "Sunset"
    return f"{label} at {event.timestamp:%H:%M} (Azimuth: {event.azimuth:.2f}°)"


def daily_energy_wh(result: DaySimulationResult) -> dict[str, dict[str, float]]:
    """Integrate each string's power over the day.

    Every sample's power is held for one sampling step.

    Returns
    -------
    dict
        ``{name: {"nominal_wh": ..., "irradiance_wh": ...}}``.
    """
    series = result.power_series()
    step_h = result.step_hours
    return {
        name: {
            "nominal_wh": float(np.sum(series[f"{name}_nominal_w"]) * step_h),
            "irradiance_wh": float(np.sum(series[f"{name}_irradiance_w"]) * step_h),
        }
        for name in result.string_names
    }


def sun_event_summary(events: Sequence[SunEvent], step_minutes: int = 60) -> str:
    """Describe the day's sunrise / sunset, or state that there was none.

    Times are the first sample at which the crossing was seen, so they
    are only as precise as the sampling step.
    """
    if not events:
        return NO_TRANSITION_MESSAGE

    sunrise = next((e for e in events if e.kind is SunEventKind.SUNRISE), None)
    sunset = next((e for e in events if e.kind is SunEventKind.SUNSET), None)

    lines: list[str] = []
    if sunrise is not None:
        lines.append(_event_line(sunrise))
    else:
        lines.append("No sunrise on this day (the sun was already up at the first sample).")
    if sunset is not None:
        lines.append(_event_line(sunset))
    else:
        lines.append("No sunset on this day (the sun is still up at the last sample).")

    extra = len(events) - sum(e is not None for e in (sunrise, sunset))
    if extra > 0:
        lines.append(f"{extra} further horizon crossing(s) were detected.")

    lines.append(f"Times are accurate to the {step_minutes}-minute sampling step.")
    return "\n".join(lines)


def build_day_summary(result: DaySimulationResult) -> str:
    """Multi-line text report: site, sun events, per-string peak and energy."""
    loc = result.location
    lines = [
        f"Day simulation for {result.day.isoformat()} at "
        f"({loc.latitude:.5f}, {loc.longitude:.5f}), UTC{loc.timezone_offset:+g}",
        "",
        sun_event_summary(result.events, result.step_minutes),
        "",
    ]

    energy = daily_energy_wh(result)
    series = result.power_series()
    header = f"{'String':<16}{'Peak nominal':>16}{'Peak irradiance':>18}{'Nominal':>14}{'Irradiance':>14}"
    lines.append(header)
    lines.append("-" * len(header))
    for name in result.string_names:
        nominal = series[f"{name}_nominal_w"]
        irr = series[f"{name}_irradiance_w"]
        lines.append(
            f"{name:<16}"
            f"{_fmt(float(nominal.max()) if nominal.size else None, ',.0f', ' W'):>16}"
            f"{_fmt(float(irr.max()) if irr.size else None, ',.0f', ' W'):>18}"
            f"{_fmt(energy[name]['nominal_wh'] / 1000.0, ',.2f', ' kWh'):>14}"
            f"{_fmt(energy[name]['irradiance_wh'] / 1000.0, ',.2f', ' kWh'):>14}"
        )
    return "\n".join(lines)
