"""Tests for engine.simulation.day_runner — single-day simulation driver."""

from __future__ import annotations

from datetime import date, timedelta

import numpy as np
import pytest

from engine.simulation.day_runner import DaySimulator, sample_times
from engine.solar.orientation import orientation_factor
from engine.solar.position import (
    PositionProviderError,
    SpaPositionProvider,
    SpencerPositionProvider,
)
from engine.solar.sun_events import SunEventKind
from engine.weather.radiation import RadiationSeries

JUNE_DAY = date(2025, 6, 15)
FORECAST_HOURS = range(9, 16)


# ======================================================================
# Sampling
# ======================================================================


class TestSampleTimes:
    def test_hourly_default(self):
        times = sample_times(JUNE_DAY)
        assert [t.hour for t in times] == list(range(24))
        assert all(t.minute == 0 for t in times)

    def test_quarter_hour(self):
        times = sample_times(JUNE_DAY, 15)
        assert len(times) == 96
        assert times[1] - times[0] == timedelta(minutes=15)

    @pytest.mark.parametrize("step", [0, -60, 7, 1441])
    def test_invalid_step(self, step):
        with pytest.raises(ValueError, match="step_minutes"):
            sample_times(JUNE_DAY, step)


# ======================================================================
# Construction errors
# ======================================================================


class TestDaySimulatorErrors:
    def test_no_strings(self, gothenburg, summer_provider):
        with pytest.raises(ValueError, match="At least one panel string"):
            DaySimulator(gothenburg, JUNE_DAY, [], provider=summer_provider)

    def test_duplicate_names(self, gothenburg, nww_string, summer_provider):
        with pytest.raises(ValueError, match="unique"):
            DaySimulator(gothenburg, JUNE_DAY, [nww_string, nww_string], provider=summer_provider)

    def test_invalid_radiation_mapping(self, gothenburg, roof_strings, summer_provider):
        with pytest.raises(ValueError, match="hour"):
            DaySimulator(
                gothenburg, JUNE_DAY, roof_strings,
                radiation={24: 100.0}, provider=summer_provider,
            )

    def test_default_provider_is_spa(self, gothenburg, roof_strings):
        sim = DaySimulator(gothenburg, JUNE_DAY, roof_strings)
        assert isinstance(sim.provider, SpaPositionProvider)


# ======================================================================
# Simulation with a fixed-position provider
# ======================================================================


class TestDaySimulatorFixedPositions:
    def test_frames_in_order(self, gothenburg, roof_strings, forecast_radiation, summer_provider):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings,
            radiation=forecast_radiation, provider=summer_provider,
        ).run()

        assert len(result.frames) == 24
        stamps = [f.timestamp for f in result.frames]
        assert stamps == sorted(stamps)
        assert [c.hour for c in summer_provider.calls] == list(range(24))
        assert all(f.timestamp.utcoffset() == timedelta(hours=1) for f in result.frames)

    def test_events(self, gothenburg, roof_strings, summer_provider):
        result = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=summer_provider).run()

        assert [e.kind for e in result.events] == [SunEventKind.SUNRISE, SunEventKind.SUNSET]
        assert result.events[0].timestamp.hour == 4
        assert result.events[0].azimuth == pytest.approx(60.0)
        assert result.events[1].timestamp.hour == 21
        assert result.has_sun_transitions
        assert result.first_event(SunEventKind.SUNSET) is result.events[1]

    def test_string_values_match_models(self, gothenburg, roof_strings, forecast_radiation, summer_provider):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings,
            radiation=forecast_radiation, provider=summer_provider,
        ).run()

        frame = result.frames[12]
        pos = frame.position
        assert frame.irradiance == 141.0
        for cfg in roof_strings:
            sf = frame.string(cfg.name)
            factor = orientation_factor(pos.azimuth, pos.zenith, cfg.azimuth, cfg.slope)
            assert sf.orientation_factor == pytest.approx(factor)
            assert sf.nominal_power_w == pytest.approx(
                cfg.nominal_power * cfg.panel_count * factor * cfg.overall_efficiency
            )
            assert sf.irradiance_power_w == pytest.approx(
                141.0 * factor * cfg.panel_area * cfg.panel_count
                * cfg.panel_efficiency * cfg.overall_efficiency
            )

    def test_unknown_string_name(self, gothenburg, roof_strings, summer_provider):
        result = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=summer_provider).run()
        with pytest.raises(KeyError):
            result.frames[0].string("NOPE")

    def test_night_frames_are_zero(self, gothenburg, roof_strings, forecast_radiation, summer_provider):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings,
            radiation=forecast_radiation, provider=summer_provider,
        ).run()
        for frame in result.frames:
            if frame.position.altitude < 0:
                for sf in frame.strings:
                    assert sf.orientation_factor == 0.0
                    assert sf.nominal_power_w == 0.0
                    assert sf.irradiance_power_w == 0.0

    def test_no_radiation_means_no_irradiance_power(self, gothenburg, roof_strings, summer_provider):
        result = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=summer_provider).run()
        series = result.power_series()
        assert np.all(series["NWW_irradiance_w"] == 0.0)
        assert np.all(series["SEE_irradiance_w"] == 0.0)
        assert series["SEE_nominal_w"].max() > 0.0

    def test_polar_night_and_day(self, gothenburg, roof_strings, fixed_provider):
        night = fixed_provider(default=(180.0, 100.0))
        day = fixed_provider(default=(180.0, 70.0))

        res_night = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=night).run()
        res_day = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=day).run()

        assert res_night.events == ()
        assert not res_night.has_sun_transitions
        assert res_day.events == ()
        assert res_day.first_event(SunEventKind.SUNRISE) is None

    def test_sub_hourly_uses_hour_irradiance(self, gothenburg, roof_strings, summer_provider):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings,
            radiation={12: 100.0}, provider=summer_provider, step_minutes=30,
        ).run()
        assert len(result.frames) == 48
        irr = {(f.timestamp.hour, f.timestamp.minute): f.irradiance for f in result.frames}
        assert irr[(12, 0)] == 100.0
        assert irr[(12, 30)] == 100.0
        assert irr[(13, 0)] == 0.0

    def test_power_series_shape(self, gothenburg, roof_strings, summer_provider):
        series = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=summer_provider).run().power_series()
        np.testing.assert_array_equal(series["hour"], np.arange(24, dtype=np.float64))
        for key in ("NWW_nominal_w", "NWW_irradiance_w", "NWW_orientation", "SEE_nominal_w"):
            assert series[key].shape == (24,)

    def test_rerun_is_deterministic(self, gothenburg, roof_strings, summer_provider):
        sim = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=summer_provider)
        first = sim.run()
        second = sim.run()
        assert first == second
        assert len(sim.frames) == 24

    def test_progress_callback(self, gothenburg, roof_strings, summer_provider):
        calls = []
        DaySimulator(
            gothenburg, JUNE_DAY, roof_strings, provider=summer_provider,
            progress_callback=lambda step, frac: calls.append(frac),
        ).run()
        assert calls[0] == 0.0
        assert calls[-1] == 1.0
        assert calls == sorted(calls)

    def test_failing_progress_callback_does_not_abort(self, gothenburg, roof_strings, summer_provider):
        def _bad(step, frac):
            raise RuntimeError("ui gone")

        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings, provider=summer_provider,
            progress_callback=_bad,
        ).run()
        assert len(result.frames) == 24


# ======================================================================
# Provider failure
# ======================================================================


class TestDaySimulatorProviderFailure:
    def test_failure_propagates_with_partial_frames(
        self, gothenburg, roof_strings, failing_provider, summer_positions,
    ):
        provider = failing_provider(fail_at_hour=10, positions=summer_positions)
        sim = DaySimulator(gothenburg, JUNE_DAY, roof_strings, provider=provider)

        with pytest.raises(PositionProviderError, match="T10:00:00") as exc_info:
            sim.run()

        assert exc_info.value.timestamp.hour == 10
        # Hours 0-9 were computed, nothing for the failing instant
        assert [f.timestamp.hour for f in sim.frames] == list(range(10))
        assert [e.kind for e in sim.events] == [SunEventKind.SUNRISE]

    def test_failure_on_first_sample(self, gothenburg, roof_strings, failing_provider):
        sim = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings, provider=failing_provider(fail_at_hour=0),
        )
        with pytest.raises(PositionProviderError):
            sim.run()
        assert sim.frames == []


# ======================================================================
# End-to-end with real ephemeris
# ======================================================================


class TestDaySimulatorGothenburg:
    """Central Gothenburg, mid-June, CET clock, hourly samples."""

    @pytest.mark.parametrize("provider_cls", [SpaPositionProvider, SpencerPositionProvider])
    def test_one_sunrise_one_sunset(self, gothenburg, roof_strings, forecast_radiation, provider_cls):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings,
            radiation=forecast_radiation, provider=provider_cls(),
        ).run()

        assert [e.kind for e in result.events] == [SunEventKind.SUNRISE, SunEventKind.SUNSET]
        sunrise, sunset = result.events
        assert 3 <= sunrise.timestamp.hour <= 5
        assert 21 <= sunset.timestamp.hour <= 23
        # Rises in the north-east, sets in the north-west
        assert 0.0 < sunrise.azimuth < 90.0
        assert 270.0 < sunset.azimuth < 360.0

    def test_irradiance_power_only_in_forecast_hours(self, gothenburg, roof_strings, forecast_radiation):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings,
            radiation=forecast_radiation, provider=SpaPositionProvider(),
        ).run()

        for frame in result.frames:
            for sf in frame.strings:
                if frame.timestamp.hour not in FORECAST_HOURS:
                    assert sf.irradiance_power_w == 0.0
                assert sf.irradiance_power_w >= 0.0
                assert sf.nominal_power_w >= 0.0
                assert 0.0 <= sf.orientation_factor <= 1.0

        noon = result.frames[12]
        for sf in noon.strings:
            assert sf.orientation_factor > 0.0
            assert sf.irradiance_power_w > 0.0

    def test_zenith_altitude_complement(self, gothenburg, roof_strings):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings, provider=SpaPositionProvider(),
        ).run()
        for frame in result.frames:
            assert frame.position.zenith == pytest.approx(90.0 - frame.position.altitude)

    def test_morning_favours_south_east_roof(self, gothenburg, roof_strings):
        result = DaySimulator(
            gothenburg, JUNE_DAY, roof_strings, provider=SpaPositionProvider(),
        ).run()
        morning = result.frames[8]
        evening = result.frames[18]
        assert morning.string("SEE").orientation_factor > morning.string("NWW").orientation_factor
        assert evening.string("NWW").orientation_factor > evening.string("SEE").orientation_factor


class TestDaySimulatorPolar:
    @pytest.mark.parametrize("day", [date(2025, 6, 21), date(2025, 12, 21)])
    def test_no_events_in_polar_day_or_night(self, longyearbyen, roof_strings, day):
        result = DaySimulator(
            longyearbyen, day, roof_strings,
            radiation=RadiationSeries({12: 100.0}), provider=SpaPositionProvider(),
        ).run()
        assert result.events == ()
        assert not result.has_sun_transitions

    def test_polar_night_produces_no_power(self, longyearbyen, roof_strings):
        result = DaySimulator(
            longyearbyen, date(2025, 12, 21), roof_strings,
            radiation=RadiationSeries({h: 50.0 for h in range(24)}),
            provider=SpaPositionProvider(),
        ).run()
        series = result.power_series()
        for name in ("NWW", "SEE"):
            assert np.all(series[f"{name}_nominal_w"] == 0.0)
            assert np.all(series[f"{name}_irradiance_w"] == 0.0)
