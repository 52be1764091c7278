"""
Sunrise / sunset detection over a sequence of sampled sun positions.

:class:`SunEventDetector` is a two-state machine (sun below / above the
horizon) fed with samples in increasing time order.  A sunrise is
reported at the first sample whose altitude is positive after the sun was
below the horizon, a sunset at the first sample whose altitude is
negative after it was above.  The reported instant is therefore the
sample at which the sign change is first observed; no interpolation
between samples is attempted, so the precision is one sampling step.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Callable


class SunEventKind(str, enum.Enum):
    SUNRISE = "sunrise"
    SUNSET = "sunset"


class HorizonState(str, enum.Enum):
    BELOW_HORIZON = "below_horizon"
    ABOVE_HORIZON = "above_horizon"


@dataclass(frozen=True)
class SunEvent:
    kind: SunEventKind
    timestamp: datetime
    azimuth: float


class SunEventDetector:
    """Stateful horizon-crossing detector for one day's samples.

    The state before the first sample is unset; the first sample only
    establishes it (no event is emitted for it).  An altitude of exactly
    zero never changes the state.

    Parameters
    ----------
    on_event : callable or None
        Optional ``callback(event)`` invoked for every emitted event, in
        addition to the event being returned from :meth:`update` and
        recorded in :attr:`events`.
    """

    def __init__(self, on_event: Callable[[SunEvent], None] | None = None) -> None:
        self._on_event = on_event
        self._state: HorizonState | None = None
        self._last_timestamp: datetime | None = None
        self._events: list[SunEvent] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> HorizonState | None:
        return self._state

    @property
    def events(self) -> list[SunEvent]:
        """Events emitted so far, oldest first."""
        return list(self._events)

    def update(self, timestamp: datetime, altitude: float, azimuth: float) -> SunEvent | None:
        """Feed one sample and return the event it triggers, if any.

        Raises
        ------
        ValueError
            If *timestamp* is not later than the previous sample.
        """
        if self._last_timestamp is not None and timestamp <= self._last_timestamp:
            raise ValueError(
                f"Samples must be in increasing time order: {timestamp.isoformat()} "
                f"after {self._last_timestamp.isoformat()}"
            )
        self._last_timestamp = timestamp

        if self._state is None:
            self._state = (
                HorizonState.ABOVE_HORIZON if altitude > 0 else HorizonState.BELOW_HORIZON
            )
            return None

        event: SunEvent | None = None
        if self._state is HorizonState.BELOW_HORIZON and altitude > 0:
            self._state = HorizonState.ABOVE_HORIZON
            event = SunEvent(SunEventKind.SUNRISE, timestamp, azimuth)
        elif self._state is HorizonState.ABOVE_HORIZON and altitude < 0:
            self._state = HorizonState.BELOW_HORIZON
            event = SunEvent(SunEventKind.SUNSET, timestamp, azimuth)

        if event is not None:
            self._events.append(event)
            if self._on_event is not None:
                self._on_event(event)
        return event

    def reset(self) -> None:
        """Forget all samples and events."""
        self._state = None
        self._last_timestamp = None
        self._events.clear()


def detect_sun_events(
    samples: Iterable[tuple[datetime, float, float]],
) -> list[SunEvent]:
    """Run a fresh detector over ``(timestamp, altitude, azimuth)`` samples."""
    detector = SunEventDetector()
    for timestamp, altitude, azimuth in samples:
        detector.update(timestamp, altitude, azimuth)
    return detector.events
