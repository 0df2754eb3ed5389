"""
dsp/peak_detector.py — Adaptive-threshold peak state machine
=============================================================
Converts a filtered sample stream into a timestamped peak stream.  One
detector instance is created per channel (ECG R-peaks, PPG pulse peaks);
all state lives on the instance, so two channels or two monitors never
share hidden state.

States
------
    BELOW       waiting for a rising edge above the threshold
    RISING      above threshold and climbing; waiting for the turn-over
    REFRACTORY  a turn-over was seen; the candidate is checked against the
                refractory period and the detector drops back to BELOW

Transitions
-----------
    BELOW → RISING       value > threshold, derivative > 0, and either the
                         derivative just turned positive (≤0 → >0) or the
                         previous value was still at/below the threshold
    RISING → REFRACTORY  derivative turns from ≥0 to <0 (peak candidate)
    REFRACTORY → BELOW   immediately; the peak fires only if
                         timestamp − last_peak_timestamp > refractory_ms,
                         otherwise the candidate is discarded silently.
                         A timestamp earlier than the last peak (wrapped
                         or stepped-back clock) is accepted and re-anchors
                         the refractory window.
"""

from dataclasses import dataclass
from enum import Enum

from utils.logger import get_logger

logger = get_logger("dsp.peaks")


@dataclass(frozen=True)
class Sample:
    """One timestamped scalar reading from a sensor."""
    value: float
    timestamp: int          # ms


@dataclass(frozen=True)
class Peak:
    """A confirmed peak: confirming sample slot and time, turn-over amplitude."""
    position: int
    value: float
    timestamp: int          # ms


class PeakState(str, Enum):
    BELOW = "below"
    RISING = "rising"
    REFRACTORY = "refractory"


class PeakDetector:
    """
    Derivative-based peak detector with refractory enforcement.

    Parameters
    ----------
    name          : str     Channel label used in log lines ("ECG" / "PPG").
    threshold     : float   Initial amplitude threshold (sensor units).
    refractory_ms : int     Minimum spacing between confirmed peaks.
    """

    def __init__(self, name: str, threshold: float, refractory_ms: int):
        self.name = name
        self.threshold = float(threshold)
        self.refractory_ms = int(refractory_ms)
        self.reset()

    def reset(self) -> None:
        self.state = PeakState.BELOW
        self.last_value = 0.0
        self.last_derivative = 0.0
        self.last_peak_timestamp: int | None = None
        self.discarded = 0

    def update(self, value: float, timestamp: int, position: int = 0) -> Peak | None:
        """
        Feed one filtered value.

        Returns
        -------
        Peak | None
            The confirmed peak if this sample completed one, else None.
        """
        derivative = value - self.last_value
        peak = None

        if self.state is PeakState.BELOW:
            turned_up = self.last_derivative <= 0
            crossed = self.last_value <= self.threshold
            if value > self.threshold and derivative > 0 and (turned_up or crossed):
                self.state = PeakState.RISING

        elif self.state is PeakState.RISING:
            if derivative < 0 and self.last_derivative >= 0:
                self.state = PeakState.REFRACTORY
                peak = self._resolve_candidate(self.last_value, timestamp, position)
                self.state = PeakState.BELOW

        self.last_value = value
        self.last_derivative = derivative
        return peak

    def _resolve_candidate(self, value: float, timestamp: int, position: int) -> Peak | None:
        last = self.last_peak_timestamp
        if last is not None and timestamp < last:
            # Clock wrapped or stepped back: re-anchor on this peak
            logger.debug("%s clock went back %d ms; refractory re-anchored.",
                         self.name, last - timestamp)
        elif last is not None and timestamp - last <= self.refractory_ms:
            self.discarded += 1
            logger.debug(
                "%s candidate at %d ms discarded (%d ms after previous peak).",
                self.name, timestamp, timestamp - last,
            )
            return None

        self.last_peak_timestamp = timestamp
        logger.debug("%s peak at %d ms (value=%.1f).", self.name, timestamp, value)
        return Peak(position=position, value=value, timestamp=timestamp)
