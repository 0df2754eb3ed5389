"""
dsp/filters.py — Per-channel smoothing before peak detection
=============================================================
A trailing moving average over the last `FILTER_WINDOW` raw values:

    filtered = mean(last 10 raw values)

Why a moving average rather than a Butterworth bandpass?
--------------------------------------------------------
* It is causal and needs no history beyond the window, so each channel
  can be filtered sample-by-sample as the sensor pushes data in.
* It is deterministic and O(window) per sample.
* Detection only needs peak *timing*, not waveform morphology, and a
  short boxcar is enough to suppress single-sample spikes.

The window is pre-zeroed, so the first `window - 1` outputs ramp up from 0.
"""

import numpy as np

from config import FILTER_WINDOW
from dsp.ring_buffer import RingBuffer


class MovingAverageFilter:
    """
    Stateful trailing moving average (one instance per channel).

    Parameters
    ----------
    window : int   Number of raw values averaged.
    """

    def __init__(self, window: int = FILTER_WINDOW):
        if window <= 0:
            raise ValueError(f"Filter window must be positive, got {window}.")
        self._window = window
        self._buffer: RingBuffer[float] = RingBuffer(window, 0.0)

    @property
    def window(self) -> int:
        return self._window

    def apply(self, value: float) -> float:
        """Push one raw value and return the smoothed output."""
        self._buffer.append(float(value))
        # Average over the full window, including pre-zeroed slots
        return float(np.mean(self._buffer.slots()))

    def reset(self) -> None:
        self._buffer.clear()
