"""
features/correlation.py — ECG ↔ PPG cross-channel correlation
==============================================================
Measures how well the two peak streams agree in time.  Each channel's
recent peaks are rendered as a smooth "beat envelope" (a Gaussian pulse
centred on every peak) on a common 10 ms grid covering the window where
both channels have data.  The ECG envelope is shifted forward by the
current PTT so that, for a coherent recording, every R-peak bump lands
on top of its PPG bump.

    r = pearson(ecg_envelope(t − PTT), ppg_envelope(t))

Only peaks within `CORRELATION_MAX_SPAN_MS` (10 beats at the slowest valid
rate) of each channel's newest peak are rendered, so the grid never holds
more than a few thousand points however long the sensor was silent.

The score is reported as round(100 · r), an integer in [−100, 100].
Missing beats on either channel, spurious detections or an unstable
transit time all pull the score down.
"""

from collections.abc import Sequence

import numpy as np
from scipy.stats import pearsonr

from config import (
    CORRELATION_GRID_MS,
    CORRELATION_MAX_SPAN_MS,
    CORRELATION_MIN_PEAKS,
    CORRELATION_PULSE_SIGMA_MS,
)
from dsp.peak_detector import Peak


def _beat_envelope(times_ms: np.ndarray, grid: np.ndarray, sigma_ms: float) -> np.ndarray:
    # Sum of Gaussian bumps, one per peak; shape (len(grid),)
    offsets = grid[:, None] - times_ms[None, :]
    return np.exp(-0.5 * (offsets / sigma_ms) ** 2).sum(axis=1)


def _recent(times_ms: np.ndarray, max_span_ms: float) -> np.ndarray:
    # Drop peaks stranded before a sensor gap
    return times_ms[times_ms >= times_ms.max() - max_span_ms]


def calculate_correlation(
    ecg_peaks: Sequence[Peak],
    ppg_peaks: Sequence[Peak],
    ptt_ms: float,
    grid_ms: float = CORRELATION_GRID_MS,
    sigma_ms: float = CORRELATION_PULSE_SIGMA_MS,
    max_span_ms: float = CORRELATION_MAX_SPAN_MS,
) -> int:
    """
    Pearson correlation (×100) between the aligned ECG and PPG beat envelopes.

    Parameters
    ----------
    ecg_peaks : Sequence[Peak]   Recent ECG peaks, oldest-first.
    ppg_peaks : Sequence[Peak]   Recent PPG peaks, oldest-first.
    ptt_ms    : float            Current PTT; ≤0 means no alignment shift.

    Returns
    -------
    int
        Correlation in [−100, 100]; 0 if either channel has fewer than 3
        peaks within `max_span_ms` of its newest peak, the channels do not
        overlap in time, or an envelope is flat.
    """
    if len(ecg_peaks) < CORRELATION_MIN_PEAKS or len(ppg_peaks) < CORRELATION_MIN_PEAKS:
        return 0

    shift = ptt_ms if ptt_ms > 0 else 0.0
    ecg_times = _recent(np.array([p.timestamp for p in ecg_peaks], dtype=np.float64) + shift, max_span_ms)
    ppg_times = _recent(np.array([p.timestamp for p in ppg_peaks], dtype=np.float64), max_span_ms)
    if ecg_times.size < CORRELATION_MIN_PEAKS or ppg_times.size < CORRELATION_MIN_PEAKS:
        return 0

    # Overlapping span, padded by a couple of pulse widths on each side
    start = max(ecg_times.min(), ppg_times.min()) - 2 * sigma_ms
    stop = min(ecg_times.max(), ppg_times.max()) + 2 * sigma_ms
    if stop <= start:
        return 0

    grid = np.arange(start, stop + grid_ms, grid_ms)
    ecg_env = _beat_envelope(ecg_times, grid, sigma_ms)
    ppg_env = _beat_envelope(ppg_times, grid, sigma_ms)

    if grid.size < 3 or np.std(ecg_env) == 0 or np.std(ppg_env) == 0:
        return 0

    r, _ = pearsonr(ecg_env, ppg_env)
    if not np.isfinite(r):
        return 0
    return int(round(float(np.clip(r, -1.0, 1.0)) * 100))
