"""
features/hrv.py — Heart Rate Variability & rhythm from RR intervals
=====================================================================
All three quantities here are derived from the same RR-interval ring the
ECG detector fills, so heart rate, HRV and rhythm regularity always agree
with the peaks used for PTT.

    RMSSD — Root Mean Square of Successive Differences over the last
            ≤50 intervals.  Reported as 0 with fewer than 10 intervals
            (a conservative floor, not an error).
    Rhythm — regular iff stddev < 0.2 × mean over the ≤10 most recent
            intervals.  Fewer than 5 intervals → reported irregular
            (insufficient evidence ⇒ do not claim regularity).
    Heart rate — 60 000 / mean(RR) in BPM.

⚠️  A handful of beats gives a high-variance RMSSD.  Suitable for trend
    comparisons only, not clinical assessment.
"""

from collections.abc import Sequence

import numpy as np

from config import (
    HRV_MIN_INTERVALS,
    RHYTHM_MAX_CV,
    RHYTHM_MIN_INTERVALS,
    RHYTHM_WINDOW,
    RR_BUFFER_SIZE,
    RR_MAX_MS,
    RR_MIN_MS,
)


def is_valid_rr(rr_ms: float) -> bool:
    """RR intervals outside 300–2000 ms (200–30 BPM) are artefacts."""
    return RR_MIN_MS <= rr_ms <= RR_MAX_MS


def compute_rmssd(rr_intervals: Sequence[float], window: int = RR_BUFFER_SIZE) -> float:
    """
    RMSSD in ms over the most recent `window` intervals (oldest-first input).

    Returns 0.0 when fewer than `HRV_MIN_INTERVALS` intervals are available.
    """
    if len(rr_intervals) < HRV_MIN_INTERVALS:
        return 0.0

    rr_ms = np.asarray(rr_intervals[-window:], dtype=np.float64)
    successive_diffs = np.diff(rr_ms)
    if successive_diffs.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(successive_diffs ** 2)))


def is_rhythm_regular(rr_intervals: Sequence[float]) -> bool:
    """True when the recent RR intervals have a coefficient of variation < 0.2."""
    if len(rr_intervals) < RHYTHM_MIN_INTERVALS:
        return False

    recent = np.asarray(rr_intervals[-RHYTHM_WINDOW:], dtype=np.float64)
    mean = recent.mean()
    # Population stddev (divide by N)
    return bool(recent.std() < RHYTHM_MAX_CV * mean)


def heart_rate_from_rr(rr_intervals: Sequence[float], window: int = RHYTHM_WINDOW) -> float:
    """Mean heart rate in BPM over the recent intervals; 0.0 with fewer than 2."""
    if len(rr_intervals) < 2:
        return 0.0
    mean_rr = float(np.mean(rr_intervals[-window:]))
    return 60000.0 / mean_rr if mean_rr > 0 else 0.0
