"""
features/ptt.py — Pulse Transit Time & Pulse Wave Velocity
===========================================================
PTT is the delay between an ECG R-peak and the arrival of the same
pressure pulse at the finger (the PPG peak).  It shortens as arterial
pressure rises, which is what the calibration model exploits.

Matching rule
-------------
For each of the most recent ≤10 ECG peaks (oldest first), scan the most
recent ≤10 PPG peaks and take the **first** one whose delay lies in

    50 ms ≤ ppg.timestamp − ecg.timestamp ≤ 400 ms

First match wins per ECG peak.  A PPG peak may be claimed by more than one
ECG peak when their windows overlap — this is accepted, not corrected.
The PTT is the arithmetic mean of all matched delays.

PWV
---
    path_length = 0.4 × height          (heart → finger, metres)
    PWV         = path_length / (PTT / 1000)
"""

from collections.abc import Sequence

from config import (
    PTT_INVALID,
    PTT_MAX_MS,
    PTT_MIN_MS,
    PTT_PEAK_WINDOW,
    PWV_PATH_FRACTION,
)
from dsp.peak_detector import Peak


def match_peak_pairs(
    ecg_peaks: Sequence[Peak],
    ppg_peaks: Sequence[Peak],
    window: int = PTT_PEAK_WINDOW,
) -> list[tuple[Peak, Peak]]:
    """
    Pair each recent ECG peak with the first PPG peak inside the delay window.

    Both sequences must be ordered oldest-first.
    """
    pairs = []
    for ecg in ecg_peaks[-window:]:
        for ppg in ppg_peaks[-window:]:
            delta = ppg.timestamp - ecg.timestamp
            if ppg.timestamp > ecg.timestamp and PTT_MIN_MS <= delta <= PTT_MAX_MS:
                pairs.append((ecg, ppg))
                break
    return pairs


def calculate_ptt(
    ecg_peaks: Sequence[Peak],
    ppg_peaks: Sequence[Peak],
    window: int = PTT_PEAK_WINDOW,
) -> float:
    """
    Average PTT in ms, or `PTT_INVALID` (−1) when it cannot be computed.

    Invalid when either channel has fewer than 2 peaks or nothing matched.
    """
    if len(ecg_peaks) < 2 or len(ppg_peaks) < 2:
        return PTT_INVALID

    pairs = match_peak_pairs(ecg_peaks, ppg_peaks, window)
    if not pairs:
        return PTT_INVALID

    total = sum(ppg.timestamp - ecg.timestamp for ecg, ppg in pairs)
    return total / len(pairs)


def is_valid_ptt(ptt: float) -> bool:
    return ptt > 0


def calculate_pwv(ptt_ms: float, height_cm: float) -> float:
    """Pulse wave velocity in m/s; 0 for a non-positive PTT."""
    if ptt_ms <= 0:
        return 0.0
    path_length_m = PWV_PATH_FRACTION * height_cm / 100.0
    return path_length_m / (ptt_ms / 1000.0)
