"""
model/quality.py — Signal quality score & validity gate
=========================================================
Composite confidence score, starting at 100 and docked for each
problem found:

    −30  either channel has fewer than 5 confirmed peaks
    −20  heart rhythm irregular (or too few RR intervals to tell)
    −25  |ECG↔PPG correlation| < 50
    −25  more than 10 s since the last valid reading (or never valid)

The result is floored at 0, so the score always lies in [0, 100].

A reading is only flagged valid when *all* of these hold:

    quality   > 70          (strict — exactly 70 fails)
    systolic  ∈ [70, 250]   mmHg
    diastolic ∈ [40, 150]   mmHg
    PTT       ∈ [50, 500]   ms

Out-of-range estimates are gated, never "corrected".
"""

from dataclasses import dataclass

from config import (
    DIASTOLIC_RANGE,
    PTT_VALID_RANGE,
    QUALITY_CORRELATION_MIN,
    QUALITY_CORRELATION_PENALTY,
    QUALITY_MIN_PEAKS,
    QUALITY_PEAK_PENALTY,
    QUALITY_RHYTHM_PENALTY,
    QUALITY_STALE_MS,
    QUALITY_STALE_PENALTY,
    SYSTOLIC_RANGE,
    VALID_MIN_QUALITY,
)


@dataclass(frozen=True)
class QualityInputs:
    ecg_peak_count: int
    ppg_peak_count: int
    rhythm_regular: bool
    correlation: int
    now_ms: int
    last_valid_ms: int | None    # None → never produced a valid reading


def is_stale(now_ms: int, last_valid_ms: int | None, limit_ms: int = QUALITY_STALE_MS) -> bool:
    if last_valid_ms is None:
        return True
    return now_ms - last_valid_ms > limit_ms


def assess_signal_quality(inputs: QualityInputs) -> float:
    """Composite quality score in [0, 100]."""
    quality = 100.0

    if inputs.ecg_peak_count < QUALITY_MIN_PEAKS or inputs.ppg_peak_count < QUALITY_MIN_PEAKS:
        quality -= QUALITY_PEAK_PENALTY

    if not inputs.rhythm_regular:
        quality -= QUALITY_RHYTHM_PENALTY

    if abs(inputs.correlation) < QUALITY_CORRELATION_MIN:
        quality -= QUALITY_CORRELATION_PENALTY

    if is_stale(inputs.now_ms, inputs.last_valid_ms):
        quality -= QUALITY_STALE_PENALTY

    return max(0.0, min(100.0, quality))


def _within(value: float, bounds: tuple[float, float]) -> bool:
    low, high = bounds
    return low <= value <= high


def is_valid_reading(quality: float, systolic: float, diastolic: float, ptt: float) -> bool:
    """Validity gate applied to every computed estimate."""
    return (
        quality > VALID_MIN_QUALITY
        and _within(systolic, SYSTOLIC_RANGE)
        and _within(diastolic, DIASTOLIC_RANGE)
        and _within(ptt, PTT_VALID_RANGE)
    )
