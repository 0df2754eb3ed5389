"""
model/calibration.py — Per-user PTT → BP calibration
======================================================

⚠️  DISCLAIMER: Even after calibration the output is an ESTIMATE.  A
    linear PTT/BP relationship holds only over a narrow pressure range
    and drifts with posture, vasomotor tone and time.

────────────────────────────────────────────────────────────────────────
Model
────────────────────────────────────────────────────────────────────────
    systolic  = systolic_slope  · PTT + systolic_intercept
    diastolic = diastolic_slope · PTT + diastolic_intercept

Until two reference readings exist the population default is used
(slope −1.2 / −0.8, intercept 180 / 120 mmHg).  From two points on, both
lines are refitted by ordinary least squares every time a point is added:

    slope     = (n·Σxy − Σx·Σy) / (n·Σx² − (Σx)²)
    intercept = (Σy − slope·Σx) / n

If every stored PTT is identical the denominator vanishes; the fit is
refused and the previous coefficients are kept.

Storage
-------
At most 5 points.  Each point is a deliberate clinical reference, so a
full store rejects new points instead of evicting old ones.
────────────────────────────────────────────────────────────────────────
"""

import math
from dataclasses import dataclass

import numpy as np

from config import (
    DEFAULT_DIASTOLIC_INTERCEPT,
    DEFAULT_DIASTOLIC_SLOPE,
    DEFAULT_SYSTOLIC_INTERCEPT,
    DEFAULT_SYSTOLIC_SLOPE,
    MAX_CALIBRATION_POINTS,
)
from utils.logger import get_logger

logger = get_logger("model.calibration")


@dataclass(frozen=True)
class CalibrationPoint:
    ptt: float          # ms
    systolic: float     # mmHg
    diastolic: float    # mmHg
    timestamp: int      # ms


@dataclass(frozen=True)
class Coefficients:
    systolic_slope: float = DEFAULT_SYSTOLIC_SLOPE
    systolic_intercept: float = DEFAULT_SYSTOLIC_INTERCEPT
    diastolic_slope: float = DEFAULT_DIASTOLIC_SLOPE
    diastolic_intercept: float = DEFAULT_DIASTOLIC_INTERCEPT

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (
            self.systolic_slope, self.systolic_intercept,
            self.diastolic_slope, self.diastolic_intercept,
        ))


POPULATION_DEFAULT = Coefficients()


def fit_line(x: np.ndarray, y: np.ndarray) -> tuple[float, float] | None:
    """
    Closed-form least-squares fit of y = slope·x + intercept.

    Returns None when the x values are (numerically) all identical.
    """
    n = x.size
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_x2 = (x * x).sum()

    denominator = n * sum_x2 - sum_x * sum_x
    # Relative tolerance: cancellation leaves tiny residues for equal x
    if abs(denominator) <= 1e-9 * max(n * sum_x2, 1.0):
        return None

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    if not (math.isfinite(slope) and math.isfinite(intercept)):
        return None
    return float(slope), float(intercept)


class CalibrationModel:
    """Bounded store of reference points plus the fitted coefficients."""

    def __init__(self, capacity: int = MAX_CALIBRATION_POINTS):
        if capacity <= 0:
            raise ValueError(f"Calibration capacity must be positive, got {capacity}.")
        self.capacity = capacity
        self._points: list[CalibrationPoint] = []
        self.coefficients = POPULATION_DEFAULT

    @property
    def points(self) -> tuple[CalibrationPoint, ...]:
        return tuple(self._points)

    @property
    def count(self) -> int:
        return len(self._points)

    @property
    def is_full(self) -> bool:
        return len(self._points) >= self.capacity

    @property
    def is_default(self) -> bool:
        """True while no reference point has been added."""
        return not self._points

    def add_point(self, ptt: float, systolic: float, diastolic: float, timestamp: int = 0) -> bool:
        """Store a reference reading and refit.  False if the store is full or PTT ≤ 0."""
        if self.is_full:
            logger.warning("Maximum calibration points reached (%d).", self.capacity)
            return False
        if not (ptt > 0 and math.isfinite(ptt)):
            logger.warning("Cannot calibrate: invalid PTT %.1f.", ptt)
            return False

        self._points.append(CalibrationPoint(ptt, systolic, diastolic, timestamp))
        self._refit()
        logger.info(
            "Calibration point added: PTT=%.1f ms, BP=%.0f/%.0f mmHg (%d/%d).",
            ptt, systolic, diastolic, self.count, self.capacity,
        )
        return True

    def clear(self) -> None:
        self._points.clear()
        self.coefficients = POPULATION_DEFAULT
        logger.info("Calibration cleared — population default restored.")

    def predict(self, ptt: float) -> tuple[float, float]:
        """(systolic, diastolic) in mmHg for the given PTT, before compensation."""
        c = self.coefficients
        return (
            c.systolic_slope * ptt + c.systolic_intercept,
            c.diastolic_slope * ptt + c.diastolic_intercept,
        )

    def _refit(self) -> None:
        if len(self._points) < 2:
            return

        x = np.array([p.ptt for p in self._points], dtype=np.float64)
        systolic_fit = fit_line(x, np.array([p.systolic for p in self._points], dtype=np.float64))
        diastolic_fit = fit_line(x, np.array([p.diastolic for p in self._points], dtype=np.float64))

        if systolic_fit is None or diastolic_fit is None:
            logger.warning(
                "Degenerate calibration (all PTTs ≈ %.1f ms) — keeping previous coefficients.",
                x[0],
            )
            return

        self.coefficients = Coefficients(
            systolic_slope=systolic_fit[0],
            systolic_intercept=systolic_fit[1],
            diastolic_slope=diastolic_fit[0],
            diastolic_intercept=diastolic_fit[1],
        )
        c = self.coefficients
        logger.info(
            "Calibration updated: Sys=%.3f·PTT+%.1f, Dia=%.3f·PTT+%.1f",
            c.systolic_slope, c.systolic_intercept, c.diastolic_slope, c.diastolic_intercept,
        )
