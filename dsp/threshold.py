"""
dsp/threshold.py — Periodic threshold adaptation
=================================================
Every `THRESHOLD_UPDATE_INTERVAL_MS` of sample time the detection
threshold is recomputed from recent raw signal statistics:

    threshold = mean(last ≤ 50 raw samples) × 1.5

The cadence is measured on sample timestamps, not on the number of calls,
so feeding the controller every sample never recomputes more often than
once per interval.  When adaptation is disabled the threshold is pinned to
its configured default.
"""

import numpy as np

from config import THRESHOLD_FACTOR, THRESHOLD_UPDATE_INTERVAL_MS, THRESHOLD_WINDOW
from dsp.peak_detector import Sample
from dsp.ring_buffer import RingBuffer
from utils.logger import get_logger

logger = get_logger("dsp.threshold")


class AdaptiveThresholdController:
    """
    Per-channel threshold controller.

    Parameters
    ----------
    name              : str     Channel label for logging.
    default_threshold : float   Fixed threshold used when adaptation is off.
    enabled           : bool    Whether periodic adaptation runs.
    interval_ms       : int     Minimum sample time between recomputations.
    window            : int     Number of most recent raw samples averaged.
    factor            : float   Multiplier applied to the mean.
    """

    def __init__(
        self,
        name: str,
        default_threshold: float,
        enabled: bool = True,
        interval_ms: int = THRESHOLD_UPDATE_INTERVAL_MS,
        window: int = THRESHOLD_WINDOW,
        factor: float = THRESHOLD_FACTOR,
    ):
        self.name = name
        self.default_threshold = float(default_threshold)
        self.interval_ms = interval_ms
        self.window = window
        self.factor = factor
        self._enabled = enabled
        self.threshold = self.default_threshold
        self._last_update: int | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Toggle adaptation; disabling restores the fixed default."""
        self._enabled = enabled
        if not enabled:
            self.threshold = self.default_threshold
        self._last_update = None

    def reset(self) -> None:
        self.threshold = self.default_threshold
        self._last_update = None

    def update(self, samples: RingBuffer[Sample], timestamp: int) -> bool:
        """
        Recompute the threshold if the interval has elapsed.

        Returns True when the threshold was recomputed.
        """
        if not self._enabled:
            return False

        # First call (or a clock that jumped backwards) only anchors the cadence
        if self._last_update is None or timestamp < self._last_update:
            self._last_update = timestamp
            return False

        if timestamp - self._last_update < self.interval_ms:
            return False

        recent = samples.latest(self.window)
        self._last_update = timestamp
        if not recent:
            return False

        mean = float(np.mean([s.value for s in recent]))
        self.threshold = mean * self.factor
        logger.debug(
            "%s threshold → %.1f (mean of %d samples = %.1f).",
            self.name, self.threshold, len(recent), mean,
        )
        return True
