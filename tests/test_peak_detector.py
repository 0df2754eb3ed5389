"""
Unit tests for the peak state machine and the adaptive threshold controller.

Tests for:
- Peak confirmation on the derivative turn-over
- Refractory enforcement (double-counting prevention)
- Per-instance state isolation
- Threshold cadence and fixed-threshold mode
"""

import pytest

from config import ECG_DEFAULT_THRESHOLD, ECG_REFRACTORY_MS, PPG_DEFAULT_THRESHOLD
from dsp.peak_detector import PeakDetector, PeakState, Sample
from dsp.ring_buffer import RingBuffer
from dsp.threshold import AdaptiveThresholdController


def _spike(start_ms: int, height: float = 2000.0, dt: int = 5):
    """Baseline, one spike sample, baseline — as (value, timestamp) pairs."""
    return [(0.0, start_ms), (height, start_ms + dt), (0.0, start_ms + 2 * dt)]


def _run(detector, pairs):
    return [p for p in (detector.update(v, t) for v, t in pairs) if p is not None]


# =============================================================================
# STATE MACHINE
# =============================================================================

class TestPeakDetector:

    def test_single_spike_fires_once(self):
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        peaks = _run(detector, _spike(0))
        assert len(peaks) == 1
        assert peaks[0].timestamp == 10
        assert peaks[0].value == pytest.approx(2000.0)
        assert detector.state is PeakState.BELOW

    def test_sub_threshold_spike_is_ignored(self):
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        assert _run(detector, _spike(0, height=1000.0)) == []

    def test_enters_rising_above_threshold(self):
        detector = PeakDetector("PPG", threshold=50.0, refractory_ms=400)
        detector.update(0.0, 0)
        detector.update(60.0, 10)
        assert detector.state is PeakState.RISING

    def test_threshold_crossing_during_steady_rise(self):
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        ramp = [(v, i * 5) for i, v in enumerate([0, 500, 1000, 1600, 2200, 1800])]
        peaks = _run(detector, ramp)
        assert [p.timestamp for p in peaks] == [25]
        assert peaks[0].value == pytest.approx(2200.0)

    def test_refractory_discards_second_peak_150ms_later(self):
        """Two ECG peaks 150 ms apart (< 300 ms) register as exactly one."""
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=ECG_REFRACTORY_MS)
        peaks = _run(detector, _spike(0) + _spike(150))
        assert len(peaks) == 1
        assert detector.discarded == 1
        assert detector.state is PeakState.BELOW

    def test_peak_after_refractory_is_accepted(self):
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        peaks = _run(detector, _spike(0) + _spike(400))
        assert [p.timestamp for p in peaks] == [10, 410]

    def test_refractory_boundary_is_strict(self):
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        # Confirmations at 10 ms and exactly 310 ms → 300 ms gap is not enough
        peaks = _run(detector, _spike(0) + _spike(300))
        assert len(peaks) == 1

    def test_instances_do_not_share_state(self):
        ecg = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        ppg = PeakDetector("PPG", threshold=1500, refractory_ms=400)
        _run(ecg, _spike(0))
        assert ppg.last_peak_timestamp is None
        assert ppg.last_value == 0.0
        # ppg can still fire at a time that would be refractory for ecg
        assert len(_run(ppg, _spike(100))) == 1

    def test_reset(self):
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        _run(detector, _spike(0))
        detector.reset()
        assert detector.last_peak_timestamp is None
        assert detector.discarded == 0
        assert len(_run(detector, _spike(20))) == 1

    def test_clock_stepping_back_reanchors_refractory(self):
        """A wrapped 32-bit millis counter must not silence detection."""
        detector = PeakDetector("ECG", threshold=1500, refractory_ms=300)
        wrap = 2 ** 32
        peaks = _run(detector, _spike(wrap - 500) + _spike(50) + _spike(200) + _spike(600))
        # wrap−490 fires, 60 re-anchors, 210 is refractory to 60, 610 fires
        assert [p.timestamp for p in peaks] == [wrap - 490, 60, 610]
        assert detector.discarded == 1


# =============================================================================
# ADAPTIVE THRESHOLD
# =============================================================================

def _ring(values, start_ms=0, dt=5):
    ring = RingBuffer(200, Sample(0.0, 0))
    for i, v in enumerate(values):
        ring.append(Sample(v, start_ms + i * dt))
    return ring


class TestAdaptiveThreshold:

    def test_first_call_only_anchors(self):
        controller = AdaptiveThresholdController("ECG", ECG_DEFAULT_THRESHOLD)
        assert controller.update(_ring([100.0] * 60), 0) is False
        assert controller.threshold == ECG_DEFAULT_THRESHOLD

    def test_recomputes_every_5_seconds_from_recent_samples(self):
        controller = AdaptiveThresholdController("ECG", ECG_DEFAULT_THRESHOLD)
        ring = _ring([1000.0] * 100 + [2000.0] * 50)
        controller.update(ring, 0)
        assert controller.update(ring, 4999) is False
        assert controller.update(ring, 5000) is True
        # Only the last 50 samples (all 2000) count
        assert controller.threshold == pytest.approx(3000.0)

    def test_not_more_often_than_cadence(self):
        controller = AdaptiveThresholdController("PPG", PPG_DEFAULT_THRESHOLD)
        ring = _ring([10.0] * 10)
        controller.update(ring, 0)
        updates = [controller.update(ring, t) for t in range(0, 12001, 10)]
        assert sum(updates) == 2

    def test_disabled_keeps_default(self):
        controller = AdaptiveThresholdController("ECG", 1500.0, enabled=False)
        ring = _ring([10.0] * 50)
        controller.update(ring, 0)
        assert controller.update(ring, 10000) is False
        assert controller.threshold == 1500.0

    def test_disabling_restores_default(self):
        controller = AdaptiveThresholdController("ECG", 1500.0)
        ring = _ring([10.0] * 50)
        controller.update(ring, 0)
        controller.update(ring, 5000)
        assert controller.threshold == pytest.approx(15.0)
        controller.set_enabled(False)
        assert controller.threshold == 1500.0

    def test_empty_ring_keeps_threshold(self):
        controller = AdaptiveThresholdController("ECG", 1500.0)
        empty = RingBuffer(10, Sample(0.0, 0))
        controller.update(empty, 0)
        assert controller.update(empty, 6000) is False
        assert controller.threshold == 1500.0
