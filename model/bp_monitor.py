"""
model/bp_monitor.py — PTT Blood-Pressure Monitor (orchestration)
==================================================================

⚠️⚠️⚠️  CRITICAL DISCLAIMER ⚠️⚠️⚠️
This module provides an *ESTIMATED* blood pressure derived from the delay
between the ECG R-peak and the PPG pulse arrival.  It is NOT a diagnostic
medical device and makes no claim of clinical accuracy.
DO NOT make medical decisions based on these estimates.
⚠️⚠️⚠️

────────────────────────────────────────────────────────────────────────
Data flow
────────────────────────────────────────────────────────────────────────
    ECG sample ─► moving average ─► peak detector ─► ECG peak ring ─┐
                                                   └─► RR ring ─────┤
    PPG sample ─► moving average ─► peak detector ─► PPG peak ring ─┤
                                                                    ▼
         PTT matcher ─► calibration model ─► demographic compensation
                                           ─► quality gate ─► reading

Concurrency
-----------
ECG and PPG producers and the estimate reader may run on different
threads.  Every public method takes the instance lock, so no caller can
observe a half-updated peak store, and `reset()` is atomic with respect
to ingestion.  Private helpers (prefixed `_`) assume the lock is held.

Nothing in here raises across the public surface: failures come back as
`False` or as a reading with `valid=False`.
────────────────────────────────────────────────────────────────────────
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, replace

from config import (
    ADAPTIVE_THRESHOLDING,
    ECG_DEFAULT_THRESHOLD,
    ECG_REFRACTORY_MS,
    FILTER_WINDOW,
    MAX_CALIBRATION_POINTS,
    PEAK_BUFFER_SIZE,
    PPG_DEFAULT_THRESHOLD,
    PPG_REFRACTORY_MS,
    PTT_PEAK_WINDOW,
    READY_MIN_PEAKS,
    READY_MIN_QUALITY,
    RR_BUFFER_SIZE,
    SAMPLE_BUFFER_SIZE,
)
from dsp.filters import MovingAverageFilter
from dsp.peak_detector import Peak, PeakDetector, PeakState, Sample
from dsp.ring_buffer import RingBuffer
from dsp.threshold import AdaptiveThresholdController
from features.correlation import calculate_correlation
from features.hrv import compute_rmssd, heart_rate_from_rr, is_rhythm_regular, is_valid_rr
from features.ptt import calculate_ptt, calculate_pwv, is_valid_ptt
from model.analysis import UserProfile, apply_compensation, mean_arterial_pressure
from model.calibration import CalibrationModel, Coefficients
from model.quality import QualityInputs, assess_signal_quality, is_valid_reading
from utils.logger import get_logger

logger = get_logger("model.bp_monitor")

_EMPTY_SAMPLE = Sample(value=0.0, timestamp=0)
_EMPTY_PEAK = Peak(position=0, value=0.0, timestamp=0)


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass(frozen=True)
class BloodPressureReading:
    """One estimate.  Built fresh on every call and never mutated."""
    systolic: float = 0.0                   # mmHg
    diastolic: float = 0.0                  # mmHg
    mean_arterial_pressure: float = 0.0     # mmHg
    pulse_transit_time: float = 0.0         # ms
    pulse_wave_velocity: float = 0.0        # m/s
    heart_rate_variability: float = 0.0     # RMSSD, ms
    heart_rate: float = 0.0                 # BPM
    signal_quality: float = 0.0             # 0–100
    correlation: int = 0                    # −100 … 100
    rhythm_regular: bool = False
    valid: bool = False
    needs_calibration: bool = True
    timestamp: int = 0                      # ms, monitor clock

    def to_dict(self) -> dict:
        return asdict(self)

    def telemetry(self) -> dict:
        """Field set consumed by publishers (MQTT / HTTP)."""
        return {
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "ptt": self.pulse_transit_time,
            "pwv": self.pulse_wave_velocity,
            "hrv": self.heart_rate_variability,
            "signal_quality": self.signal_quality,
            "correlation_coeff": self.correlation,
            "timestamp": self.timestamp,
            "valid": self.valid,
        }


@dataclass(frozen=True)
class MonitorSettings:
    """Per-instance overrides of the `config` defaults."""
    ecg_threshold: float = ECG_DEFAULT_THRESHOLD
    ppg_threshold: float = PPG_DEFAULT_THRESHOLD
    ecg_refractory_ms: int = ECG_REFRACTORY_MS
    ppg_refractory_ms: int = PPG_REFRACTORY_MS
    adaptive: bool = ADAPTIVE_THRESHOLDING
    filter_window: int = FILTER_WINDOW
    sample_buffer_size: int = SAMPLE_BUFFER_SIZE
    peak_buffer_size: int = PEAK_BUFFER_SIZE
    rr_buffer_size: int = RR_BUFFER_SIZE
    calibration_capacity: int = MAX_CALIBRATION_POINTS


class _Channel:
    """filter → sample ring → detector → peak ring, plus threshold control."""

    def __init__(self, name: str, threshold: float, refractory_ms: int,
                 settings: MonitorSettings):
        self.name = name
        self.filter = MovingAverageFilter(settings.filter_window)
        self.samples: RingBuffer[Sample] = RingBuffer(settings.sample_buffer_size, _EMPTY_SAMPLE)
        self.peaks: RingBuffer[Peak] = RingBuffer(settings.peak_buffer_size, _EMPTY_PEAK)
        self.detector = PeakDetector(name, threshold, refractory_ms)
        self.thresholds = AdaptiveThresholdController(name, threshold, enabled=settings.adaptive)

    @property
    def peak_count(self) -> int:
        return self.peaks.total_written

    def ingest(self, value: float, timestamp: int) -> Peak | None:
        filtered = self.filter.apply(value)
        position = self.samples.append(Sample(value=value, timestamp=timestamp))

        peak = self.detector.update(filtered, timestamp, position)
        if peak is not None:
            self.peaks.append(peak)

        if self.thresholds.update(self.samples, timestamp):
            self.detector.threshold = self.thresholds.threshold
        return peak

    def recent_peaks(self, n: int | None = None) -> list[Peak]:
        return self.peaks.latest(n)

    def set_adaptive(self, enabled: bool) -> None:
        self.thresholds.set_enabled(enabled)
        self.detector.threshold = self.thresholds.threshold

    def reset(self) -> None:
        self.filter.reset()
        self.samples.clear()
        self.peaks.clear()
        self.detector.reset()
        self.thresholds.reset()
        self.detector.threshold = self.thresholds.threshold


class BloodPressureMonitor:
    """
    Continuous PTT-based blood-pressure estimator.

    Construct one instance per subject; instances share no state.

    Parameters
    ----------
    settings : MonitorSettings | None        Thresholds, refractory periods, capacities.
    profile  : UserProfile | None            Demographics used for compensation and PWV.
    clock    : Callable[[], int] | None      Millisecond clock for reading timestamps
                                             and staleness (default: monotonic).
    """

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        profile: UserProfile | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self._lock = threading.Lock()
        self._settings = settings or MonitorSettings()
        self._clock = clock or _monotonic_ms
        self._profile = profile or UserProfile()

        s = self._settings
        self._ecg = _Channel("ECG", s.ecg_threshold, s.ecg_refractory_ms, s)
        self._ppg = _Channel("PPG", s.ppg_threshold, s.ppg_refractory_ms, s)
        self._red: RingBuffer[Sample] = RingBuffer(s.sample_buffer_size, _EMPTY_SAMPLE)
        self._rr: RingBuffer[float] = RingBuffer(s.rr_buffer_size, 0.0)
        self._calibration = CalibrationModel(s.calibration_capacity)
        self._last_valid_ms: int | None = None

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def begin(self) -> bool:
        """Reset all buffers and run the self-test."""
        logger.info("Initialising blood-pressure monitor…")
        self.reset()
        if not self.self_test():
            logger.error("Blood-pressure monitor self-test failed.")
            return False
        logger.info("Blood-pressure monitor ready — calibrate with a reference cuff reading.")
        return True

    def reset(self) -> None:
        """Zero every buffer and counter.  Calibration points are kept."""
        with self._lock:
            self._ecg.reset()
            self._ppg.reset()
            self._red.clear()
            self._rr.clear()
            self._last_valid_ms = None
        logger.info("Monitor reset.")

    def self_test(self) -> bool:
        with self._lock:
            s = self._settings
            checks = [
                self._ecg.samples.capacity == s.sample_buffer_size,
                self._ppg.samples.capacity == s.sample_buffer_size,
                self._ecg.peaks.capacity == s.peak_buffer_size,
                self._ppg.peaks.capacity == s.peak_buffer_size,
                self._rr.capacity == s.rr_buffer_size,
                self._calibration.coefficients.is_finite(),
                self._ecg.detector.state is PeakState.BELOW,
                self._ppg.detector.state is PeakState.BELOW,
            ]
        return all(checks)

    # ── Ingestion ──────────────────────────────────────────────────────────

    def add_ecg_sample(self, value: float, timestamp: int) -> None:
        if not math.isfinite(value):
            logger.debug("Dropping non-finite ECG sample at %d ms.", timestamp)
            return
        with self._lock:
            peak = self._ecg.ingest(float(value), int(timestamp))
            if peak is not None:
                self._record_rr_interval(peak)

    def add_ppg_sample(self, ir: float, red: float, timestamp: int) -> None:
        """Peak timing uses the IR channel; red is buffered but not analysed."""
        if not math.isfinite(ir):
            logger.debug("Dropping non-finite PPG sample at %d ms.", timestamp)
            return
        with self._lock:
            self._ppg.ingest(float(ir), int(timestamp))
            if math.isfinite(red):
                self._red.append(Sample(value=float(red), timestamp=int(timestamp)))

    def _record_rr_interval(self, peak: Peak) -> None:
        if self._ecg.peak_count < 2:
            return
        previous = self._ecg.recent_peaks(2)[0]
        rr = peak.timestamp - previous.timestamp
        if is_valid_rr(rr):
            self._rr.append(float(rr))

    # ── Query ──────────────────────────────────────────────────────────────

    def is_ready_for_measurement(self) -> bool:
        with self._lock:
            if not self._has_min_peaks():
                return False
            quality, _, _ = self._assess(self._clock())
            return quality > READY_MIN_QUALITY

    def calculate_blood_pressure(self) -> BloodPressureReading:
        with self._lock:
            now = self._clock()
            needs_calibration = self._calibration.is_default

            if not self._has_min_peaks():
                logger.warning(
                    "Insufficient peak data for BP calculation (ECG=%d, PPG=%d).",
                    self._ecg.peak_count, self._ppg.peak_count,
                )
                return BloodPressureReading(needs_calibration=needs_calibration, timestamp=now)

            ptt = self._current_ptt()
            if not is_valid_ptt(ptt):
                logger.warning("Invalid PTT — no ECG/PPG peak pairs within the transit window.")
                return BloodPressureReading(needs_calibration=needs_calibration, timestamp=now)

            pwv = calculate_pwv(ptt, self._profile.height_cm)

            raw_systolic, raw_diastolic = self._calibration.predict(ptt)
            systolic = apply_compensation(raw_systolic, self._profile)
            diastolic = apply_compensation(raw_diastolic, self._profile)
            map_ = mean_arterial_pressure(systolic, diastolic)

            rr = self._rr.latest()
            hrv = compute_rmssd(rr)
            heart_rate = heart_rate_from_rr(rr)
            quality, correlation, rhythm_regular = self._assess(now, ptt)

            valid = is_valid_reading(quality, systolic, diastolic, ptt)
            if valid:
                self._last_valid_ms = now

            reading = BloodPressureReading(
                systolic=systolic,
                diastolic=diastolic,
                mean_arterial_pressure=map_,
                pulse_transit_time=ptt,
                pulse_wave_velocity=pwv,
                heart_rate_variability=hrv,
                heart_rate=heart_rate,
                signal_quality=quality,
                correlation=correlation,
                rhythm_regular=rhythm_regular,
                valid=valid,
                needs_calibration=needs_calibration,
                timestamp=now,
            )

        logger.info(
            "BP estimate: %.0f/%.0f mmHg (PTT=%.1f ms, quality=%.0f, valid=%s)",
            reading.systolic, reading.diastolic, ptt, quality, valid,
        )
        return reading

    def _has_min_peaks(self) -> bool:
        return (self._ecg.peak_count >= READY_MIN_PEAKS
                and self._ppg.peak_count >= READY_MIN_PEAKS)

    def _current_ptt(self) -> float:
        return calculate_ptt(self._ecg.recent_peaks(), self._ppg.recent_peaks(), PTT_PEAK_WINDOW)

    def _assess(self, now: int, ptt: float | None = None) -> tuple[float, int, bool]:
        """(quality, correlation, rhythm_regular) for the current state."""
        if ptt is None:
            ptt = self._current_ptt()
        correlation = calculate_correlation(
            self._ecg.recent_peaks(PTT_PEAK_WINDOW),
            self._ppg.recent_peaks(PTT_PEAK_WINDOW),
            ptt,
        )
        rhythm_regular = is_rhythm_regular(self._rr.latest())
        quality = assess_signal_quality(QualityInputs(
            ecg_peak_count=self._ecg.peak_count,
            ppg_peak_count=self._ppg.peak_count,
            rhythm_regular=rhythm_regular,
            correlation=correlation,
            now_ms=now,
            last_valid_ms=self._last_valid_ms,
        ))
        return quality, correlation, rhythm_regular

    # ── Calibration ────────────────────────────────────────────────────────

    def add_calibration_point(self, systolic: float, diastolic: float) -> bool:
        """
        Pair a reference cuff reading with the current PTT.

        Returns False (store unchanged) if the store is full, the current PTT
        is invalid, or the reference values are not finite.
        """
        with self._lock:
            if self._calibration.is_full:
                logger.warning("Maximum calibration points reached.")
                return False
            if not (math.isfinite(systolic) and math.isfinite(diastolic)):
                logger.warning("Rejecting non-finite calibration reference.")
                return False
            ptt = self._current_ptt()
            if not is_valid_ptt(ptt):
                logger.warning("Cannot calibrate: invalid PTT.")
                return False
            return self._calibration.add_point(ptt, systolic, diastolic, self._clock())

    def clear_calibration(self) -> None:
        with self._lock:
            self._calibration.clear()

    def get_calibration_count(self) -> int:
        with self._lock:
            return self._calibration.count

    @property
    def calibration_capacity(self) -> int:
        return self._calibration.capacity

    @property
    def coefficients(self) -> Coefficients:
        with self._lock:
            return self._calibration.coefficients

    # ── Configuration ──────────────────────────────────────────────────────

    def set_personal_parameters(self, age: int, height_cm: float, is_male: bool) -> None:
        if not (height_cm > 0 and math.isfinite(height_cm)) or age < 0:
            logger.warning("Ignoring implausible profile: age=%s, height=%s cm.", age, height_cm)
            return
        with self._lock:
            self._profile = replace(self._profile, age=int(age), height_cm=float(height_cm),
                                    is_male=bool(is_male))
        logger.info(
            "Personal parameters updated: age=%d, height=%.1f cm, gender=%s",
            age, height_cm, "male" if is_male else "female",
        )

    @property
    def profile(self) -> UserProfile:
        with self._lock:
            return self._profile

    def set_adaptive_mode(self, enabled: bool) -> None:
        with self._lock:
            self._ecg.set_adaptive(enabled)
            self._ppg.set_adaptive(enabled)
        logger.info("Adaptive thresholding %s.", "enabled" if enabled else "disabled")

    @property
    def thresholds(self) -> tuple[float, float]:
        """Current (ECG, PPG) detection thresholds."""
        with self._lock:
            return self._ecg.detector.threshold, self._ppg.detector.threshold

    # ── Diagnostics ────────────────────────────────────────────────────────

    @property
    def peak_counts(self) -> tuple[int, int]:
        """(ECG, PPG) peaks confirmed since the last reset."""
        with self._lock:
            return self._ecg.peak_count, self._ppg.peak_count

    def rr_intervals(self) -> list[float]:
        with self._lock:
            return self._rr.latest()

    def get_system_status(self) -> str:
        with self._lock:
            quality, _, _ = self._assess(self._clock())
            ready = self._has_min_peaks() and quality > READY_MIN_QUALITY
            return (
                f"BP Monitor: {'Ready' if ready else 'Not Ready'}"
                f" | ECG Peaks: {self._ecg.peak_count}"
                f" | PPG Peaks: {self._ppg.peak_count}"
                f" | Quality: {int(quality)}%"
                f" | Cal Points: {self._calibration.count}/{self._calibration.capacity}"
            )

    def log_diagnostics(self) -> None:
        with self._lock:
            quality, correlation, regular = self._assess(self._clock())
            c = self._calibration.coefficients
            lines = [
                "=== Blood Pressure Monitor Diagnostics ===",
                f"ECG Peaks: {self._ecg.peak_count}, PPG Peaks: {self._ppg.peak_count}",
                f"RR intervals: {len(self._rr)} (rhythm {'regular' if regular else 'irregular'})",
                f"Signal Quality: {quality:.1f}%  Correlation: {correlation}",
                f"Calibration Points: {self._calibration.count}/{self._calibration.capacity}",
                f"Thresholds: ECG={self._ecg.detector.threshold:.1f}, "
                f"PPG={self._ppg.detector.threshold:.1f}",
            ]
            if not self._calibration.is_default:
                lines.append(
                    f"Calibration: Sys={c.systolic_slope:.3f}*PTT+{c.systolic_intercept:.1f}, "
                    f"Dia={c.diastolic_slope:.3f}*PTT+{c.diastolic_intercept:.1f}"
                )
        for line in lines:
            logger.info(line)
