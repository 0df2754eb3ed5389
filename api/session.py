"""
api/session.py — Monitoring Session
=====================================
Owns one `BloodPressureMonitor` and adapts it to the HTTP layer: batches
of samples in, interpreted readings out.  The FastAPI routes only talk to
this object.

Thread safety
-------------
The monitor guards its own state.  The session's lock only protects the
cached last reading, which request handlers read while another request
may be producing a new one.

Lifecycle
---------
    1. `set_metadata(...)` — store user demographics (optional, defaults apply).
    2. Stream samples via `ingest_ecg(...)` / `ingest_ppg(...)`.
    3. Poll `is_ready()`, then `measure()`.
    4. `calibrate(...)` with a reference cuff reading whenever available.
    5. `reset()` — drop buffered signals (calibration is kept).
"""

import threading

from api.schemas import ECGSampleIn, PPGSampleIn, UserMetadata
from model.analysis import assess_hrv, assess_pwv, interpret_bp_reading, pulse_pressure
from model.bp_monitor import BloodPressureMonitor, BloodPressureReading
from utils.logger import get_logger

logger = get_logger("api.session")

# ── Disclaimer string injected into every reading ───────────────────────────
DISCLAIMER = (
    "⚠️ This is a WELLNESS ESTIMATION tool — NOT a medical device. "
    "Blood pressure, PWV and HRV values are ESTIMATES derived from the "
    "ECG→PPG pulse transit time and a simple calibration model. "
    "They have NOT been validated for clinical use. "
    "Do NOT make medical decisions based on these readings. "
    "Consult a qualified healthcare professional for diagnosis or treatment."
)


def reading_to_response(reading: BloodPressureReading) -> dict:
    """Flatten a reading and attach the human-readable interpretation."""
    result = reading.to_dict()
    result.update(
        disclaimer=DISCLAIMER,
        pulse_pressure=pulse_pressure(reading.systolic, reading.diastolic),
        category=interpret_bp_reading(reading.systolic, reading.diastolic) if reading.valid else None,
        pwv_assessment=assess_pwv(reading.pulse_wave_velocity),
        hrv_assessment=assess_hrv(reading.heart_rate_variability),
    )
    return result


class MonitorSession:
    """
    Manages one subject's continuous monitoring session.

    Instantiate once at application startup and reuse across requests.
    """

    def __init__(self, monitor: BloodPressureMonitor | None = None):
        self._lock = threading.Lock()
        self._monitor = monitor or BloodPressureMonitor()
        self._last_reading: BloodPressureReading | None = None
        if not self._monitor.begin():
            logger.error("Monitor self-test failed — readings will stay invalid.")
        logger.info("MonitorSession initialised.")

    @property
    def monitor(self) -> BloodPressureMonitor:
        return self._monitor

    # ── Public API ─────────────────────────────────────────────────────────

    def set_metadata(self, metadata: UserMetadata) -> None:
        self._monitor.set_personal_parameters(metadata.age, metadata.height_cm, metadata.is_male)

    def ingest_ecg(self, samples: list[ECGSampleIn]) -> int:
        for s in samples:
            self._monitor.add_ecg_sample(s.value, s.timestamp_ms)
        return len(samples)

    def ingest_ppg(self, samples: list[PPGSampleIn]) -> int:
        for s in samples:
            self._monitor.add_ppg_sample(s.ir, s.red, s.timestamp_ms)
        return len(samples)

    def is_ready(self) -> bool:
        return self._monitor.is_ready_for_measurement()

    def measure(self) -> dict:
        reading = self._monitor.calculate_blood_pressure()
        with self._lock:
            self._last_reading = reading
        return reading_to_response(reading)

    def get_last_reading(self) -> dict | None:
        with self._lock:
            reading = self._last_reading
        return reading_to_response(reading) if reading is not None else None

    def calibrate(self, systolic: float, diastolic: float) -> bool:
        return self._monitor.add_calibration_point(systolic, diastolic)

    def calibration_summary(self) -> dict:
        c = self._monitor.coefficients
        count = self._monitor.get_calibration_count()
        return {
            "count": count,
            "capacity": self._monitor.calibration_capacity,
            "needs_calibration": count == 0,
            "coefficients": {
                "systolic_slope": c.systolic_slope,
                "systolic_intercept": c.systolic_intercept,
                "diastolic_slope": c.diastolic_slope,
                "diastolic_intercept": c.diastolic_intercept,
            },
        }

    def clear_calibration(self) -> None:
        self._monitor.clear_calibration()

    def set_adaptive_mode(self, enabled: bool) -> None:
        self._monitor.set_adaptive_mode(enabled)

    def status(self) -> str:
        return self._monitor.get_system_status()

    def reset(self) -> None:
        self._monitor.reset()
        with self._lock:
            self._last_reading = None
        logger.info("Session reset.")
