"""
config.py — Centralised configuration & hyper-parameters
=========================================================
Every tunable constant in the project lives here so that the rest of the
codebase can import from a single source of truth.

Amplitude thresholds are in raw sensor units (AD8232 ADC counts for ECG,
MAX30102 IR counts for PPG) and must be re-tuned for other front-ends.
"""

import logging

# ─── Sampling ────────────────────────────────────────────────────────────────
ECG_SAMPLE_RATE_HZ: int = 200     # AD8232 analogue front-end
PPG_SAMPLE_RATE_HZ: int = 100     # MAX30102 FIFO rate

# ─── Buffers ─────────────────────────────────────────────────────────────────
SAMPLE_BUFFER_SIZE: int = 200     # Raw samples kept per channel
PEAK_BUFFER_SIZE: int = 20        # Confirmed peaks kept per channel
RR_BUFFER_SIZE: int = 50          # RR intervals kept for HRV
MAX_CALIBRATION_POINTS: int = 5   # Reference cuff readings (never overwritten)

# ─── Filtering ───────────────────────────────────────────────────────────────
FILTER_WINDOW: int = 10           # Trailing moving-average length (samples)

# ─── Peak Detection ──────────────────────────────────────────────────────────
# Refractory periods cap the detectable rate:
#   300 ms → 200 BPM (ECG)     400 ms → 150 BPM (PPG)
ECG_REFRACTORY_MS: int = 300
PPG_REFRACTORY_MS: int = 400

ECG_DEFAULT_THRESHOLD: float = 1500.0
PPG_DEFAULT_THRESHOLD: float = 50000.0

# ─── Adaptive Thresholding ───────────────────────────────────────────────────
ADAPTIVE_THRESHOLDING: bool = True
THRESHOLD_UPDATE_INTERVAL_MS: int = 5000
THRESHOLD_WINDOW: int = 50        # Most recent raw samples averaged
THRESHOLD_FACTOR: float = 1.5     # threshold = mean × factor

# ─── Pulse Transit Time ──────────────────────────────────────────────────────
PTT_MIN_MS: float = 50.0
PTT_MAX_MS: float = 400.0
PTT_PEAK_WINDOW: int = 10         # Most recent peaks scanned per channel
PTT_INVALID: float = -1.0
PWV_PATH_FRACTION: float = 0.4    # Heart → finger path ≈ 0.4 × height

# ─── HRV / Rhythm ────────────────────────────────────────────────────────────
RR_MIN_MS: float = 300.0          # 200 BPM
RR_MAX_MS: float = 2000.0         # 30 BPM
HRV_MIN_INTERVALS: int = 10       # Below this RMSSD is reported as 0
RHYTHM_WINDOW: int = 10
RHYTHM_MIN_INTERVALS: int = 5
RHYTHM_MAX_CV: float = 0.2        # stddev < 0.2 × mean → regular

# ─── Cross-channel Correlation ───────────────────────────────────────────────
CORRELATION_GRID_MS: float = 10.0
CORRELATION_PULSE_SIGMA_MS: float = 40.0
CORRELATION_MIN_PEAKS: int = 3
# Peaks older than this (relative to each channel's newest) are not rendered,
# so the envelope grid stays bounded across sensor gaps
CORRELATION_MAX_SPAN_MS: float = PTT_PEAK_WINDOW * RR_MAX_MS

# ─── Signal Quality ──────────────────────────────────────────────────────────
QUALITY_MIN_PEAKS: int = 5
QUALITY_PEAK_PENALTY: float = 30.0
QUALITY_RHYTHM_PENALTY: float = 20.0
QUALITY_CORRELATION_MIN: int = 50
QUALITY_CORRELATION_PENALTY: float = 25.0
QUALITY_STALE_MS: int = 10000
QUALITY_STALE_PENALTY: float = 25.0

READY_MIN_PEAKS: int = 3
READY_MIN_QUALITY: float = 60.0

# ─── Validity Gate ───────────────────────────────────────────────────────────
VALID_MIN_QUALITY: float = 70.0   # strict: quality must EXCEED this
SYSTOLIC_RANGE: tuple[float, float] = (70.0, 250.0)
DIASTOLIC_RANGE: tuple[float, float] = (40.0, 150.0)
PTT_VALID_RANGE: tuple[float, float] = (50.0, 500.0)

# ─── Calibration ─────────────────────────────────────────────────────────────
# Population-default PTT → BP relationship used until two reference
# readings are available:  BP = slope · PTT + intercept
DEFAULT_SYSTOLIC_SLOPE: float = -1.2
DEFAULT_SYSTOLIC_INTERCEPT: float = 180.0
DEFAULT_DIASTOLIC_SLOPE: float = -0.8
DEFAULT_DIASTOLIC_INTERCEPT: float = 120.0

# ─── Demographic Compensation ────────────────────────────────────────────────
DEFAULT_AGE: int = 30
DEFAULT_HEIGHT_CM: float = 170.0
DEFAULT_IS_MALE: bool = True
AGE_REFERENCE: int = 30
AGE_FACTOR_PER_YEAR: float = 0.005   # 0.5 % per year relative to 30
MALE_FACTOR: float = 1.02

# ─── Interpretation (not clinical) ───────────────────────────────────────────
PWV_GOOD_THRESHOLD: float = 7.0      # m/s
PWV_MODERATE_THRESHOLD: float = 10.0
HRV_GOOD_THRESHOLD: float = 50.0     # ms RMSSD
HRV_MODERATE_THRESHOLD: float = 30.0

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL: int = logging.INFO

# ─── API ─────────────────────────────────────────────────────────────────────
API_TITLE = "PTT Blood-Pressure Estimation API"
API_VERSION = "0.1.0"
API_HOST = "0.0.0.0"
API_PORT = 8000
