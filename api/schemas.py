"""
api/schemas.py — Pydantic request & response models
=====================================================
Centralises all data-transfer objects so that FastAPI can auto-generate
OpenAPI docs and perform input validation for free.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ── Request Models ───────────────────────────────────────────────────────────


class UserMetadata(BaseModel):
    """
    Demographic info used for age/gender compensation and PWV path length.
    """
    age: int = Field(..., ge=10, le=120, description="Age in years.")
    gender: str = Field(
        ...,
        pattern="^(male|female|other)$",
        description="Biological sex (male / female / other).",
    )
    height_cm: float = Field(..., gt=100, lt=250, description="Height in centimetres.")

    @property
    def is_male(self) -> bool:
        return self.gender == "male"


class ECGSampleIn(BaseModel):
    value: float = Field(..., description="Raw ECG amplitude (ADC counts).")
    timestamp_ms: int = Field(..., ge=0)


class PPGSampleIn(BaseModel):
    ir: float = Field(..., description="Raw IR channel (used for peak timing).")
    red: float = Field(0.0, description="Raw red channel (buffered only).")
    timestamp_ms: int = Field(..., ge=0)


class ECGBatch(BaseModel):
    samples: list[ECGSampleIn] = Field(..., min_length=1)


class PPGBatch(BaseModel):
    samples: list[PPGSampleIn] = Field(..., min_length=1)


class CalibrationRequest(BaseModel):
    """Reference cuff reading taken at the same time as the current signals."""
    systolic: float = Field(..., gt=50, lt=300)
    diastolic: float = Field(..., gt=20, lt=200)


class AdaptiveModeRequest(BaseModel):
    enabled: bool


# ── Response Models ──────────────────────────────────────────────────────────


class IngestResponse(BaseModel):
    accepted: int
    ecg_peaks: int
    ppg_peaks: int


class CoefficientsData(BaseModel):
    systolic_slope: float
    systolic_intercept: float
    diastolic_slope: float
    diastolic_intercept: float


class CalibrationResponse(BaseModel):
    count: int
    capacity: int
    needs_calibration: bool
    coefficients: CoefficientsData


class ReadingResponse(BaseModel):
    """One blood-pressure estimate plus interpretation."""
    disclaimer: str
    systolic: float
    diastolic: float
    mean_arterial_pressure: float
    pulse_pressure: float
    pulse_transit_time: float
    pulse_wave_velocity: float
    heart_rate_variability: float
    heart_rate: float
    signal_quality: float
    correlation: int
    rhythm_regular: bool
    valid: bool
    needs_calibration: bool
    timestamp: int
    category: Optional[str] = None        # only for valid readings
    pwv_assessment: str
    hrv_assessment: str


class ReadyResponse(BaseModel):
    ready: bool


class StatusResponse(BaseModel):
    status: str
    ready: bool
    calibration_count: int
