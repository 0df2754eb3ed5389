"""
model/analysis.py — Demographic compensation & reading interpretation
======================================================================

⚠️  DISCLAIMER: The categories below follow the usual published cut-offs
    but are applied to an *estimated* pressure.  They are wellness hints,
    not a diagnosis.

Compensation
------------
Both factors are multiplicative, so their order does not matter, and they
are applied identically to systolic and diastolic:

    age factor    = 1 + (age − 30) × 0.005     (also below 30, where it is < 1)
    gender factor = 1.02 for male, 1.0 otherwise
"""

from dataclasses import dataclass

from config import (
    AGE_FACTOR_PER_YEAR,
    AGE_REFERENCE,
    DEFAULT_AGE,
    DEFAULT_HEIGHT_CM,
    DEFAULT_IS_MALE,
    HRV_GOOD_THRESHOLD,
    HRV_MODERATE_THRESHOLD,
    MALE_FACTOR,
    PWV_GOOD_THRESHOLD,
    PWV_MODERATE_THRESHOLD,
)


@dataclass(frozen=True)
class UserProfile:
    age: int = DEFAULT_AGE
    height_cm: float = DEFAULT_HEIGHT_CM
    is_male: bool = DEFAULT_IS_MALE


def compensate_for_age(raw_bp: float, age: int) -> float:
    return raw_bp * (1.0 + (age - AGE_REFERENCE) * AGE_FACTOR_PER_YEAR)


def compensate_for_gender(raw_bp: float, is_male: bool) -> float:
    return raw_bp * (MALE_FACTOR if is_male else 1.0)


def apply_compensation(raw_bp: float, profile: UserProfile) -> float:
    return compensate_for_gender(compensate_for_age(raw_bp, profile.age), profile.is_male)


def mean_arterial_pressure(systolic: float, diastolic: float) -> float:
    return diastolic + (systolic - diastolic) / 3.0


def pulse_pressure(systolic: float, diastolic: float) -> float:
    return systolic - diastolic


def interpret_bp_reading(systolic: float, diastolic: float) -> str:
    """Map a reading to a blood-pressure category."""
    if systolic < 120 and diastolic < 80:
        return "Normal"
    if systolic < 130 and diastolic < 80:
        return "Elevated"
    if systolic < 140 and diastolic < 90:
        return "Stage 1 Hypertension"
    if systolic < 180 and diastolic < 120:
        return "Stage 2 Hypertension"
    return "Hypertensive Crisis"


def is_hypertensive(systolic: float, diastolic: float) -> bool:
    return systolic >= 130 or diastolic >= 80


def assess_pwv(pwv: float) -> str:
    """Arterial-stiffness hint: lower PWV means more compliant arteries."""
    if pwv <= 0:
        return "Unknown"
    if pwv < PWV_GOOD_THRESHOLD:
        return "Good"
    if pwv < PWV_MODERATE_THRESHOLD:
        return "Moderate"
    return "Poor"


def assess_hrv(rmssd_ms: float) -> str:
    """Autonomic-tone hint from RMSSD."""
    if rmssd_ms <= 0:
        return "Unknown"
    if rmssd_ms >= HRV_GOOD_THRESHOLD:
        return "Good"
    if rmssd_ms >= HRV_MODERATE_THRESHOLD:
        return "Moderate"
    return "Poor"
