"""
Unit tests for the calibration model, the quality score and the
interpretation helpers.
"""

import itertools

import numpy as np
import pytest

from config import MAX_CALIBRATION_POINTS
from model.analysis import (
    UserProfile,
    apply_compensation,
    assess_hrv,
    assess_pwv,
    compensate_for_age,
    compensate_for_gender,
    interpret_bp_reading,
    is_hypertensive,
    mean_arterial_pressure,
    pulse_pressure,
)
from model.calibration import POPULATION_DEFAULT, CalibrationModel, fit_line
from model.quality import QualityInputs, assess_signal_quality, is_stale, is_valid_reading


# =============================================================================
# CALIBRATION
# =============================================================================

class TestCalibrationModel:

    def test_starts_on_population_default(self):
        model = CalibrationModel()
        assert model.is_default
        assert model.coefficients == POPULATION_DEFAULT
        sys_bp, dia_bp = model.predict(200.0)
        assert sys_bp == pytest.approx(-1.2 * 200 + 180)
        assert dia_bp == pytest.approx(-0.8 * 200 + 120)

    def test_single_point_keeps_default(self):
        model = CalibrationModel()
        assert model.add_point(200.0, 120.0, 80.0)
        assert model.count == 1
        assert not model.is_default
        assert model.coefficients == POPULATION_DEFAULT

    def test_two_points_fit_exactly(self):
        model = CalibrationModel()
        model.add_point(200.0, 120.0, 80.0)
        model.add_point(250.0, 110.0, 75.0)
        c = model.coefficients
        assert c.systolic_slope == pytest.approx(-0.2)
        assert c.systolic_intercept == pytest.approx(160.0)
        assert c.diastolic_slope == pytest.approx(-0.1)
        assert c.diastolic_intercept == pytest.approx(100.0)
        assert model.predict(220.0) == pytest.approx((116.0, 78.0))

    def test_least_squares_over_several_points(self):
        model = CalibrationModel()
        for ptt, sys_bp, dia_bp in [(180, 130, 85), (200, 122, 81), (220, 118, 79), (240, 108, 74)]:
            model.add_point(ptt, sys_bp, dia_bp)
        expected_slope, expected_intercept = np.polyfit([180, 200, 220, 240], [130, 122, 118, 108], 1)
        assert model.coefficients.systolic_slope == pytest.approx(expected_slope)
        assert model.coefficients.systolic_intercept == pytest.approx(expected_intercept)

    def test_identical_ptts_keep_previous_coefficients(self):
        model = CalibrationModel()
        model.add_point(200.0, 120.0, 80.0)
        model.add_point(200.0, 125.0, 82.0)
        assert model.count == 2
        assert model.coefficients == POPULATION_DEFAULT
        assert model.coefficients.is_finite()

    def test_degenerate_point_after_fit_keeps_fit(self):
        model = CalibrationModel()
        model.add_point(200.0, 120.0, 80.0)
        model.add_point(250.0, 110.0, 75.0)
        fitted = model.coefficients
        # A third point is not degenerate: the fit moves but stays finite
        model.add_point(250.0, 112.0, 76.0)
        assert model.coefficients != fitted
        assert model.coefficients.is_finite()

    def test_full_store_rejects_new_points(self):
        model = CalibrationModel()
        for i in range(MAX_CALIBRATION_POINTS):
            assert model.add_point(180.0 + 10 * i, 130.0 - 2 * i, 85.0 - i)
        before = (model.points, model.coefficients)

        assert model.add_point(300.0, 100.0, 60.0) is False
        assert model.count == MAX_CALIBRATION_POINTS
        assert (model.points, model.coefficients) == before

    @pytest.mark.parametrize("ptt", [0.0, -1.0, float("nan")])
    def test_invalid_ptt_is_rejected(self, ptt):
        model = CalibrationModel()
        assert model.add_point(ptt, 120.0, 80.0) is False
        assert model.count == 0

    def test_clear_restores_default(self):
        model = CalibrationModel()
        model.add_point(200.0, 120.0, 80.0)
        model.add_point(250.0, 110.0, 75.0)
        model.clear()
        assert model.count == 0
        assert model.coefficients == POPULATION_DEFAULT

    def test_fit_line_rejects_constant_x(self):
        assert fit_line(np.array([5.0, 5.0, 5.0]), np.array([1.0, 2.0, 3.0])) is None

    def test_rejects_bad_capacity(self):
        with pytest.raises(ValueError):
            CalibrationModel(capacity=0)


# =============================================================================
# QUALITY
# =============================================================================

def _inputs(**overrides):
    base = dict(
        ecg_peak_count=10, ppg_peak_count=10, rhythm_regular=True,
        correlation=90, now_ms=20000, last_valid_ms=15000,
    )
    base.update(overrides)
    return QualityInputs(**base)


class TestSignalQuality:

    def test_clean_signal_scores_100(self):
        assert assess_signal_quality(_inputs()) == 100.0

    @pytest.mark.parametrize("overrides,expected", [
        (dict(ecg_peak_count=4), 70.0),
        (dict(ppg_peak_count=2), 70.0),
        (dict(rhythm_regular=False), 80.0),
        (dict(correlation=49), 75.0),
        (dict(correlation=-49), 75.0),
        (dict(correlation=-50), 100.0),
        (dict(last_valid_ms=None), 75.0),
        (dict(last_valid_ms=9999), 75.0),
        (dict(last_valid_ms=10000), 100.0),
    ])
    def test_individual_penalties(self, overrides, expected):
        assert assess_signal_quality(_inputs(**overrides)) == expected

    def test_score_is_always_within_bounds(self):
        combos = itertools.product(
            [0, 4, 5, 50],              # ecg peaks
            [0, 4, 5, 50],              # ppg peaks
            [True, False],              # rhythm
            [-100, -10, 0, 49, 100],    # correlation
            [None, 0, 19000],           # last valid
        )
        for ecg, ppg, regular, corr, last in combos:
            q = assess_signal_quality(_inputs(
                ecg_peak_count=ecg, ppg_peak_count=ppg, rhythm_regular=regular,
                correlation=corr, last_valid_ms=last,
            ))
            assert 0.0 <= q <= 100.0

    def test_all_penalties_stack(self):
        q = assess_signal_quality(_inputs(
            ecg_peak_count=0, rhythm_regular=False, correlation=0, last_valid_ms=None,
        ))
        assert q == 0.0

    def test_staleness(self):
        assert is_stale(5000, None)
        assert not is_stale(10000, 0)
        assert is_stale(10001, 0)


class TestValidityGate:

    def test_quality_must_exceed_70(self):
        assert is_valid_reading(70.0, 120, 80, 200) is False
        assert is_valid_reading(70.0001, 120, 80, 200) is True

    @pytest.mark.parametrize("sys_bp,dia_bp,ptt,valid", [
        (70, 40, 50, True),
        (250, 150, 500, True),
        (69.9, 80, 200, False),
        (250.1, 80, 200, False),
        (120, 39.9, 200, False),
        (120, 150.1, 200, False),
        (120, 80, 49.9, False),
        (120, 80, 500.1, False),
        (-61.2, -40.8, 200, False),
    ])
    def test_physiological_ranges(self, sys_bp, dia_bp, ptt, valid):
        assert is_valid_reading(90.0, sys_bp, dia_bp, ptt) is valid


# =============================================================================
# COMPENSATION & INTERPRETATION
# =============================================================================

class TestCompensation:

    def test_reference_male(self):
        assert apply_compensation(100.0, UserProfile(age=30, is_male=True)) == pytest.approx(102.0)

    def test_age_factor_is_symmetric_around_30(self):
        assert compensate_for_age(100.0, 40) == pytest.approx(105.0)
        assert compensate_for_age(100.0, 20) == pytest.approx(95.0)

    def test_gender_factor(self):
        assert compensate_for_gender(100.0, True) == pytest.approx(102.0)
        assert compensate_for_gender(100.0, False) == pytest.approx(100.0)

    def test_order_does_not_matter(self):
        a = compensate_for_gender(compensate_for_age(120.0, 55), True)
        b = compensate_for_age(compensate_for_gender(120.0, True), 55)
        assert a == pytest.approx(b)

    def test_derived_pressures(self):
        assert mean_arterial_pressure(120.0, 75.0) == pytest.approx(90.0)
        assert pulse_pressure(120.0, 75.0) == pytest.approx(45.0)


class TestInterpretation:

    @pytest.mark.parametrize("sys_bp,dia_bp,category", [
        (110, 70, "Normal"),
        (125, 75, "Elevated"),
        (135, 75, "Stage 1 Hypertension"),
        (125, 85, "Stage 1 Hypertension"),
        (150, 95, "Stage 2 Hypertension"),
        (185, 100, "Hypertensive Crisis"),
        (150, 125, "Hypertensive Crisis"),
    ])
    def test_categories(self, sys_bp, dia_bp, category):
        assert interpret_bp_reading(sys_bp, dia_bp) == category

    def test_hypertension_flag(self):
        assert is_hypertensive(130, 70)
        assert is_hypertensive(120, 80)
        assert not is_hypertensive(129, 79)

    @pytest.mark.parametrize("pwv,label", [
        (0.0, "Unknown"), (3.4, "Good"), (8.0, "Moderate"), (12.0, "Poor"),
    ])
    def test_pwv_assessment(self, pwv, label):
        assert assess_pwv(pwv) == label

    @pytest.mark.parametrize("rmssd,label", [
        (0.0, "Unknown"), (60.0, "Good"), (35.0, "Moderate"), (10.0, "Poor"),
    ])
    def test_hrv_assessment(self, rmssd, label):
        assert assess_hrv(rmssd) == label
