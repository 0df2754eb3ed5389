"""Calibration, quality scoring and the blood-pressure monitor."""
