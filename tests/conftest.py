"""
pytest configuration and shared fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import os
import sys

import pytest

# Add project root to path for all tests
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from dsp.synthetic import PPGSample, generate_session, interleave  # noqa: E402
from model.bp_monitor import BloodPressureMonitor  # noqa: E402


# =============================================================================
# CONFIGURATION
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# =============================================================================
# CLOCK
# =============================================================================

class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# MONITOR FIXTURES
# =============================================================================

@pytest.fixture
def monitor(clock):
    """A fresh monitor driven by the fake clock."""
    m = BloodPressureMonitor(clock=clock)
    assert m.begin()
    return m


@pytest.fixture
def feed():
    """
    Return a callable that replays a synthetic recording into a monitor.

    The fake clock follows the sample timestamps, as it would on a device
    whose sensor timestamps come from the same clock.
    """
    def _feed(monitor, clock, **session_kwargs):
        ecg, ppg = generate_session(**session_kwargs)
        for sample in interleave(ecg, ppg):
            clock.now = sample.timestamp
            if isinstance(sample, PPGSample):
                monitor.add_ppg_sample(sample.ir, sample.red, sample.timestamp)
            else:
                monitor.add_ecg_sample(sample.value, sample.timestamp)
        return ecg, ppg

    return _feed


@pytest.fixture
def sample_session():
    """Clean 10 s recording at 75 BPM with a 200 ms transit time."""
    return generate_session(heart_rate_bpm=75.0, ptt_ms=200.0, duration_ms=10000)
