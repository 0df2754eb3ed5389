"""
HTTP-level tests for the FastAPI app, using an isolated app instance per
test with a fake-clock monitor behind it.
"""

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.session import DISCLAIMER, MonitorSession
from dsp.synthetic import generate_session
from model.bp_monitor import BloodPressureMonitor


@pytest.fixture
def client(clock):
    session = MonitorSession(BloodPressureMonitor(clock=clock))
    return TestClient(create_app(session))


def _stream(client, clock, **session_kwargs):
    """Post a full synthetic recording, ECG then PPG, and move the clock to its end."""
    ecg, ppg = generate_session(**session_kwargs)
    r = client.post("/samples/ecg", json={
        "samples": [{"value": s.value, "timestamp_ms": s.timestamp} for s in ecg],
    })
    assert r.status_code == 200
    r = client.post("/samples/ppg", json={
        "samples": [{"ir": s.ir, "red": s.red, "timestamp_ms": s.timestamp} for s in ppg],
    })
    assert r.status_code == 200
    clock.now = max(ecg[-1].timestamp, ppg[-1].timestamp)
    return r.json()


class TestHealthAndProfile:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

    def test_profile_accepted(self, client):
        r = client.post("/profile", json={"age": 45, "gender": "female", "height_cm": 165})
        assert r.status_code == 200
        profile = client.app.state.session.monitor.profile
        assert (profile.age, profile.height_cm, profile.is_male) == (45, 165.0, False)

    @pytest.mark.parametrize("body", [
        {"age": 45, "gender": "robot", "height_cm": 165},
        {"age": 5, "gender": "male", "height_cm": 165},
        {"age": 45, "gender": "male", "height_cm": 20},
    ])
    def test_profile_validation(self, client, body):
        assert client.post("/profile", json=body).status_code == 422


class TestIngestionAndReading:

    def test_ingest_reports_peak_counts(self, client, clock):
        body = _stream(client, clock)
        assert body == {"accepted": 1000, "ecg_peaks": 12, "ppg_peaks": 12}

    def test_empty_batch_rejected(self, client):
        assert client.post("/samples/ecg", json={"samples": []}).status_code == 422

    def test_ready_flag(self, client, clock):
        assert client.get("/bp/ready").json() == {"ready": False}
        _stream(client, clock)
        assert client.get("/bp/ready").json() == {"ready": True}

    def test_uncalibrated_reading(self, client, clock):
        _stream(client, clock)
        r = client.get("/bp/reading")
        assert r.status_code == 200
        body = r.json()
        assert body["disclaimer"] == DISCLAIMER
        assert body["valid"] is False
        assert body["needs_calibration"] is True
        assert body["category"] is None
        assert body["pulse_transit_time"] == pytest.approx(200.0)
        assert body["pwv_assessment"] == "Good"
        assert body["hrv_assessment"] == "Unknown"

    def test_last_reading(self, client, clock):
        assert client.get("/bp/last").status_code == 404
        _stream(client, clock)
        fresh = client.get("/bp/reading").json()
        assert client.get("/bp/last").json() == fresh


class TestCalibrationEndpoints:

    def test_calibration_without_signal_conflicts(self, client):
        r = client.post("/calibration", json={"systolic": 120, "diastolic": 80})
        assert r.status_code == 409
        assert "pulse transit time" in r.json()["detail"]

    def test_calibration_flow(self, client, clock):
        assert client.get("/calibration").json()["needs_calibration"] is True

        _stream(client, clock, ptt_ms=200.0)
        r = client.post("/calibration", json={"systolic": 120, "diastolic": 80})
        assert r.status_code == 200
        assert r.json()["count"] == 1

        client.post("/reset")
        _stream(client, clock, ptt_ms=250.0)
        r = client.post("/calibration", json={"systolic": 110, "diastolic": 75})
        coefficients = r.json()["coefficients"]
        assert coefficients["systolic_slope"] == pytest.approx(-0.2)
        assert coefficients["diastolic_intercept"] == pytest.approx(100.0)

        client.post("/reset")
        _stream(client, clock, ptt_ms=220.0)
        body = client.get("/bp/reading").json()
        assert body["valid"] is True
        assert body["category"] == "Normal"
        assert body["systolic"] == pytest.approx(118.32)

    def test_full_store_conflicts(self, client, clock):
        _stream(client, clock)
        for _ in range(5):
            assert client.post("/calibration", json={"systolic": 120, "diastolic": 80}).status_code == 200
        r = client.post("/calibration", json={"systolic": 120, "diastolic": 80})
        assert r.status_code == 409
        assert "full" in r.json()["detail"]

    def test_clear_calibration(self, client, clock):
        _stream(client, clock)
        client.post("/calibration", json={"systolic": 120, "diastolic": 80})
        assert client.delete("/calibration").status_code == 200
        assert client.get("/calibration").json()["count"] == 0

    def test_reference_out_of_range(self, client):
        r = client.post("/calibration", json={"systolic": 400, "diastolic": 80})
        assert r.status_code == 422


class TestControlEndpoints:

    def test_adaptive_toggle(self, client, clock):
        assert client.post("/config/adaptive", json={"enabled": False}).json()["adaptive"] is False
        _stream(client, clock)
        assert client.app.state.session.monitor.thresholds == (1500.0, 50000.0)

    def test_reset_clears_last_reading(self, client, clock):
        _stream(client, clock)
        client.get("/bp/reading")
        assert client.post("/reset").status_code == 200
        assert client.get("/bp/last").status_code == 404
        assert client.get("/bp/ready").json() == {"ready": False}

    def test_status(self, client, clock):
        _stream(client, clock)
        body = client.get("/status").json()
        assert body["ready"] is True
        assert body["calibration_count"] == 0
        assert body["status"].startswith("BP Monitor: Ready")

    def test_apps_are_isolated(self, client, clock):
        _stream(client, clock)
        other = TestClient(create_app(MonitorSession(BloodPressureMonitor(clock=clock))))
        assert other.get("/bp/ready").json() == {"ready": False}
