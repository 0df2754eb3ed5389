"""
api/routes.py — FastAPI route definitions
==========================================
All HTTP endpoints are defined here and wired into the app via
`app.include_router(router)` in `api/app.py`.

Endpoint summary
----------------
    GET    /health             — Liveness probe
    POST   /profile            — Set user demographics (age, gender, height)
    POST   /samples/ecg        — Push a batch of timestamped ECG samples
    POST   /samples/ppg        — Push a batch of timestamped PPG (IR/red) samples
    GET    /bp/ready           — Enough clean signal for a measurement?
    GET    /bp/reading         — Compute a fresh blood-pressure estimate
    GET    /bp/last            — Most recent estimate without recomputing
    GET    /calibration        — Calibration count and coefficients
    POST   /calibration        — Add a reference cuff reading
    DELETE /calibration        — Drop all calibration points
    POST   /config/adaptive    — Enable / disable adaptive thresholds
    POST   /reset              — Clear buffered signals
    GET    /status             — Human-readable monitor status
    GET    /docs               — Auto-generated Swagger UI (FastAPI built-in)
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas import (
    AdaptiveModeRequest,
    CalibrationRequest,
    CalibrationResponse,
    ECGBatch,
    IngestResponse,
    PPGBatch,
    ReadingResponse,
    ReadyResponse,
    StatusResponse,
    UserMetadata,
)
from api.session import MonitorSession
from utils.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()


def get_session(request: Request) -> MonitorSession:
    """The session lives on `app.state` so each app instance is isolated."""
    return request.app.state.session


def _ingest_response(session: MonitorSession, accepted: int) -> IngestResponse:
    ecg_peaks, ppg_peaks = session.monitor.peak_counts
    return IngestResponse(accepted=accepted, ecg_peaks=ecg_peaks, ppg_peaks=ppg_peaks)


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    """Simple liveness check."""
    return {"status": "ok", "service": "PTT Blood Pressure Estimator"}


# ── Profile ───────────────────────────────────────────────────────────────────

@router.post("/profile")
async def set_profile(metadata: UserMetadata, session: MonitorSession = Depends(get_session)):
    """
    Store user demographics used for compensation and PWV.

    Body (JSON):
        age        : int     (10–120)
        gender     : str     ("male" | "female" | "other")
        height_cm  : float   (100–250)
    """
    session.set_metadata(metadata)
    return {"status": "ok", "message": "Profile stored."}


# ── Ingestion ─────────────────────────────────────────────────────────────────

@router.post("/samples/ecg")
async def ingest_ecg(batch: ECGBatch, session: MonitorSession = Depends(get_session)) -> IngestResponse:
    accepted = session.ingest_ecg(batch.samples)
    return _ingest_response(session, accepted)


@router.post("/samples/ppg")
async def ingest_ppg(batch: PPGBatch, session: MonitorSession = Depends(get_session)) -> IngestResponse:
    accepted = session.ingest_ppg(batch.samples)
    return _ingest_response(session, accepted)


# ── Measurement ───────────────────────────────────────────────────────────────

@router.get("/bp/ready")
async def bp_ready(session: MonitorSession = Depends(get_session)) -> ReadyResponse:
    return ReadyResponse(ready=session.is_ready())


@router.get("/bp/reading")
async def bp_reading(session: MonitorSession = Depends(get_session)) -> ReadingResponse:
    """
    Compute a fresh estimate.  Always returns 200; check `valid` and
    `needs_calibration` in the body.
    """
    return ReadingResponse(**session.measure())


@router.get("/bp/last")
async def bp_last(session: MonitorSession = Depends(get_session)) -> ReadingResponse:
    result = session.get_last_reading()
    if result is None:
        raise HTTPException(status_code=404, detail="No reading has been computed yet.")
    return ReadingResponse(**result)


# ── Calibration ───────────────────────────────────────────────────────────────

@router.get("/calibration")
async def get_calibration(session: MonitorSession = Depends(get_session)) -> CalibrationResponse:
    return CalibrationResponse(**session.calibration_summary())


@router.post("/calibration")
async def add_calibration(
    request: CalibrationRequest,
    session: MonitorSession = Depends(get_session),
) -> CalibrationResponse:
    """
    Pair a reference cuff reading with the current PTT.

    Returns 409 if the store is full or no valid PTT is available.
    """
    if not session.calibrate(request.systolic, request.diastolic):
        summary = session.calibration_summary()
        if summary["count"] >= summary["capacity"]:
            detail = "Calibration store is full. DELETE /calibration to start over."
        else:
            detail = "No valid pulse transit time yet. Keep streaming ECG and PPG samples."
        raise HTTPException(status_code=409, detail=detail)
    return CalibrationResponse(**session.calibration_summary())


@router.delete("/calibration")
async def clear_calibration(session: MonitorSession = Depends(get_session)):
    session.clear_calibration()
    return {"status": "ok", "message": "Calibration cleared. Population default in use."}


# ── Configuration & control ───────────────────────────────────────────────────

@router.post("/config/adaptive")
async def set_adaptive(request: AdaptiveModeRequest, session: MonitorSession = Depends(get_session)):
    session.set_adaptive_mode(request.enabled)
    return {"status": "ok", "adaptive": request.enabled}


@router.post("/reset")
async def reset(session: MonitorSession = Depends(get_session)):
    """Clear buffered signals and peaks.  Calibration is kept."""
    session.reset()
    return {"status": "ok", "message": "Monitor reset. Resume streaming samples."}


@router.get("/status")
async def status(session: MonitorSession = Depends(get_session)) -> StatusResponse:
    return StatusResponse(
        status=session.status(),
        ready=session.is_ready(),
        calibration_count=session.monitor.get_calibration_count(),
    )
