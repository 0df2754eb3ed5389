#!/usr/bin/env python3
"""
PTT Blood-Pressure Estimation Service — Main Entry Point
=========================================================
Launches the FastAPI backend with Uvicorn.
Run with:  python main.py

Sensor bridges POST timestamped ECG / PPG samples; dashboards poll
GET /bp/reading.

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool, NOT a medical device.
    Blood pressure is ESTIMATED from pulse transit time.  Do NOT use these
    readings for clinical diagnosis or treatment decisions.
"""

import uvicorn

from api.app import create_app
from config import API_HOST, API_PORT

if __name__ == "__main__":
    app = create_app()
    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        reload=False,
        log_level="info",
    )
