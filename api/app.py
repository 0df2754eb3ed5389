"""
api/app.py — FastAPI application factory
==========================================
Creates and configures the FastAPI instance.  All configuration is
centralised here so that `main.py` stays minimal.

CORS
----
We allow all origins by default (suitable for local development and
demos).  In a production deployment restrict `allow_origins` to your
dashboard domain.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from api.session import MonitorSession
from config import API_TITLE, API_VERSION


def create_app(session: MonitorSession | None = None) -> FastAPI:
    """
    Construct and return the configured FastAPI application.

    Each app owns its own `MonitorSession` (and therefore its own monitor),
    so tests can create isolated app instances.
    """
    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Continuous ECG/PPG pulse-transit-time blood-pressure estimation API. "
            "⚠️ WELLNESS TOOL ONLY — not a medical device."
        ),
    )
    app.state.session = session or MonitorSession()

    # ── CORS ────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],           # Restrict in production!
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app
