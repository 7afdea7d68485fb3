"""
Baby Tracker API module.

Provides FastAPI HTTP endpoints and server-rendered family pages.
"""

from baby_tracker.api.main import app, run_server

__all__ = ["app", "run_server"]
