"""HTTP API for unweb."""

from .app import create_app, run_server
from .responses import outcome_response, status_for

__all__ = ["create_app", "outcome_response", "run_server", "status_for"]
