# src/round_intake/models/__init__.py
"""SQLAlchemy models for the Round Intake application."""

from .failed_snapshot import FailedSnapshot
from .round import Round, RoundPlayer
from .server import Server

__all__ = [
    "FailedSnapshot",
    "Round", "RoundPlayer",
    "Server",
]
