# src/round_intake/db/time.py
"""Time utilities for database models."""

import time


def unix_now() -> int:
    """Return the current time as integer epoch seconds."""
    return int(time.time())
