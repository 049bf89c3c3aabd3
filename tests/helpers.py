"""Shared helpers for snapshot intake tests."""

from __future__ import annotations

from typing import Any

ROUND_END = 1_700_000_000


def snapshot_payload(**overrides: Any) -> dict[str, Any]:
    """Return a valid snapshot document, with fields overridden as given."""
    payload: dict[str, Any] = {
        "authId": "A1",
        "serverName": "Test Server",
        "gamePort": 16567,
        "serverIp": "10.0.0.5",
        "mapName": "strike_at_karkand",
        "mapStart": ROUND_END - 1800,
        "mapEnd": ROUND_END,
        "gameMode": "gpm_cq",
        "players": [
            {"pid": 101, "name": "Alpha", "rank": 3, "team": 1, "score": 42, "kills": 7, "deaths": 2},
            {"pid": 102, "name": "Bravo", "rank": 0, "team": 2, "score": 10, "kills": 1, "deaths": 5},
        ],
    }
    payload.update(overrides)
    return payload
