"""Structured representation of a decoded round snapshot."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Final

from round_intake.core.errors import IncompleteSnapshotError

REQUIRED_FIELDS: Final[tuple[str, ...]] = (
    "authId",
    "serverName",
    "gamePort",
    "serverIp",
    "mapName",
    "mapEnd",
    "players",
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9-]+")


# Storage widths of the integer columns a snapshot value lands in.
INT32_BITS: Final[int] = 32
INT64_BITS: Final[int] = 64


def _coerce_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise IncompleteSnapshotError(f"Incomplete snapshot data: '{field_name}' must be numeric")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            try:
                number = float(value.strip())
            except ValueError:
                number = None
            if number is not None and number.is_integer():
                return int(number)
    raise IncompleteSnapshotError(f"Incomplete snapshot data: '{field_name}' must be numeric")


def _as_int(value: Any, field_name: str, bits: int = INT32_BITS) -> int:
    """Coerce an integer-like JSON value that must fit a signed ``bits`` column."""
    number = _coerce_int(value, field_name)
    limit = 1 << (bits - 1)
    if not -limit <= number < limit:
        raise IncompleteSnapshotError(
            f"Incomplete snapshot data: '{field_name}' is out of range ({number})"
        )
    return number


def _as_text(value: Any, field_name: str) -> str:
    if isinstance(value, (dict, list)) or value is None:
        raise IncompleteSnapshotError(f"Incomplete snapshot data: '{field_name}' must be a string")
    return str(value)


def _slug(value: str) -> str:
    slug = _UNSAFE_FILENAME_CHARS.sub("-", value).strip("-")
    return slug or "unknown"


@dataclass(frozen=True)
class PlayerRecord:
    """A single player entry of a round snapshot."""

    name: str
    rank: int
    pid: int = 0
    team: int = 0
    score: int = 0
    kills: int = 0
    deaths: int = 0

    @classmethod
    def from_mapping(cls, data: Any, position: int) -> PlayerRecord:
        if not isinstance(data, Mapping):
            raise IncompleteSnapshotError(
                f"Incomplete snapshot data: player #{position} is not an object"
            )
        if "name" not in data or "rank" not in data:
            raise IncompleteSnapshotError(
                f"Incomplete snapshot data: player #{position} requires 'name' and 'rank'"
            )

        def optional(key: str) -> int:
            if data.get(key) is None:
                return 0
            return _as_int(data[key], f"players[{position}].{key}")

        return cls(
            name=_as_text(data["name"], f"players[{position}].name"),
            rank=_as_int(data["rank"], f"players[{position}].rank"),
            pid=optional("pid"),
            team=optional("team"),
            score=optional("score"),
            kills=optional("kills"),
            deaths=optional("deaths"),
        )


@dataclass
class Snapshot:
    """Parsed round report.

    ``server_id`` stays 0 until authorization resolves the reporting server.
    """

    auth_id: str
    server_name: str
    server_ip: str
    game_port: int
    map_name: str
    map_end: int
    players: list[PlayerRecord] = field(default_factory=list)
    map_start: int | None = None
    game_mode: str | None = None
    version: str | None = None
    server_id: int = 0

    @classmethod
    def from_mapping(cls, data: Any) -> Snapshot:
        """Build a snapshot from a decoded JSON object.

        Raises:
            IncompleteSnapshotError: If a required field is missing or malformed.
        """
        if not isinstance(data, Mapping):
            raise IncompleteSnapshotError("Incomplete snapshot data: expected a JSON object")

        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise IncompleteSnapshotError(
                "Incomplete snapshot data: missing " + ", ".join(missing)
            )

        raw_players = data["players"]
        if not isinstance(raw_players, list):
            raise IncompleteSnapshotError("Incomplete snapshot data: 'players' must be a list")

        map_start = data.get("mapStart")
        game_mode = data.get("gameMode")
        version = data.get("version")

        map_end = _as_int(data["mapEnd"], "mapEnd", INT64_BITS)
        try:
            datetime.fromtimestamp(map_end, UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise IncompleteSnapshotError(
                f"Incomplete snapshot data: 'mapEnd' is not a valid timestamp ({map_end})"
            ) from exc

        return cls(
            auth_id=_as_text(data["authId"], "authId"),
            server_name=_as_text(data["serverName"], "serverName"),
            server_ip=_as_text(data["serverIp"], "serverIp"),
            game_port=_as_int(data["gamePort"], "gamePort"),
            map_name=_as_text(data["mapName"], "mapName"),
            map_end=map_end,
            players=[
                PlayerRecord.from_mapping(player, position)
                for position, player in enumerate(raw_players)
            ],
            map_start=None if map_start is None else _as_int(map_start, "mapStart", INT64_BITS),
            game_mode=None if game_mode is None else _as_text(game_mode, "gameMode"),
            version=None if version is None else _as_text(version, "version"),
        )

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def source_filename(self) -> str:
        """Canonical filename derived from the round itself.

        Operators may rename a file before accepting it, so the processed
        copy is always named after the server, map and end time.
        """
        ended = datetime.fromtimestamp(self.map_end, UTC)
        return f"{_slug(self.server_name)}_{_slug(self.map_name)}_{ended:%Y%m%d_%H%M}.json"

    @property
    def round_key(self) -> tuple[int, str, int]:
        """Identity of the round in the stats store."""
        return (self.server_id, self.map_name, self.map_end)
