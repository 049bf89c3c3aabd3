"""JSON decoding for snapshot files with a diagnostic error taxonomy."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Final

from round_intake.core.errors import DecodeReason, SnapshotDecodeError

logger = logging.getLogger(__name__)

# Field separator of the pre-JSON snapshot format, e.g. "\mapname\strike_at_karkand\".
LEGACY_MARKER: Final[str] = "\\mapname\\"

DEFAULT_MAX_DEPTH: Final[int] = 512

_OPENERS: Final[dict[str, str]] = {"{": "}", "[": "]"}
_CLOSERS: Final[frozenset[str]] = frozenset("}]")


def _scan_structure(text: str) -> tuple[int, bool]:
    """Return the maximum container depth and whether the brackets mismatch.

    Characters inside string literals are ignored. A mismatch is a closing
    bracket that does not pair with the innermost open container, or one that
    arrives while nothing is open.
    """
    stack: list[str] = []
    max_depth = 0
    in_string = False
    escaped = False

    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _OPENERS:
            stack.append(_OPENERS[char])
            max_depth = max(max_depth, len(stack))
        elif char in _CLOSERS:
            if not stack or stack.pop() != char:
                return max_depth, True

    return max_depth, False


def classify_decode_error(text: str, error: json.JSONDecodeError) -> DecodeReason:
    """Map a decoder fault onto a ``DecodeReason``."""
    if error.msg.startswith("Invalid control character"):
        return DecodeReason.CONTROL_CHARACTER

    # The legacy marker outranks every other syntax diagnosis.
    if LEGACY_MARKER in text:
        return DecodeReason.LEGACY_FORMAT

    _, mismatch = _scan_structure(text)
    if mismatch:
        return DecodeReason.STATE_MISMATCH

    return DecodeReason.SYNTAX_ERROR


def decode_snapshot(
    raw: bytes,
    path: Path | str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Any]:
    """Decode raw snapshot bytes into a mapping.

    Args:
        raw: File contents as read from disk.
        path: Snapshot path, included in the raised error.
        max_depth: Maximum allowed nesting of objects and arrays.

    Returns:
        The decoded top-level JSON object, in document order.

    Raises:
        SnapshotDecodeError: If the bytes are not a decodable JSON object.
    """
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SnapshotDecodeError(DecodeReason.INVALID_ENCODING, path, str(exc)) from exc

    depth, _ = _scan_structure(text)
    if depth > max_depth:
        raise SnapshotDecodeError(
            DecodeReason.DEPTH_EXCEEDED,
            path,
            f"nesting depth {depth} exceeds limit {max_depth}",
        )

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        reason = classify_decode_error(text, exc)
        fault = f"{exc.msg} (line {exc.lineno} column {exc.colno})"
        logger.debug("Snapshot %s failed to decode: %s", path, fault)
        raise SnapshotDecodeError(reason, path, fault) from exc
    except RecursionError as exc:
        raise SnapshotDecodeError(DecodeReason.DEPTH_EXCEEDED, path, "recursion limit reached") from exc
    except ValueError as exc:
        raise SnapshotDecodeError(DecodeReason.UNKNOWN, path, str(exc)) from exc

    if not isinstance(data, dict):
        raise SnapshotDecodeError(
            DecodeReason.UNKNOWN,
            path,
            f"top-level value is {type(data).__name__}, expected object",
        )

    return data


def read_snapshot(path: Path, *, max_depth: int = DEFAULT_MAX_DEPTH) -> dict[str, Any]:
    """Read and decode a snapshot file.

    ``OSError`` from reading is left to the caller, which knows whether a
    missing file is fatal.
    """
    return decode_snapshot(path.read_bytes(), path, max_depth=max_depth)
