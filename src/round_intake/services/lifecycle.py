"""On-disk lifecycle of snapshot files.

A snapshot file lives in exactly one of three directories:

- ``unauthorized``: pending files waiting to be accepted or deleted
- ``processed``: files whose round has been committed
- ``failed``: files that could not be imported

``SnapshotLifecycle`` is the only component that renames or deletes files in
these directories.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Final

from round_intake.core.errors import (
    SnapshotFileError,
    SnapshotNotFoundError,
    UnknownSnapshotFolderError,
)
from round_intake.core.settings import Settings
from round_intake.core.settings import settings as default_settings

logger = logging.getLogger(__name__)

SNAPSHOT_EXTENSION: Final[str] = ".json"


class _KeyedLocks:
    """Process-wide locks keyed by name, dropped once nobody holds them."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[str, tuple[Lock, int]] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (Lock(), 0))
            self._locks[key] = (lock, users + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                lock, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)


_FILE_LOCKS = _KeyedLocks()


class _FailedNames:
    """Destination names in ``failed`` reserved per pending source path.

    A name is picked once for a source and kept until its move finishes, so
    the failure record and the quarantined file always agree on it.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._by_source: dict[Path, Path] = {}

    def reserve(self, source: Path, directory: Path) -> Path:
        with self._guard:
            reserved = self._by_source.get(source)
            if reserved is not None:
                return reserved
            taken = set(self._by_source.values())
            candidate = directory / source.name
            suffix = 1
            while candidate in taken or candidate.exists():
                candidate = directory / f"{source.stem}-{suffix}{SNAPSHOT_EXTENSION}"
                suffix += 1
            self._by_source[source] = candidate
            return candidate

    def release(self, source: Path) -> None:
        with self._guard:
            self._by_source.pop(source, None)


_FAILED_NAMES = _FailedNames()


@dataclass
class DeleteReport:
    """Outcome of a best-effort batch delete."""

    deleted: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


def snapshot_basename(filename: str) -> str:
    """Return a snapshot filename without its extension."""
    if filename.lower().endswith(SNAPSHOT_EXTENSION):
        return filename[: -len(SNAPSHOT_EXTENSION)]
    return filename


def _validate_name(name: str) -> str:
    if not name or name in {".", ".."} or name.startswith("."):
        raise SnapshotFileError(f"Invalid snapshot name: {name!r}")
    if "/" in name or "\\" in name or os.sep in name or "\x00" in name:
        raise SnapshotFileError(f"Invalid snapshot name: {name!r}")
    return name


class SnapshotLifecycle:
    """Own the pending, processed and failed snapshot directories."""

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self.folders = self.config.snapshot_folders

    @property
    def pending_dir(self) -> Path:
        return self.folders[self.config.pending_dir_name]

    @property
    def processed_dir(self) -> Path:
        return self.folders[self.config.processed_dir_name]

    @property
    def failed_dir(self) -> Path:
        return self.folders[self.config.failed_dir_name]

    def folder(self, name: str) -> Path:
        """Return the directory of a lifecycle folder by name."""
        try:
            return self.folders[name]
        except KeyError as err:
            raise UnknownSnapshotFolderError(f"Unknown snapshot folder: {name}") from err

    def ensure_directories(self) -> None:
        """Create all lifecycle directories if missing."""
        for path in self.folders.values():
            path.mkdir(parents=True, exist_ok=True)

    def is_writable(self) -> bool:
        """Return True if files can be moved into the terminal directories."""
        return all(
            path.is_dir() and os.access(path, os.W_OK)
            for path in (self.processed_dir, self.failed_dir)
        )

    def pending_path(self, name: str) -> Path:
        """Return the path of a pending snapshot from its display name."""
        base = _validate_name(snapshot_basename(name))
        return self.pending_dir / f"{base}{SNAPSHOT_EXTENSION}"

    @contextmanager
    def lock(self, name: str) -> Iterator[None]:
        """Serialize work on one snapshot filename across threads."""
        with _FILE_LOCKS.hold(snapshot_basename(name)):
            yield

    def move_to_processed(self, source: Path, canonical_name: str) -> Path:
        """Move a pending file to ``processed`` under its canonical name."""
        name = _validate_name(canonical_name)
        return self._move(source, self.processed_dir / name)

    def failed_path_for(self, source: Path) -> Path:
        """Return where ``source`` lands in ``failed``.

        The inbound name is kept unless a file of that name is already
        there, in which case a ``-<n>`` suffix is added. Repeated calls for
        the same source return the same path until it has been moved.
        """
        return _FAILED_NAMES.reserve(source, self.failed_dir)

    def move_to_failed(self, source: Path) -> Path:
        """Move a pending file to ``failed`` without replacing earlier failures."""
        destination = self.failed_path_for(source)
        try:
            return self._move(source, destination)
        finally:
            _FAILED_NAMES.release(source)

    def delete_pending(self, names: Iterable[str]) -> DeleteReport:
        """Delete pending snapshots, continuing past individual failures."""
        report = DeleteReport()
        for name in names:
            try:
                path = self.pending_path(name)
                with self.lock(name):
                    path.unlink()
            except FileNotFoundError:
                report.errors[name] = f"No snapshots with the filename exists: {name}"
            except SnapshotFileError as exc:
                report.errors[name] = str(exc)
            except OSError as exc:
                logger.warning("Failed to delete pending snapshot %s: %s", name, exc)
                report.errors[name] = f"Failed to delete {name}: {exc.strerror or exc}"
            else:
                report.deleted.append(name)
                logger.info("Deleted pending snapshot %s", name)
        return report

    def delete_failed(self, filename: str) -> bool:
        """Delete a file from ``failed``; return False if it was already gone.

        Raises:
            SnapshotFileError: If the file exists but cannot be removed.
        """
        base = _validate_name(snapshot_basename(filename))
        path = self.failed_dir / f"{base}{SNAPSHOT_EXTENSION}"
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise SnapshotFileError(f"Failed to delete {path}: {exc.strerror or exc}") from exc
        return True

    def _move(self, source: Path, destination: Path) -> Path:
        try:
            os.replace(source, destination)
        except FileNotFoundError as exc:
            if not source.exists():
                raise SnapshotNotFoundError(
                    f"No snapshots with the filename exists: {snapshot_basename(source.name)}"
                ) from exc
            raise SnapshotFileError(f"Failed to move {source} to {destination}: {exc}") from exc
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise SnapshotFileError(f"Failed to move {source} to {destination}: {exc}") from exc
            self._move_across_devices(source, destination)

        logger.info("Moved snapshot %s to %s", source.name, destination)
        return destination

    def _move_across_devices(self, source: Path, destination: Path) -> None:
        token = uuid.uuid4().hex
        temp = destination.with_name(f".{destination.name}.{token}.tmp")
        previous = destination.with_name(f".{destination.name}.{token}.prev")
        try:
            shutil.copy2(source, temp)
        except FileNotFoundError as exc:
            temp.unlink(missing_ok=True)
            raise SnapshotNotFoundError(
                f"No snapshots with the filename exists: {snapshot_basename(source.name)}"
            ) from exc
        except OSError as exc:
            temp.unlink(missing_ok=True)
            raise SnapshotFileError(f"Failed to move {source} to {destination}: {exc}") from exc

        # Set aside a file being replaced so a failed move can put it back.
        replaced = destination.exists()
        try:
            if replaced:
                os.replace(destination, previous)
            os.replace(temp, destination)
        except OSError as exc:
            temp.unlink(missing_ok=True)
            if replaced and previous.exists():
                os.replace(previous, destination)
            raise SnapshotFileError(f"Failed to move {source} to {destination}: {exc}") from exc

        try:
            source.unlink()
        except OSError as exc:
            # Keep a single copy: undo only our own placement.
            if replaced:
                os.replace(previous, destination)
            else:
                destination.unlink(missing_ok=True)
            raise SnapshotFileError(f"Failed to remove {source} after copying: {exc}") from exc

        if replaced:
            previous.unlink(missing_ok=True)
