"""Tests for snapshot processing and idempotency."""

import pytest
from sqlalchemy.orm import Session

from round_intake.core.errors import (
    IncompleteSnapshotError,
    PersistenceError,
    SnapshotDecodeError,
    SnapshotNotFoundError,
    UnauthorizedServerError,
)
from round_intake.core.settings import Settings
from round_intake.models import FailedSnapshot, Round, Server
from round_intake.services.failures import FailedSnapshotStore, FailureRecorder
from round_intake.services.lifecycle import SnapshotLifecycle
from round_intake.services.processor import (
    MESSAGE_ALREADY_PROCESSED,
    MESSAGE_PROCESSED,
    ProcessStatus,
    SnapshotProcessor,
)
from round_intake.services.snapshot import PlayerRecord, Snapshot
from round_intake.services.stats_store import DuplicateRoundError, StatsStore
from tests.helpers import snapshot_payload


@pytest.fixture()
def processor(db_session: Session, lifecycle: SnapshotLifecycle, test_settings: Settings) -> SnapshotProcessor:
    recorder = FailureRecorder(FailedSnapshotStore(db_session), lifecycle, test_settings)
    return SnapshotProcessor(db_session, recorder, test_settings)


def test_process_commits_round(
    processor: SnapshotProcessor, db_session: Session, authorized_server: Server, write_pending
) -> None:
    path = write_pending("foo")

    outcome = processor.process(path)

    assert outcome.status is ProcessStatus.PROCESSED
    assert outcome.message == MESSAGE_PROCESSED
    assert outcome.snapshot.server_id == authorized_server.id
    assert outcome.source_filename == "Test-Server_strike-at-karkand_20231114_2213.json"

    round_ = db_session.query(Round).one()
    assert round_.map_name == "strike_at_karkand"
    assert [player.name for player in round_.players] == ["Alpha", "Bravo"]
    # The processor never moves files.
    assert path.is_file()


def test_process_is_idempotent(
    processor: SnapshotProcessor, db_session: Session, authorized_server: Server, write_pending, mocker
) -> None:
    processor.process(write_pending("first"))
    write_round = mocker.spy(processor.stats, "write_round")

    outcome = processor.process(write_pending("second"))

    assert outcome.status is ProcessStatus.ALREADY_PROCESSED
    assert outcome.message == MESSAGE_ALREADY_PROCESSED
    write_round.assert_not_called()
    assert db_session.query(Round).count() == 1


def test_duplicate_commit_reports_already_processed(
    processor: SnapshotProcessor, db_session: Session, authorized_server: Server, write_pending, mocker
) -> None:
    mocker.patch.object(processor, "is_processed", return_value=False)
    mocker.patch.object(StatsStore, "write_round", side_effect=DuplicateRoundError("exists"))

    outcome = processor.process(write_pending("foo"))

    assert outcome.status is ProcessStatus.ALREADY_PROCESSED
    assert db_session.query(FailedSnapshot).count() == 0


def test_other_servers_round_is_not_a_duplicate(
    processor: SnapshotProcessor, db_session: Session, authorized_server: Server, write_pending
) -> None:
    other = Server(auth_id="B2", name="Other", ip="10.0.0.6", port=16567, authorized=True)
    db_session.add(other)
    db_session.commit()

    processor.process(write_pending("mine"))
    outcome = processor.process(write_pending("theirs", authId="B2", serverIp="10.0.0.6"))

    assert outcome.status is ProcessStatus.PROCESSED
    assert db_session.query(Round).count() == 2


def test_unauthorized_error_carries_snapshot(
    processor: SnapshotProcessor, db_session: Session, unauthorized_server: Server, write_pending
) -> None:
    with pytest.raises(UnauthorizedServerError) as excinfo:
        processor.process(write_pending("foo"))

    assert excinfo.value.snapshot is not None
    assert excinfo.value.snapshot.server_id == 0
    assert db_session.query(Round).count() == 0
    assert db_session.query(FailedSnapshot).count() == 0


def test_override_imports_unauthorized_server(
    processor: SnapshotProcessor, db_session: Session, unauthorized_server: Server, write_pending
) -> None:
    outcome = processor.process(write_pending("foo"), ignore_authorization=True)

    assert outcome.status is ProcessStatus.PROCESSED
    assert outcome.snapshot.server_id == unauthorized_server.id


def test_persistence_error_is_recorded_once(
    processor: SnapshotProcessor, db_session: Session, authorized_server: Server, write_pending, mocker
) -> None:
    mocker.patch.object(StatsStore, "write_round", side_effect=PersistenceError("Failed to save round data"))

    with pytest.raises(PersistenceError):
        processor.process(write_pending("foo"))

    record = db_session.query(FailedSnapshot).one()
    assert record.server_id == authorized_server.id
    assert record.filename == "foo"
    assert record.reason == "Failed to save round data"


def test_decode_error_propagates_without_record(
    processor: SnapshotProcessor, db_session: Session, write_pending
) -> None:
    with pytest.raises(SnapshotDecodeError):
        processor.process(write_pending("foo", content=b"{not json"))
    assert db_session.query(FailedSnapshot).count() == 0


def test_incomplete_snapshot_propagates(processor: SnapshotProcessor, write_pending) -> None:
    payload_path = write_pending("foo", content={"authId": "A1"})
    with pytest.raises(IncompleteSnapshotError):
        processor.process(payload_path)


def test_missing_file_is_not_found(processor: SnapshotProcessor, lifecycle: SnapshotLifecycle) -> None:
    with pytest.raises(SnapshotNotFoundError, match="gone"):
        processor.process(lifecycle.pending_dir / "gone.json")


def test_driver_error_is_rolled_back_and_recorded(
    processor: SnapshotProcessor, db_session: Session, authorized_server: Server, write_pending, mocker
) -> None:
    path = write_pending("big")
    snapshot = Snapshot.from_mapping(snapshot_payload())
    # Bypasses parsing to reach the driver with a value SQLite cannot store.
    snapshot.players = [PlayerRecord(name="Alpha", rank=1, score=10**20)]
    mocker.patch("round_intake.services.processor.load_snapshot", return_value=snapshot)

    with pytest.raises(PersistenceError, match="Failed to save round data"):
        processor.process(path)

    assert db_session.query(Round).count() == 0
    record = db_session.query(FailedSnapshot).one()
    assert record.server_id == authorized_server.id
    assert record.filename == "big"
