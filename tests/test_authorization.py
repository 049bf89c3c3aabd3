"""Tests for server authorization resolution."""

import pytest
from sqlalchemy.orm import Session

from round_intake.core.errors import UnauthorizedServerError
from round_intake.core.settings import Settings
from round_intake.models import Server
from round_intake.services.authorization import ServerAuthorizer

IDENTITY = ("A1", "10.0.0.5", 16567)


def test_authorized_server_resolves(db_session: Session, authorized_server: Server, test_settings: Settings) -> None:
    authorizer = ServerAuthorizer(db_session, test_settings)
    assert authorizer.resolve(*IDENTITY) == authorized_server.id


def test_resolution_is_idempotent(db_session: Session, authorized_server: Server, test_settings: Settings) -> None:
    authorizer = ServerAuthorizer(db_session, test_settings)
    first = authorizer.resolve(*IDENTITY, name="Renamed")
    second = authorizer.resolve(*IDENTITY)

    assert first == second == authorized_server.id
    assert db_session.query(Server).count() == 1
    db_session.refresh(authorized_server)
    assert authorized_server.name == "Renamed"
    assert authorized_server.last_seen > 0


def test_unauthorized_server_is_rejected(
    db_session: Session, unauthorized_server: Server, test_settings: Settings
) -> None:
    authorizer = ServerAuthorizer(db_session, test_settings)

    with pytest.raises(UnauthorizedServerError) as excinfo:
        authorizer.resolve(*IDENTITY)
    assert excinfo.value.server_id == unauthorized_server.id


def test_identity_requires_matching_port(
    db_session: Session, authorized_server: Server, test_settings: Settings
) -> None:
    authorizer = ServerAuthorizer(db_session, test_settings)

    with pytest.raises(UnauthorizedServerError):
        authorizer.resolve("A1", "10.0.0.5", 29900)


def test_unknown_server_is_registered_unauthorized(db_session: Session, test_settings: Settings) -> None:
    authorizer = ServerAuthorizer(db_session, test_settings)

    with pytest.raises(UnauthorizedServerError, match="awaiting authorization") as excinfo:
        authorizer.resolve(*IDENTITY, name="Fresh")

    server = db_session.query(Server).one()
    assert server.authorized is False
    assert server.name == "Fresh"
    assert excinfo.value.server_id == server.id

    # A second contact finds the registered record instead of creating another.
    with pytest.raises(UnauthorizedServerError):
        authorizer.resolve(*IDENTITY)
    assert db_session.query(Server).count() == 1


def test_unknown_server_is_rejected_without_auto_registration(
    db_session: Session, test_settings: Settings
) -> None:
    test_settings.auto_register_servers = False
    authorizer = ServerAuthorizer(db_session, test_settings)

    with pytest.raises(UnauthorizedServerError) as excinfo:
        authorizer.resolve(*IDENTITY)

    assert excinfo.value.server_id == 0
    assert db_session.query(Server).count() == 0


def test_override_resolves_unauthorized_server(
    db_session: Session, unauthorized_server: Server, test_settings: Settings
) -> None:
    authorizer = ServerAuthorizer(db_session, test_settings)

    assert authorizer.resolve(*IDENTITY, ignore_authorization=True) == unauthorized_server.id
    db_session.refresh(unauthorized_server)
    assert unauthorized_server.authorized is False


def test_override_creates_unknown_server(db_session: Session, test_settings: Settings) -> None:
    test_settings.auto_register_servers = False
    authorizer = ServerAuthorizer(db_session, test_settings)

    server_id = authorizer.resolve(*IDENTITY, ignore_authorization=True)

    assert server_id > 0
    assert authorizer.resolve(*IDENTITY, ignore_authorization=True) == server_id


def test_lookup_has_no_side_effects(db_session: Session, test_settings: Settings) -> None:
    authorizer = ServerAuthorizer(db_session, test_settings)
    assert authorizer.lookup(*IDENTITY) is None
    assert db_session.query(Server).count() == 0
