"""Authorization of reporting game servers."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from round_intake.core.errors import UnauthorizedServerError
from round_intake.core.settings import Settings
from round_intake.core.settings import settings as default_settings
from round_intake.db.time import unix_now
from round_intake.models import Server

logger = logging.getLogger(__name__)


class ServerAuthorizer:
    """Resolve the server id a snapshot may be committed under."""

    def __init__(self, db: Session, config: Settings | None = None) -> None:
        self.db = db
        self.config = config or default_settings

    def lookup(self, auth_id: str, ip: str, port: int) -> Server | None:
        """Return the server matching the identity triple without side effects."""
        return (
            self.db.query(Server)
            .filter(Server.auth_id == auth_id, Server.ip == ip, Server.port == port)
            .first()
        )

    def resolve(
        self,
        auth_id: str,
        ip: str,
        port: int,
        ignore_authorization: bool = False,
        *,
        name: str = "",
    ) -> int:
        """Return the id of the server allowed to submit this round.

        Args:
            auth_id: Credential reported by the server.
            ip: Address reported by the server.
            port: Game port reported by the server.
            ignore_authorization: Operator override; find or create the server
                and return its id whatever its authorization state.
            name: Display name reported by the server.

        Raises:
            UnauthorizedServerError: If the server is unknown or not authorized.
        """
        server = self.lookup(auth_id, ip, port)

        if ignore_authorization:
            if server is None:
                server = self._register(auth_id, ip, port, name)
            logger.info("Authorization bypassed for server %s (%s:%s)", server.id, ip, port)
            self._touch(server, name)
            return server.id

        if server is None:
            if not self.config.auto_register_servers:
                raise UnauthorizedServerError(
                    f"Server {ip}:{port} is not registered to post snapshots"
                )
            server = self._register(auth_id, ip, port, name)
            logger.info("Registered unknown server %s (%s:%s) pending authorization", server.id, ip, port)
            raise UnauthorizedServerError(
                f"Server {ip}:{port} was registered and is awaiting authorization",
                server_id=server.id,
            )

        if not server.authorized:
            raise UnauthorizedServerError(
                f"Server {ip}:{port} is not authorized to post snapshots",
                server_id=server.id,
            )

        self._touch(server, name)
        return server.id

    def _register(self, auth_id: str, ip: str, port: int, name: str) -> Server:
        server = Server(
            auth_id=auth_id,
            ip=ip,
            port=port,
            name=name,
            authorized=False,
            last_seen=unix_now(),
        )
        self.db.add(server)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request registered the same identity first.
            self.db.rollback()
            existing = self.lookup(auth_id, ip, port)
            if existing is None:
                raise
            return existing
        self.db.refresh(server)
        return server

    def _touch(self, server: Server, name: str) -> None:
        server.last_seen = unix_now()
        if name:
            server.name = name
        self.db.flush()
