"""
Connection Registry

Caches one live data-plane connection per server identity. Per key the state
moves Absent → Connecting → Connected → Absent (on disconnect). Concurrent
connects for the same key share one in-flight attempt; different keys never
block each other.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..exceptions import ConnectionFailedError
from ..models import ServerIdentity
from .data_plane import Connection, DataPlaneClient

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Owns the live data-plane connections of the tool.

    Construct once at startup, inject where needed and call ``close_all`` at
    shutdown.
    """

    def __init__(self, data_plane: DataPlaneClient) -> None:
        self.data_plane = data_plane
        self._connections: Dict[ServerIdentity, Connection] = {}
        self._pending: Dict[ServerIdentity, "asyncio.Future[Connection]"] = {}

    @property
    def servers(self) -> List[ServerIdentity]:
        """Server identities with a live connection."""
        return list(self._connections)

    def has_connection(self, server: ServerIdentity) -> bool:
        return server in self._connections

    def get(self, server: ServerIdentity) -> Optional[Connection]:
        return self._connections.get(server)

    def is_connecting(self, server: ServerIdentity) -> bool:
        return server in self._pending

    async def connect(self, server: ServerIdentity, connection_string: str) -> Connection:
        """
        Open a connection for a server and cache it.

        A connect issued while another one for the same server is in flight
        awaits that attempt and returns its outcome.

        Args:
            server: Server identity used as the cache key
            connection_string: Data-plane connection string

        Returns:
            The cached connection

        Raises:
            ConnectionFailedError: If the data-plane client cannot connect;
                the registry is left unchanged
        """
        pending = self._pending.get(server)
        if pending is not None:
            logger.debug(f"Joining in-flight connect for {server}")
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._open(server, connection_string))
        self._pending[server] = task
        try:
            return await asyncio.shield(task)
        finally:
            if self._pending.get(server) is task:
                del self._pending[server]

    async def _open(self, server: ServerIdentity, connection_string: str) -> Connection:
        logger.info(f"🔌 Connecting to {server}")
        try:
            connection = await self.data_plane.open(connection_string)
        except Exception as exc:
            logger.warning(f"Could not connect to {server}: {type(exc).__name__}")
            raise ConnectionFailedError(
                f"Could not connect to {server}", server=server, cause=exc
            ) from exc

        previous = self._connections.get(server)
        self._connections[server] = connection
        if previous is not None and previous is not connection:
            await self._release(server, previous)
        logger.info(f"✅ Connected to {server}")
        return connection

    async def disconnect(self, server: ServerIdentity) -> None:
        """Remove a server's connection and close it. No-op when absent."""
        connection = self._connections.pop(server, None)
        if connection is None:
            return
        await self._release(server, connection)
        logger.info(f"Disconnected from {server}")

    async def close_all(self) -> None:
        """Disconnect every server (shutdown hook)."""
        for server in list(self._connections):
            await self.disconnect(server)

    async def _release(self, server: ServerIdentity, connection: Any) -> None:
        try:
            await connection.close()
        except Exception as exc:
            logger.warning(f"Error closing connection for {server}: {exc}")
