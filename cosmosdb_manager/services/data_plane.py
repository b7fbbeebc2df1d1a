"""
Data-plane clients.

Open live sessions against a database account from a connection string. The
wire protocol is delegated to ``pymongo`` (Mongo API) and ``azure-cosmos``
(NoSQL API); each open verifies the session with one round trip so an
unreachable endpoint fails here rather than on first use.

The same clients run the database-level operations (list and drop databases
and collections) over a connection they opened.
"""

import logging
from typing import Any, List, Optional, Protocol

from azure.cosmos.aio import CosmosClient
from pymongo import AsyncMongoClient

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Live data-plane session."""

    async def close(self) -> None: ...


class DataPlaneClient(Protocol):
    """Opens data-plane connections and runs database operations over them."""

    async def open(self, connection_string: str) -> Connection: ...

    async def list_databases(self, connection: Any) -> List[str]: ...

    async def list_collections(self, connection: Any, database: str) -> List[str]: ...

    async def drop_database(self, connection: Any, database: str) -> None: ...

    async def drop_collection(
        self, connection: Any, database: str, collection: str
    ) -> None: ...


class MongoDataPlaneClient:
    """Opens Mongo API connections with pymongo's asyncio client."""

    def __init__(
        self,
        connect_timeout_ms: int = 10000,
        client_factory: Optional[Any] = None,
    ) -> None:
        self.connect_timeout_ms = connect_timeout_ms
        self.client_factory = client_factory or AsyncMongoClient

    async def open(self, connection_string: str) -> Any:
        client = self.client_factory(
            connection_string,
            serverSelectionTimeoutMS=self.connect_timeout_ms,
            connectTimeoutMS=self.connect_timeout_ms,
        )
        try:
            await client.admin.command("ping")
        except BaseException:
            await client.close()
            raise
        return client

    async def list_databases(self, connection: Any) -> List[str]:
        return sorted(await connection.list_database_names())

    async def list_collections(self, connection: Any, database: str) -> List[str]:
        return sorted(await connection[database].list_collection_names())

    async def drop_database(self, connection: Any, database: str) -> None:
        logger.info(f"🗑️ Dropping database {database}")
        await connection.drop_database(database)

    async def drop_collection(self, connection: Any, database: str, collection: str) -> None:
        logger.info(f"🗑️ Dropping collection {database}.{collection}")
        await connection[database].drop_collection(collection)


class NoSqlDataPlaneClient:
    """Opens NoSQL API connections with the azure-cosmos asyncio client."""

    def __init__(
        self,
        connect_timeout_ms: int = 10000,
        client_factory: Optional[Any] = None,
    ) -> None:
        self.connect_timeout_ms = connect_timeout_ms
        self.client_factory = client_factory or CosmosClient.from_connection_string

    async def open(self, connection_string: str) -> Any:
        client = self.client_factory(
            connection_string,
            connection_timeout=max(1, self.connect_timeout_ms // 1000),
        )
        try:
            async for _ in client.list_databases(max_item_count=1):
                break
        except BaseException:
            await client.close()
            raise
        return client

    async def list_databases(self, connection: Any) -> List[str]:
        return sorted([item["id"] async for item in connection.list_databases()])

    async def list_collections(self, connection: Any, database: str) -> List[str]:
        database_client = connection.get_database_client(database)
        return sorted([item["id"] async for item in database_client.list_containers()])

    async def drop_database(self, connection: Any, database: str) -> None:
        logger.info(f"🗑️ Deleting database {database}")
        await connection.delete_database(database)

    async def drop_collection(self, connection: Any, database: str, collection: str) -> None:
        logger.info(f"🗑️ Deleting container {database}.{collection}")
        await connection.get_database_client(database).delete_container(collection)
