"""
API variants.

Mongo API and NoSQL API accounts share all ARM plumbing; what differs is the
operation group and method names on the management client, how the shard or
partition key is read from a collection, and which data-plane client opens
connections. Each ``ApiVariant`` carries exactly those differences.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..config.models import ApiKind
from .data_plane import DataPlaneClient, MongoDataPlaneClient, NoSqlDataPlaneClient


def _mongo_shard_key(collection: Any) -> Optional[str]:
    shard_key = getattr(getattr(collection, "resource", None), "shard_key", None)
    if not shard_key:
        return None
    return next(iter(shard_key))


def _sql_partition_key(container: Any) -> Optional[str]:
    partition_key = getattr(getattr(container, "resource", None), "partition_key", None)
    paths = getattr(partition_key, "paths", None)
    if not paths:
        return None
    return paths[0]


@dataclass(frozen=True)
class ApiVariant:
    """Variant-specific surface of a database account API."""

    kind: ApiKind
    operations_attr: str
    list_databases_method: str
    list_collections_method: str
    database_throughput_method: str
    collection_throughput_method: str
    shard_key: Callable[[Any], Optional[str]]
    data_plane_factory: Callable[[int], DataPlaneClient]

    def operations(self, management_client: Any) -> Any:
        return getattr(management_client, self.operations_attr)

    def list_databases(self, management_client: Any, resource_group: str, account_name: str) -> Any:
        method = getattr(self.operations(management_client), self.list_databases_method)
        return method(resource_group, account_name)

    def list_collections(
        self, management_client: Any, resource_group: str, account_name: str, database: str
    ) -> Any:
        method = getattr(self.operations(management_client), self.list_collections_method)
        return method(resource_group, account_name, database)

    async def get_database_throughput(
        self, management_client: Any, resource_group: str, account_name: str, database: str
    ) -> Any:
        method = getattr(self.operations(management_client), self.database_throughput_method)
        return await method(resource_group, account_name, database)

    async def get_collection_throughput(
        self,
        management_client: Any,
        resource_group: str,
        account_name: str,
        database: str,
        collection: str,
    ) -> Any:
        method = getattr(self.operations(management_client), self.collection_throughput_method)
        return await method(resource_group, account_name, database, collection)


MONGO_VARIANT = ApiVariant(
    kind=ApiKind.MONGO,
    operations_attr="mongo_db_resources",
    list_databases_method="list_mongo_db_databases",
    list_collections_method="list_mongo_db_collections",
    database_throughput_method="get_mongo_db_database_throughput",
    collection_throughput_method="get_mongo_db_collection_throughput",
    shard_key=_mongo_shard_key,
    data_plane_factory=MongoDataPlaneClient,
)

NOSQL_VARIANT = ApiVariant(
    kind=ApiKind.NOSQL,
    operations_attr="sql_resources",
    list_databases_method="list_sql_databases",
    list_collections_method="list_sql_containers",
    database_throughput_method="get_sql_database_throughput",
    collection_throughput_method="get_sql_container_throughput",
    shard_key=_sql_partition_key,
    data_plane_factory=NoSqlDataPlaneClient,
)

VARIANTS: Dict[ApiKind, ApiVariant] = {
    ApiKind.MONGO: MONGO_VARIANT,
    ApiKind.NOSQL: NOSQL_VARIANT,
}


def get_variant(kind: ApiKind) -> ApiVariant:
    return VARIANTS[ApiKind(kind)]
