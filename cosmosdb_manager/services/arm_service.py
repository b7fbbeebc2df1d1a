"""
ARM Service

Account inspection over the management and metrics planes: account summary,
databases and collections with their throughput, document counts and data
usage. Listing failures propagate; per-item enrichment (throughput, metrics)
is optional and recorded as empty/unknown when ARM cannot provide it.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from azure.core.exceptions import AzureError, HttpResponseError, ResourceNotFoundError

from ..exceptions import wrap_azure_exception
from ..models import CollectionInfo, DatabaseAccountInfo, DatabaseInfo
from .api_variants import ApiVariant
from .management_client_factory import ArmTarget, ManagementClientFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")

SERVER_STATES = {
    "succeeded": "Online",
    "creating": "Creating",
    "updating": "Updating",
    "deleting": "Deleting",
    "failed": "Failed",
}


def server_state(provisioning_state: Optional[str]) -> str:
    """Map an ARM provisioning state to a display status."""
    return SERVER_STATES.get((provisioning_state or "").lower(), "Unknown")


def throughput_setting_to_string(resource: Any) -> str:
    """Format a throughput settings resource for display."""
    if resource is None:
        return ""
    autoscale = getattr(resource, "autoscale_settings", None)
    if autoscale is not None and getattr(autoscale, "max_throughput", None):
        return f"Max: {autoscale.max_throughput} RU/s (autoscale)"
    if getattr(resource, "throughput", None):
        return f"{resource.throughput} RU/s"
    return ""


def _metric_filter(database: str, collection: Optional[str] = None) -> str:
    expression = f"DatabaseName eq '{database}'"
    if collection is not None:
        expression += f" and CollectionName eq '{collection}'"
    return expression


def _latest_total(response: Any) -> Optional[float]:
    try:
        data = response.value[0].timeseries[0].data or []
    except (AttributeError, IndexError, TypeError):
        return None
    for point in reversed(data):
        if getattr(point, "total", None) is not None:
            return point.total
    return None


class ArmService:
    """
    Inspects database accounts through ARM for one API variant.

    Attributes:
        client_factory: Builds management/metrics clients for a target
        variant: Mongo or NoSQL API surface
        max_concurrency: Bound on concurrent per-item ARM calls
    """

    def __init__(
        self,
        client_factory: ManagementClientFactory,
        variant: ApiVariant,
        max_concurrency: int = 8,
    ) -> None:
        self.client_factory = client_factory
        self.variant = variant
        self.max_concurrency = max(1, max_concurrency)

    async def retrieve_database_account_info(self, target: ArmTarget) -> DatabaseAccountInfo:
        """Summarize a database account."""
        async with self.client_factory.management_client(target) as client:
            try:
                account = await client.database_accounts.get(
                    target.resource_group, target.account_name
                )
            except AzureError as exc:
                raise wrap_azure_exception(exc, {"account_name": target.account_name}) from exc

        backup_policy = getattr(account, "backup_policy", None)
        consistency_policy = getattr(account, "consistency_policy", None)
        return DatabaseAccountInfo(
            server_status=server_state(getattr(account, "provisioning_state", None)),
            backup_policy=getattr(backup_policy, "type", None) or "None",
            consistency_policy=getattr(consistency_policy, "default_consistency_level", None)
            or "None",
            location=getattr(account, "location", None) or "Unknown",
            read_locations=[
                location.location_name or ""
                for location in getattr(account, "read_locations", None) or []
            ],
            document_endpoint=getattr(account, "document_endpoint", None),
        )

    async def retrieve_databases_info(self, target: ArmTarget) -> List[DatabaseInfo]:
        """List databases with collection counts, throughput and data usage."""
        async with self.client_factory.management_client(
            target
        ) as client, self.client_factory.metrics_client(target) as monitor:
            names = await self._collect_names(
                self.variant.list_databases(client, target.resource_group, target.account_name),
                target,
            )
            logger.info(f"📋 Found {len(names)} databases in {target.account_name}")
            return await self._fan_out(
                [lambda name=name: self._database_info(client, monitor, target, name) for name in names]
            )

    async def retrieve_collections_info(
        self, target: ArmTarget, database: str
    ) -> List[CollectionInfo]:
        """List a database's collections with document counts, throughput and usage."""
        async with self.client_factory.management_client(
            target
        ) as client, self.client_factory.metrics_client(target) as monitor:
            collections = await self._collect(
                self.variant.list_collections(
                    client, target.resource_group, target.account_name, database
                ),
                target,
            )
            named = [c for c in collections if getattr(c, "name", None)]
            logger.info(f"📋 Found {len(named)} collections in {database}")
            return await self._fan_out(
                [
                    lambda c=c: self._collection_info(client, monitor, target, database, c)
                    for c in named
                ]
            )

    async def _database_info(
        self, client: Any, monitor: Any, target: ArmTarget, database: str
    ) -> DatabaseInfo:
        collections = await self._collect_names(
            self.variant.list_collections(
                client, target.resource_group, target.account_name, database
            ),
            target,
        )
        throughput = await self._soft_throughput(
            self.variant.get_database_throughput(
                client, target.resource_group, target.account_name, database
            )
        )
        usage = await self._usage_size_kb(monitor, target, database)
        return DatabaseInfo(
            name=database,
            collection_count=len(collections),
            throughput_setting=throughput,
            usage_size_kb=usage,
        )

    async def _collection_info(
        self, client: Any, monitor: Any, target: ArmTarget, database: str, collection: Any
    ) -> CollectionInfo:
        name = collection.name
        throughput = await self._soft_throughput(
            self.variant.get_collection_throughput(
                client, target.resource_group, target.account_name, database, name
            )
        )
        usage = await self._usage_size_kb(monitor, target, database, name)
        document_count = await self._soft_metric(
            monitor, target, "DocumentCount", _metric_filter(database, name)
        )
        return CollectionInfo(
            name=name,
            document_count=document_count,
            throughput_setting=throughput,
            usage_size_kb=usage,
            shard_key=self.variant.shard_key(collection),
        )

    async def _collect(self, pager: Any, target: ArmTarget) -> List[Any]:
        try:
            return [item async for item in pager]
        except AzureError as exc:
            raise wrap_azure_exception(exc, {"account_name": target.account_name}) from exc

    async def _collect_names(self, pager: Any, target: ArmTarget) -> List[str]:
        return [item.name for item in await self._collect(pager, target) if getattr(item, "name", None)]

    async def _fan_out(self, calls: List[Callable[[], Awaitable[T]]]) -> List[T]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(call: Callable[[], Awaitable[T]]) -> T:
            async with semaphore:
                return await call()

        return list(await asyncio.gather(*[_bounded(call) for call in calls]))

    async def _soft_throughput(self, request: Awaitable[Any]) -> str:
        try:
            response = await request
        except ResourceNotFoundError:
            # Shared-throughput entities have no throughput settings of their own
            return ""
        except HttpResponseError as exc:
            logger.debug(f"Throughput lookup failed: {exc}")
            return ""
        return throughput_setting_to_string(getattr(response, "resource", None))

    async def _usage_size_kb(
        self, monitor: Any, target: ArmTarget, database: str, collection: Optional[str] = None
    ) -> Optional[float]:
        usage_bytes = await self._soft_metric(
            monitor, target, "DataUsage", _metric_filter(database, collection)
        )
        if usage_bytes is None:
            return None
        return usage_bytes / 1024

    async def _soft_metric(
        self, monitor: Any, target: ArmTarget, metric_name: str, metric_filter: str
    ) -> Optional[float]:
        try:
            response = await monitor.metrics.list(
                target.resource_id,
                metricnames=metric_name,
                filter=metric_filter,
                aggregation="Total",
            )
        except HttpResponseError as exc:
            logger.warning(f"Could not read {metric_name} for {target.account_name}: {exc}")
            return None
        return _latest_total(response)
