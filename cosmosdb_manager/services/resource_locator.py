"""
Resource Locator

Discovers the fully-qualified ARM id of a Cosmos DB database account from its
name alone, using an Azure Resource Graph query. Only used when a server
profile does not already carry a resource id.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from azure.core.exceptions import AzureError
from azure.mgmt.resourcegraph.aio import ResourceGraphClient
from azure.mgmt.resourcegraph.models import (
    QueryRequest,
    QueryRequestOptions,
    ResultFormat,
)

from ..constants import DATABASE_ACCOUNT_RESOURCE_TYPE, RESOURCE_GRAPH_PAGE_SIZE
from ..exceptions import AzureResourceNotFoundError, wrap_azure_exception
from ..models import ResourceIdentity
from ..utils.resource_id import parse_resource_id

logger = logging.getLogger(__name__)


class ResourceQueryExecutor(Protocol):
    """Runs a resource-graph style query and returns its rows."""

    async def query(self, query: str, page_size: int) -> List[Dict[str, Any]]: ...


class ResourceGraphQueryExecutor:
    """Executes Kusto queries against Azure Resource Graph."""

    def __init__(
        self,
        credential: Any,
        base_url: Optional[str] = None,
        client_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.credential = credential
        self.base_url = base_url
        self.client_factory = client_factory or ResourceGraphClient

    async def query(self, query: str, page_size: int) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {}
        if self.base_url:
            kwargs["base_url"] = self.base_url
        request = QueryRequest(
            query=query,
            options=QueryRequestOptions(
                top=page_size,
                skip=0,
                result_format=ResultFormat.OBJECT_ARRAY,
            ),
        )
        async with self.client_factory(self.credential, **kwargs) as client:
            response = await client.resources(request)
        return list(getattr(response, "data", None) or [])


def build_account_query(account_name: str) -> str:
    """Build the Resource Graph query matching one database account by name."""
    escaped = account_name.replace("\\", "\\\\").replace('"', '\\"')
    return (
        f'Resources | where type == "{DATABASE_ACCOUNT_RESOURCE_TYPE}" '
        f'and name == "{escaped}"'
    )


class ResourceLocator:
    """
    Finds the ARM resource id of a database account by name.

    Attributes:
        executor_factory: Callable (credential, base_url) -> ResourceQueryExecutor
    """

    def __init__(
        self,
        executor_factory: Optional[Callable[[Any, Optional[str]], ResourceQueryExecutor]] = None,
    ) -> None:
        self.executor_factory = executor_factory or ResourceGraphQueryExecutor

    async def locate(
        self,
        account_name: str,
        credential: Any,
        arm_endpoint: Optional[str] = None,
    ) -> ResourceIdentity:
        """
        Locate a database account and parse its resource id.

        Args:
            account_name: Cosmos DB account name
            credential: Async token credential for ARM
            arm_endpoint: Optional ARM endpoint for non-public clouds

        Returns:
            ResourceIdentity of the first matching account

        Raises:
            AzureResourceNotFoundError: If the query returns no rows
            ManagementPlaneError: If the Resource Graph query fails
            MalformedResourceIdError: If the returned id cannot be parsed
        """
        logger.info(f"🔍 Looking up Azure resource for account {account_name}")
        executor = self.executor_factory(credential, arm_endpoint)
        try:
            rows = await executor.query(
                build_account_query(account_name), RESOURCE_GRAPH_PAGE_SIZE
            )
        except AzureError as exc:
            raise wrap_azure_exception(exc, {"account_name": account_name}) from exc
        if not rows:
            raise AzureResourceNotFoundError(
                "Azure Resource not found", account_name=account_name
            )

        resource_id = rows[0].get("id", "")
        logger.debug(f"Resolved {account_name} to {resource_id}")
        return parse_resource_id(resource_id)
