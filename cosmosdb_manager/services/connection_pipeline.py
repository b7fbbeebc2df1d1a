"""
Connection Pipeline

Turns a server identity plus an authentication mode into a live data-plane
connection held by the connection registry.

Two flows:
    direct:    connection string → registry
    federated: account → token → resource id (located when unknown) →
               management client → connection string → registry

Each run re-derives the token and resource identity; only the registry keeps
state between runs. Any failing stage aborts the run and the originating error
is returned in the ``PipelineResult``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..config.models import ServerProfile
from ..credential_provider import CredentialProvider
from ..exceptions import ConfigurationError, CosmosDbManagerError
from ..models import ServerIdentity
from ..utils.connection_strings import is_cosmos_db_account
from .connection_registry import ConnectionRegistry
from .connection_string_selector import ConnectionStringSelector
from .management_client_factory import ManagementClientFactory

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one pipeline run: a connection or the error that stopped it."""

    server: ServerIdentity
    connection: Optional[Any] = None
    error: Optional[CosmosDbManagerError] = None
    is_cosmos_db: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the connection or raise the error."""
        if self.error is not None:
            raise self.error
        return self.connection


class ConnectionPipeline:
    """
    Orchestrates credential and connection resolution for one API variant.

    Attributes:
        credential_provider: Account and token resolution
        client_factory: ARM target resolution and client construction
        selector: Connection string selection
        registry: Live connection cache
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        client_factory: ManagementClientFactory,
        selector: ConnectionStringSelector,
        registry: ConnectionRegistry,
    ) -> None:
        self.credential_provider = credential_provider
        self.client_factory = client_factory
        self.selector = selector
        self.registry = registry

    async def connect_direct(
        self, server: ServerIdentity, connection_string: str
    ) -> PipelineResult:
        """Connect with a pre-supplied connection string."""
        logger.info(f"🚀 Connecting to {server} with a connection string")
        try:
            connection = await self.registry.connect(server, connection_string)
        except CosmosDbManagerError as exc:
            return self._failed(server, exc)
        return PipelineResult(
            server=server,
            connection=connection,
            is_cosmos_db=is_cosmos_db_account(connection_string),
        )

    async def connect_federated(
        self,
        server: ServerIdentity,
        account_id: str,
        tenant_id: str,
        account_name: str,
        resource_id: Optional[str] = None,
    ) -> PipelineResult:
        """Resolve a connection string through ARM and connect with it."""
        logger.info(f"🚀 Connecting to {server} with Azure account {account_id}")
        try:
            connection_string = await self.retrieve_connection_string(
                account_id, tenant_id, resource_id, account_name
            )
            connection = await self.registry.connect(server, connection_string)
        except CosmosDbManagerError as exc:
            return self._failed(server, exc)
        return PipelineResult(
            server=server,
            connection=connection,
            is_cosmos_db=is_cosmos_db_account(connection_string),
        )

    async def retrieve_connection_string(
        self,
        account_id: str,
        tenant_id: str,
        resource_id: Optional[str],
        account_name: str,
    ) -> str:
        """
        Resolve the data-plane connection string of a database account.

        Raises:
            CosmosDbManagerError: From whichever stage failed first
        """
        target = await self.client_factory.resolve_target(
            account_id, tenant_id, resource_id, account_name
        )
        async with self.client_factory.management_client(target) as client:
            return await self.selector.select_connection_string(
                client, target.resource_group, target.account_name
            )

    async def connect_profile(self, profile: ServerProfile) -> PipelineResult:
        """Run the flow matching a server profile's authentication type."""
        if profile.is_federated:
            return await self.connect_federated(
                profile.name,
                profile.azure_account or "",
                profile.azure_tenant_id or "",
                profile.cosmos_account_name,
                profile.azure_resource_id,
            )

        connection_string = profile.resolve_connection_string()
        if not connection_string:
            return self._failed(
                profile.name,
                ConfigurationError(
                    f"No connection string configured for {profile.name}",
                    context={"env": profile.connection_string_env},
                ),
            )
        return await self.connect_direct(profile.name, connection_string)

    async def retrieve_portal_endpoint(self, account_id: str) -> str:
        """Return the Azure portal endpoint of an account."""
        account = await self.credential_provider.find_account(account_id)
        return self.credential_provider.portal_endpoint(account)

    @staticmethod
    def _failed(server: ServerIdentity, error: CosmosDbManagerError) -> PipelineResult:
        logger.error(f"❌ Connection pipeline failed for {server}: {error.message}")
        return PipelineResult(server=server, error=error)
