"""
Application wiring.

``CosmosDbManagerApp`` builds the pipeline components once from configuration
and owns their lifecycle: one connection registry and one pipeline per API
variant, shared account store, locator and client factory. Use it as an async
context manager so live connections are closed at shutdown.

Database operations (list and drop databases and collections) run over the
server's cached connection; the connection pipeline runs only when the
registry holds none for that server.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .config.models import ApiKind, ProfilesConfig, ServerProfile
from .config_manager import CosmosDbManagerConfig
from .credential_provider import AccountStore, AzureIdentityAccountStore, CredentialProvider
from .exceptions import ConfigurationError, DataPlaneOperationError
from .models import AccountIdentity, CollectionInfo, DatabaseAccountInfo, DatabaseInfo
from .services.api_variants import VARIANTS
from .services.arm_service import ArmService
from .services.connection_pipeline import ConnectionPipeline, PipelineResult
from .services.connection_registry import ConnectionRegistry
from .services.data_plane import DataPlaneClient
from .services.connection_string_selector import (
    ConnectionStringChooser,
    ConnectionStringSelector,
    PromptConnectionStringChooser,
)
from .services.management_client_factory import ArmTarget, ManagementClientFactory
from .services.resource_locator import ResourceLocator

logger = logging.getLogger(__name__)


class CosmosDbManagerApp:
    """Entry point used by the CLI and by embedding code."""

    def __init__(
        self,
        profiles: ProfilesConfig,
        config: Optional[CosmosDbManagerConfig] = None,
        account_store: Optional[AccountStore] = None,
        chooser: Optional[ConnectionStringChooser] = None,
        resource_locator: Optional[ResourceLocator] = None,
        client_factory: Optional[ManagementClientFactory] = None,
        registries: Optional[Dict[ApiKind, ConnectionRegistry]] = None,
    ) -> None:
        """
        Wire the pipeline components.

        Args:
            profiles: Accounts and server profiles from the YAML configuration
            config: Runtime settings; read from the environment when omitted
            account_store: Identity store (defaults to azure-identity credentials)
            chooser: Connection string chooser (defaults to a terminal prompt)
            resource_locator: Resource Graph locator override
            client_factory: ARM client factory override
            registries: Per-variant registries override
        """
        self.profiles = profiles
        self.config = config or CosmosDbManagerConfig.from_environment()
        pipeline_config = self.config.pipeline

        self.credential_provider = CredentialProvider(
            account_store or AzureIdentityAccountStore(profiles.accounts)
        )
        self.client_factory = client_factory or ManagementClientFactory(
            self.credential_provider, resource_locator or ResourceLocator()
        )
        self.selector = ConnectionStringSelector(
            chooser or PromptConnectionStringChooser(),
            max_attempts=pipeline_config.pick_max_attempts,
        )

        self.registries: Dict[ApiKind, ConnectionRegistry] = {}
        self.pipelines: Dict[ApiKind, ConnectionPipeline] = {}
        self.arm_services: Dict[ApiKind, ArmService] = {}
        for kind, variant in VARIANTS.items():
            registry = (registries or {}).get(kind) or ConnectionRegistry(
                variant.data_plane_factory(pipeline_config.connect_timeout_ms)
            )
            self.registries[kind] = registry
            self.pipelines[kind] = ConnectionPipeline(
                self.credential_provider, self.client_factory, self.selector, registry
            )
            self.arm_services[kind] = ArmService(
                self.client_factory, variant, pipeline_config.max_concurrency
            )

    async def __aenter__(self) -> "CosmosDbManagerApp":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def profile(self, server_name: str) -> ServerProfile:
        profile = self.profiles.get_server(server_name)
        if profile is None:
            raise ConfigurationError(
                f"Unknown server '{server_name}'",
                context={"server": server_name},
                recovery_suggestion="Run 'cosmosdb-manager servers' to list configured servers",
            )
        return profile

    async def list_accounts(self) -> List[AccountIdentity]:
        return await self.credential_provider.list_accounts()

    async def connect(self, server_name: str) -> PipelineResult:
        """Run the connection pipeline for a configured server."""
        profile = self.profile(server_name)
        return await self.pipelines[profile.api].connect_profile(profile)

    async def disconnect(self, server_name: str) -> None:
        profile = self.profile(server_name)
        await self.registries[profile.api].disconnect(profile.name)

    async def account_info(self, server_name: str) -> DatabaseAccountInfo:
        profile = self.profile(server_name)
        target = await self._resolve_target(profile)
        return await self.arm_services[profile.api].retrieve_database_account_info(target)

    async def databases(self, server_name: str) -> List[DatabaseInfo]:
        profile = self.profile(server_name)
        target = await self._resolve_target(profile)
        return await self.arm_services[profile.api].retrieve_databases_info(target)

    async def collections(self, server_name: str, database: str) -> List[CollectionInfo]:
        profile = self.profile(server_name)
        target = await self._resolve_target(profile)
        return await self.arm_services[profile.api].retrieve_collections_info(target, database)

    async def portal_endpoint(self, server_name: str) -> str:
        profile = self.profile(server_name)
        self._require_federated(profile)
        return await self.pipelines[profile.api].retrieve_portal_endpoint(
            profile.azure_account or ""
        )

    async def list_databases(self, server_name: str) -> List[str]:
        """List database names over the server's live connection."""
        return await self._over_connection(
            server_name, "list databases", lambda plane, conn: plane.list_databases(conn)
        )

    async def list_collections(self, server_name: str, database: str) -> List[str]:
        return await self._over_connection(
            server_name,
            f"list collections of {database}",
            lambda plane, conn: plane.list_collections(conn, database),
            database=database,
        )

    async def drop_database(self, server_name: str, database: str) -> None:
        await self._over_connection(
            server_name,
            f"drop database {database}",
            lambda plane, conn: plane.drop_database(conn, database),
            database=database,
        )

    async def drop_collection(self, server_name: str, database: str, collection: str) -> None:
        await self._over_connection(
            server_name,
            f"drop collection {collection}",
            lambda plane, conn: plane.drop_collection(conn, database, collection),
            database=database,
        )

    async def aclose(self) -> None:
        """Close every live connection."""
        for registry in self.registries.values():
            await registry.close_all()

    async def _live_connection(self, profile: ServerProfile) -> Any:
        connection = self.registries[profile.api].get(profile.name)
        if connection is None:
            result = await self.pipelines[profile.api].connect_profile(profile)
            connection = result.unwrap()
        return connection

    async def _over_connection(
        self,
        server_name: str,
        action: str,
        operation: Callable[[DataPlaneClient, Any], Awaitable[Any]],
        database: Optional[str] = None,
    ) -> Any:
        profile = self.profile(server_name)
        connection = await self._live_connection(profile)
        data_plane = self.registries[profile.api].data_plane
        try:
            return await operation(data_plane, connection)
        except Exception as exc:
            logger.warning(f"Could not {action} on {server_name}: {type(exc).__name__}")
            raise DataPlaneOperationError(
                f"Could not {action} on {server_name}: {exc}",
                server=server_name,
                database=database,
                cause=exc,
            ) from exc

    async def _resolve_target(self, profile: ServerProfile) -> ArmTarget:
        self._require_federated(profile)
        return await self.client_factory.resolve_target(
            profile.azure_account or "",
            profile.azure_tenant_id or "",
            profile.azure_resource_id,
            profile.cosmos_account_name,
        )

    @staticmethod
    def _require_federated(profile: ServerProfile) -> None:
        if not profile.is_federated:
            raise ConfigurationError(
                f"Server '{profile.name}' is not linked to an Azure account",
                context={"server": profile.name},
                recovery_suggestion="Use authentication_type AzureMFA with azure_account "
                "and azure_tenant_id",
            )
