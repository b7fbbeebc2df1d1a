"""Services for resolving, locating and connecting to Cosmos DB accounts."""

from .api_variants import MONGO_VARIANT, NOSQL_VARIANT, ApiVariant, get_variant
from .arm_service import ArmService, server_state, throughput_setting_to_string
from .connection_pipeline import ConnectionPipeline, PipelineResult
from .connection_registry import ConnectionRegistry
from .connection_string_selector import (
    ConnectionStringChooser,
    ConnectionStringSelector,
    PromptConnectionStringChooser,
)
from .data_plane import MongoDataPlaneClient, NoSqlDataPlaneClient
from .management_client_factory import ArmTarget, ManagementClientFactory
from .resource_locator import (
    ResourceGraphQueryExecutor,
    ResourceLocator,
    build_account_query,
)

__all__ = [
    "MONGO_VARIANT",
    "NOSQL_VARIANT",
    "ApiVariant",
    "ArmService",
    "ArmTarget",
    "ConnectionPipeline",
    "ConnectionRegistry",
    "ConnectionStringChooser",
    "ConnectionStringSelector",
    "ManagementClientFactory",
    "MongoDataPlaneClient",
    "NoSqlDataPlaneClient",
    "PipelineResult",
    "PromptConnectionStringChooser",
    "ResourceGraphQueryExecutor",
    "ResourceLocator",
    "build_account_query",
    "get_variant",
    "server_state",
    "throughput_setting_to_string",
]
