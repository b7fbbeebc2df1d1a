"""
Management Client Factory

Builds authenticated Cosmos DB management-plane and Azure Monitor metrics-plane
clients. Both follow the same sequence: resolve the account, resolve its ARM
endpoint, acquire a token, locate the resource when its id is unknown, parse the
subscription id and bind a client to (credential, subscription, endpoint).
Any failing step stops the sequence; no partial client is returned.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from azure.mgmt.cosmosdb.aio import CosmosDBManagementClient
from azure.mgmt.monitor.aio import MonitorManagementClient

from ..credential_provider import CredentialProvider, StaticTokenCredential
from ..models import AccountIdentity, ResourceIdentity
from ..utils.resource_id import parse_resource_id
from .resource_locator import ResourceLocator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArmTarget:
    """Everything needed to address one database account through ARM."""

    account: AccountIdentity
    tenant_id: str
    credential: StaticTokenCredential
    arm_endpoint: str
    resource: ResourceIdentity
    account_name: str

    @property
    def resource_group(self) -> str:
        return self.resource.resource_group

    @property
    def subscription_id(self) -> str:
        return self.resource.subscription_id

    @property
    def resource_id(self) -> str:
        return self.resource.resource_id


class ManagementClientFactory:
    """
    Factory for ARM clients bound to a discovered database account.

    Client classes are injectable for testing.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        resource_locator: ResourceLocator,
        management_client_cls: Optional[Callable[..., Any]] = None,
        metrics_client_cls: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.credential_provider = credential_provider
        self.resource_locator = resource_locator
        self.management_client_cls = management_client_cls or CosmosDBManagementClient
        self.metrics_client_cls = metrics_client_cls or MonitorManagementClient

    async def resolve_target(
        self,
        account_id: str,
        tenant_id: str,
        resource_id: Optional[str],
        account_name: str,
    ) -> ArmTarget:
        """
        Resolve account, endpoint, token and resource identity for one account.

        Args:
            account_id: Azure account id
            tenant_id: Tenant to acquire the token in
            resource_id: Known ARM resource id; when empty the resource is located
            account_name: Cosmos DB account name

        Returns:
            ArmTarget with a credential serving the freshly acquired token

        Raises:
            AccountNotFoundError, EndpointNotConfiguredError,
            TokenAcquisitionError, AzureResourceNotFoundError,
            MalformedResourceIdError
        """
        account = await self.credential_provider.find_account(account_id)
        arm_endpoint = self.credential_provider.arm_endpoint(account)
        token = await self.credential_provider.acquire_token(account, tenant_id)
        credential = StaticTokenCredential(token)

        if resource_id:
            resource = parse_resource_id(resource_id)
        else:
            resource = await self.resource_locator.locate(
                account_name, credential, arm_endpoint
            )

        return ArmTarget(
            account=account,
            tenant_id=tenant_id,
            credential=credential,
            arm_endpoint=arm_endpoint,
            resource=resource,
            account_name=account_name or resource.account_name,
        )

    def management_client(self, target: ArmTarget) -> Any:
        """Construct a Cosmos DB management client for a resolved target."""
        logger.debug(
            f"Creating Cosmos DB management client for subscription {target.subscription_id}"
        )
        return self.management_client_cls(
            target.credential, target.subscription_id, base_url=target.arm_endpoint
        )

    def metrics_client(self, target: ArmTarget) -> Any:
        """Construct an Azure Monitor client for a resolved target."""
        logger.debug(
            f"Creating Azure Monitor client for subscription {target.subscription_id}"
        )
        return self.metrics_client_cls(
            target.credential, target.subscription_id, base_url=target.arm_endpoint
        )

    async def build_management_client(
        self,
        account_id: str,
        tenant_id: str,
        resource_id: Optional[str],
        account_name: str,
    ) -> Any:
        """Resolve the target and return a management client bound to it."""
        target = await self.resolve_target(account_id, tenant_id, resource_id, account_name)
        return self.management_client(target)

    async def build_metrics_client(
        self,
        account_id: str,
        tenant_id: str,
        resource_id: Optional[str],
        account_name: str,
    ) -> Any:
        """Resolve the target and return a metrics client bound to it."""
        target = await self.resolve_target(account_id, tenant_id, resource_id, account_name)
        return self.metrics_client(target)
