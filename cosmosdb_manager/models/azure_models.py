"""Data models for Azure identities, resources and connection material.

These are the values that flow through the connection pipeline:
account identity → token → resource identity → connection string candidates.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

# Stable key naming one configured server/account within the tool
ServerIdentity = str


class AuthenticationType(str, Enum):
    """How a server profile authenticates against the data plane."""

    DIRECT = "SqlLogin"
    FEDERATED = "AzureMFA"


class AccountAuthKind(str, Enum):
    """Credential source used by an Azure account to acquire ARM tokens."""

    CLI = "cli"
    DEFAULT = "default"
    CLIENT_SECRET = "client_secret"


@dataclass(frozen=True)
class ProviderSettings:
    """Cloud endpoints registered with an Azure account."""

    arm_endpoint: Optional[str] = None
    portal_endpoint: Optional[str] = None


@dataclass(frozen=True)
class AccountIdentity:
    """
    An Azure account known to the account store.

    Attributes:
        account_id: Opaque account key (usually the sign-in name or object id)
        display_name: Human readable name
        auth_kind: Credential source used for token exchange
        provider_settings: ARM / portal endpoints for the account's cloud
        tenant_ids: Tenants the account is registered in
        client_id: Service principal client id (client_secret accounts only)
        client_secret_env: Environment variable holding the client secret
    """

    account_id: str
    display_name: str = ""
    auth_kind: AccountAuthKind = AccountAuthKind.CLI
    provider_settings: ProviderSettings = field(default_factory=ProviderSettings)
    tenant_ids: Tuple[str, ...] = ()
    client_id: Optional[str] = None
    client_secret_env: Optional[str] = None


@dataclass(frozen=True)
class Token:
    """Short-lived bearer token. Never cached past one pipeline run."""

    value: str
    token_type: str = "Bearer"
    expires_on: int = 0

    def __repr__(self) -> str:
        return f"Token(token_type={self.token_type!r}, expires_on={self.expires_on})"


@dataclass(frozen=True)
class ResourceIdentity:
    """Parsed ARM resource id of a Cosmos DB database account."""

    subscription_id: str
    resource_group: str
    account_name: str
    resource_id: str = ""


@dataclass(frozen=True)
class ConnectionStringCandidate:
    """One connection string exposed by the management plane."""

    description: str
    connection_string: Optional[str]

    def label(self, account_name: str) -> str:
        return f"{self.description} ({account_name})"

    def __repr__(self) -> str:
        return f"ConnectionStringCandidate(description={self.description!r})"
