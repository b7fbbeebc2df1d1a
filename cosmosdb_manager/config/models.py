"""
Configuration models for accounts and server profiles.

Provides type-safe configuration using pydantic with validation,
defaults, and schema enforcement.
"""

import os
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import DEFAULT_ARM_ENDPOINT, DEFAULT_PORTAL_ENDPOINT
from ..models import AccountAuthKind, AuthenticationType


class ApiKind(str, Enum):
    """Data-plane API exposed by a database account."""

    MONGO = "mongo"
    NOSQL = "nosql"


class AccountConfig(BaseModel):
    """An Azure account registered with the tool."""

    id: str = Field(description="Account key referenced by server profiles")
    display_name: str = Field(default="")
    auth: AccountAuthKind = Field(
        default=AccountAuthKind.CLI,
        description="Credential source used to acquire ARM tokens",
    )
    tenant_ids: List[str] = Field(default_factory=list)
    client_id: Optional[str] = Field(
        default=None, description="Service principal client id (client_secret only)"
    )
    client_secret_env: Optional[str] = Field(
        default=None,
        description="Environment variable holding the client secret",
    )
    arm_endpoint: Optional[str] = Field(default=DEFAULT_ARM_ENDPOINT)
    portal_endpoint: Optional[str] = Field(default=DEFAULT_PORTAL_ENDPOINT)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_client_secret(self) -> "AccountConfig":
        """Service principal accounts need a client id and secret source."""
        if self.auth == AccountAuthKind.CLIENT_SECRET:
            if not self.client_id or not self.client_secret_env:
                raise ValueError(
                    f"Account '{self.id}' uses client_secret auth and needs "
                    "client_id and client_secret_env"
                )
        return self


class ServerProfile(BaseModel):
    """A configured server (database account) the tool can connect to."""

    name: str = Field(description="Server identity, unique within the tool")
    api: ApiKind = Field(default=ApiKind.MONGO)
    authentication_type: AuthenticationType = Field(default=AuthenticationType.DIRECT)
    connection_string: Optional[str] = Field(default=None)
    connection_string_env: Optional[str] = Field(
        default=None,
        description="Environment variable holding the connection string",
    )
    azure_account: Optional[str] = Field(default=None)
    azure_tenant_id: Optional[str] = Field(default=None)
    azure_resource_id: Optional[str] = Field(default=None)
    account_name: Optional[str] = Field(
        default=None, description="Cosmos DB account name; defaults to the server name"
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Server names are registry keys and must not be blank."""
        if not v.strip():
            raise ValueError("Server name cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_authentication(self) -> "ServerProfile":
        """Each authentication type needs its own inputs."""
        if self.authentication_type == AuthenticationType.FEDERATED:
            if not self.azure_account or not self.azure_tenant_id:
                raise ValueError(
                    f"Server '{self.name}' uses AzureMFA and needs azure_account "
                    "and azure_tenant_id"
                )
        elif not self.connection_string and not self.connection_string_env:
            raise ValueError(
                f"Server '{self.name}' uses SqlLogin and needs connection_string "
                "or connection_string_env"
            )
        return self

    @property
    def is_federated(self) -> bool:
        return self.authentication_type == AuthenticationType.FEDERATED

    @property
    def cosmos_account_name(self) -> str:
        return self.account_name or self.name

    def resolve_connection_string(self) -> Optional[str]:
        """Return the direct connection string, reading the env var if needed."""
        if self.connection_string:
            return self.connection_string
        if self.connection_string_env:
            return os.getenv(self.connection_string_env)
        return None


class ProfilesConfig(BaseModel):
    """Root of the YAML configuration file."""

    accounts: List[AccountConfig] = Field(default_factory=list)
    servers: List[ServerProfile] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_unique_names(self) -> "ProfilesConfig":
        """Server names are cache keys, so duplicates are rejected."""
        names = [server.name for server in self.servers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate server names: {', '.join(duplicates)}")
        return self

    def get_server(self, name: str) -> Optional[ServerProfile]:
        for server in self.servers:
            if server.name == name:
                return server
        return None
