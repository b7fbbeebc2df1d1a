"""Models module for Cosmos DB Manager."""

from .account_info import CollectionInfo, DatabaseAccountInfo, DatabaseInfo
from .azure_models import (
    AccountAuthKind,
    AccountIdentity,
    AuthenticationType,
    ConnectionStringCandidate,
    ProviderSettings,
    ResourceIdentity,
    ServerIdentity,
    Token,
)

__all__ = [
    "AccountAuthKind",
    "AccountIdentity",
    "AuthenticationType",
    "CollectionInfo",
    "ConnectionStringCandidate",
    "DatabaseAccountInfo",
    "DatabaseInfo",
    "ProviderSettings",
    "ResourceIdentity",
    "ServerIdentity",
    "Token",
]
