"""Helpers for displaying and classifying data-plane connection strings."""

import re

_ACCOUNT_KEY_RE = re.compile(r"(AccountKey=)[^;]*", re.IGNORECASE)
_URI_PASSWORD_RE = re.compile(r"^(mongodb(?:\+srv)?://[^:/@]+:)[^@]*(@)", re.IGNORECASE)

COSMOS_HOST_SUFFIXES = (
    ".documents.azure.com",
    ".mongo.cosmos.azure.com",
    ".mongocluster.cosmos.azure.com",
    ".cosmos.azure.com",
    ".documents.azure.us",
    ".documents.azure.cn",
)


def mask_connection_string(connection_string: str) -> str:
    """Redact account keys and URI passwords so the string can be logged."""
    if not connection_string:
        return ""
    masked = _ACCOUNT_KEY_RE.sub(r"\1***", connection_string)
    return _URI_PASSWORD_RE.sub(r"\1***\2", masked)


def _hosts(connection_string: str) -> list[str]:
    if "AccountEndpoint=" in connection_string:
        match = re.search(r"AccountEndpoint=https?://([^/:;]+)", connection_string)
        return [match.group(1)] if match else []

    match = re.match(r"^mongodb(?:\+srv)?://(?:[^@]*@)?([^/?]+)", connection_string)
    if not match:
        return []
    return [hostport.split(":")[0] for hostport in match.group(1).split(",")]


def is_cosmos_db_account(connection_string: str) -> bool:
    """Check whether a connection string points at an Azure Cosmos DB endpoint."""
    hosts = _hosts(connection_string or "")
    return any(
        host.lower().endswith(suffix) for host in hosts for suffix in COSMOS_HOST_SUFFIXES
    )
