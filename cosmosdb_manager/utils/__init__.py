"""Utility helpers for Cosmos DB Manager."""

from .connection_strings import is_cosmos_db_account, mask_connection_string
from .resource_id import parse_resource_id

__all__ = ["is_cosmos_db_account", "mask_connection_string", "parse_resource_id"]
