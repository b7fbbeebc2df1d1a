"""Data models for Cosmos DB account, database and collection summaries."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class DatabaseAccountInfo:
    """Summary of a database account as reported by ARM.

    Attributes:
        server_status: Display status derived from the provisioning state
        backup_policy: Backup policy type, "None" when absent
        consistency_policy: Default consistency level, "None" when absent
        location: Primary region, "Unknown" when absent
        read_locations: Names of the readable regions
        document_endpoint: Data-plane endpoint of the account
    """

    server_status: str
    backup_policy: str
    consistency_policy: str
    location: str
    read_locations: List[str] = field(default_factory=list)
    document_endpoint: Optional[str] = None


@dataclass
class DatabaseInfo:
    """Summary of one database.

    Attributes:
        name: Database name
        collection_count: Number of collections/containers
        throughput_setting: Display throughput ("" when unknown)
        usage_size_kb: Data usage in KB, None when the metric is unavailable
    """

    name: str
    collection_count: int
    throughput_setting: str = ""
    usage_size_kb: Optional[float] = None


@dataclass
class CollectionInfo:
    """Summary of one collection (Mongo API) or container (NoSQL API)."""

    name: str
    document_count: Optional[float] = None
    throughput_setting: str = ""
    usage_size_kb: Optional[float] = None
    shard_key: Optional[str] = None
