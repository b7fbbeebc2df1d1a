"""Constants shared across the connection pipeline."""

from typing import Final

# Times the connection string chooser is shown before giving up
PICK_MAX_ATTEMPTS: Final[int] = 3

# Resource Graph paging for database account discovery
RESOURCE_GRAPH_PAGE_SIZE: Final[int] = 1000

DATABASE_ACCOUNT_RESOURCE_TYPE: Final[str] = "microsoft.documentdb/databaseaccounts"

DEFAULT_ARM_ENDPOINT: Final[str] = "https://management.azure.com"
DEFAULT_PORTAL_ENDPOINT: Final[str] = "https://portal.azure.com"
