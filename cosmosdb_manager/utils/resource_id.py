"""
Azure Resource ID Parser

Parses fully-qualified ARM resource ids of the form::

    /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.DocumentDB/databaseAccounts/{name}

Splitting on "/" yields a leading empty segment, so the subscription id sits at
index 2, the resource group at index 4 and the account name at index 8.
"""

from ..exceptions import MalformedResourceIdError
from ..models import ResourceIdentity

MIN_SEGMENTS = 9
SUBSCRIPTION_INDEX = 2
RESOURCE_GROUP_INDEX = 4
ACCOUNT_NAME_INDEX = 8


def parse_resource_id(resource_path: str) -> ResourceIdentity:
    """
    Parse an ARM resource id into its subscription, resource group and account.

    Args:
        resource_path: Fully-qualified resource id

    Returns:
        ResourceIdentity with the extracted segments

    Raises:
        MalformedResourceIdError: If the path has fewer than 9 segments or a
            required segment is empty
    """
    segments = (resource_path or "").split("/")
    if len(segments) < MIN_SEGMENTS:
        raise MalformedResourceIdError(
            f"Malformed Azure resource id: expected at least {MIN_SEGMENTS} "
            f"segments, got {len(segments)}",
            resource_id=resource_path,
        )

    subscription_id = segments[SUBSCRIPTION_INDEX]
    resource_group = segments[RESOURCE_GROUP_INDEX]
    account_name = segments[ACCOUNT_NAME_INDEX]
    if not (subscription_id and resource_group and account_name):
        raise MalformedResourceIdError(
            "Malformed Azure resource id: empty subscription, resource group "
            "or account segment",
            resource_id=resource_path,
        )

    return ResourceIdentity(
        subscription_id=subscription_id,
        resource_group=resource_group,
        account_name=account_name,
        resource_id=resource_path,
    )
