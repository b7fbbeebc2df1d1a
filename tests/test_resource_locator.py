"""Tests for the Resource Graph based resource locator."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.core.exceptions import HttpResponseError, ServiceRequestError
from fakes import RESOURCE_ID, make_async_client

from cosmosdb_manager.exceptions import (
    AzureResourceNotFoundError,
    MalformedResourceIdError,
    ManagementPlaneError,
)
from cosmosdb_manager.services.resource_locator import (
    ResourceGraphQueryExecutor,
    ResourceLocator,
    build_account_query,
)


class FakeExecutor:
    def __init__(self, rows, error=None):
        self.rows = rows
        self.error = error
        self.queries = []

    async def query(self, query, page_size):
        self.queries.append((query, page_size))
        if self.error is not None:
            raise self.error
        return self.rows


def test_build_account_query():
    query = build_account_query("contoso-cosmos")

    assert query == (
        'Resources | where type == "microsoft.documentdb/databaseaccounts" '
        'and name == "contoso-cosmos"'
    )


def test_build_account_query_escapes_quotes():
    assert 'name == "a\\"b"' in build_account_query('a"b')


@pytest.mark.asyncio
async def test_locate_parses_first_row():
    executor = FakeExecutor([{"id": RESOURCE_ID}, {"id": "/ignored"}])
    factory = MagicMock(return_value=executor)
    locator = ResourceLocator(executor_factory=factory)

    identity = await locator.locate("contoso-cosmos", "cred", "https://management.azure.com")

    assert identity.subscription_id == "sub-123"
    assert identity.resource_group == "rg-prod"
    factory.assert_called_once_with("cred", "https://management.azure.com")
    assert executor.queries[0][1] == 1000


@pytest.mark.asyncio
async def test_locate_no_rows():
    locator = ResourceLocator(executor_factory=lambda credential, endpoint: FakeExecutor([]))

    with pytest.raises(AzureResourceNotFoundError) as exc_info:
        await locator.locate("missing-account", "cred")

    assert exc_info.value.message == "Azure Resource not found"
    assert exc_info.value.context["account_name"] == "missing-account"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        HttpResponseError(message="(AuthorizationFailed) Forbidden"),
        HttpResponseError(message="Throttled (429)"),
        ServiceRequestError("Name or service not known"),
    ],
)
async def test_locate_wraps_azure_errors(error):
    locator = ResourceLocator(
        executor_factory=lambda credential, endpoint: FakeExecutor([], error=error)
    )

    with pytest.raises(ManagementPlaneError) as exc_info:
        await locator.locate("contoso-cosmos", "cred")

    assert exc_info.value.cause is error
    assert exc_info.value.context == {"account_name": "contoso-cosmos"}


@pytest.mark.asyncio
async def test_locate_malformed_id():
    locator = ResourceLocator(
        executor_factory=lambda credential, endpoint: FakeExecutor([{"id": "/bad/id"}])
    )

    with pytest.raises(MalformedResourceIdError):
        await locator.locate("contoso-cosmos", "cred")


@pytest.mark.asyncio
async def test_resource_graph_executor_builds_request():
    client = make_async_client()
    client.resources = AsyncMock(return_value=SimpleNamespace(data=[{"id": RESOURCE_ID}]))
    client_factory = MagicMock(return_value=client)
    executor = ResourceGraphQueryExecutor(
        "cred", base_url="https://management.usgovcloudapi.net", client_factory=client_factory
    )

    rows = await executor.query("Resources | take 1", 1000)

    assert rows == [{"id": RESOURCE_ID}]
    client_factory.assert_called_once_with(
        "cred", base_url="https://management.usgovcloudapi.net"
    )
    request = client.resources.await_args.args[0]
    assert request.query == "Resources | take 1"
    assert request.options.top == 1000
    assert request.options.skip == 0
    client.__aexit__.assert_awaited_once()


@pytest.mark.asyncio
async def test_resource_graph_executor_empty_response():
    client = make_async_client()
    client.resources = AsyncMock(return_value=SimpleNamespace(data=None))
    executor = ResourceGraphQueryExecutor("cred", client_factory=MagicMock(return_value=client))

    assert await executor.query("Resources", 1000) == []
