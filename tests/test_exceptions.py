"""
Tests for the custom exception hierarchy.
"""

from azure.core.exceptions import HttpResponseError

from cosmosdb_manager.exceptions import (
    AccountNotFoundError,
    AzureIdentityError,
    AzureResourceNotFoundError,
    ConnectionFailedError,
    CosmosDbManagerError,
    ManagementPlaneError,
    MissingConnectionStringError,
    TokenAcquisitionError,
    wrap_azure_exception,
)


class TestCosmosDbManagerError:
    def test_str_includes_code_context_and_suggestion(self):
        error = CosmosDbManagerError(
            "Something failed",
            error_code="TEST",
            context={"server": "local"},
            recovery_suggestion="Try again",
        )

        text = str(error)

        assert text.startswith("[TEST] Something failed")
        assert "server=local" in text
        assert "suggestion: Try again" in text

    def test_to_dict(self):
        cause = ValueError("boom")
        error = ConnectionFailedError("Could not connect to local", server="local", cause=cause)

        data = error.to_dict()

        assert data["error_type"] == "ConnectionFailedError"
        assert data["error_code"] == "CONNECTION_FAILED"
        assert data["context"] == {"server": "local"}
        assert data["cause"] == "boom"
        assert data["retryable"] is True

    def test_only_connection_failures_are_retryable(self):
        assert ConnectionFailedError("x").retryable
        assert not AccountNotFoundError("x").retryable
        assert not MissingConnectionStringError("x").retryable

    def test_hierarchy(self):
        assert issubclass(TokenAcquisitionError, AzureIdentityError)
        assert issubclass(AzureResourceNotFoundError, ManagementPlaneError)
        assert issubclass(ManagementPlaneError, CosmosDbManagerError)

    def test_empty_context_values_are_skipped(self):
        error = MissingConnectionStringError("x", account_name="contoso", attempts=None)

        assert error.context == {"account_name": "contoso"}


class TestWrapAzureException:
    def test_authentication(self):
        wrapped = wrap_azure_exception(HttpResponseError(message="Authentication failed"))

        assert isinstance(wrapped, TokenAcquisitionError)

    def test_not_found(self):
        wrapped = wrap_azure_exception(
            HttpResponseError(message="(ResourceNotFound) The account was not found"),
            {"account_name": "contoso"},
        )

        assert isinstance(wrapped, AzureResourceNotFoundError)
        assert wrapped.context == {"account_name": "contoso"}

    def test_other(self):
        original = HttpResponseError(message="Internal server error")
        wrapped = wrap_azure_exception(original)

        assert type(wrapped) is ManagementPlaneError
        assert wrapped.error_code == "AZURE_OPERATION_FAILED"
        assert wrapped.cause is original
