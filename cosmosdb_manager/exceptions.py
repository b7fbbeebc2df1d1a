"""
Custom Exception Hierarchy for Cosmos DB Manager

This module provides the exception hierarchy used by the credential and
connection resolution pipeline. Every stage raises one of these types so the
orchestrator can surface a single human-readable message per failure kind.
"""

from typing import Any, Dict, Optional


class CosmosDbManagerError(Exception):
    """
    Base exception class for all Cosmos DB Manager related errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
            "retryable": self.retryable,
        }


def _with_context(kwargs: Dict[str, Any], **values: Any) -> Dict[str, Any]:
    context = kwargs.get("context") or {}
    for key, value in values.items():
        if value:
            context[key] = value
    kwargs["context"] = context
    return kwargs


class MalformedResourceIdError(CosmosDbManagerError):
    """Raised when an Azure resource id does not have the ARM path shape."""

    def __init__(
        self, message: str, resource_id: Optional[str] = None, **kwargs: Any
    ) -> None:
        kwargs = _with_context(kwargs, resource_id=resource_id)
        kwargs.setdefault("error_code", "MALFORMED_RESOURCE_ID")
        kwargs.setdefault(
            "recovery_suggestion",
            "Use the full id: /subscriptions/<id>/resourceGroups/<rg>/providers/"
            "Microsoft.DocumentDB/databaseAccounts/<name>",
        )
        super().__init__(message, **kwargs)


# Azure identity and configuration exceptions
class AzureIdentityError(CosmosDbManagerError):
    """Base class for account, endpoint and token problems."""

    pass


class AccountNotFoundError(AzureIdentityError):
    """Raised when no registered Azure account matches the requested id."""

    def __init__(
        self, message: str, account_id: Optional[str] = None, **kwargs: Any
    ) -> None:
        kwargs = _with_context(kwargs, account_id=account_id)
        kwargs.setdefault("error_code", "AZURE_ACCOUNT_NOT_FOUND")
        kwargs.setdefault(
            "recovery_suggestion", "Add the account to the 'accounts' configuration"
        )
        super().__init__(message, **kwargs)


class EndpointNotConfiguredError(AzureIdentityError):
    """Raised when an account has no ARM or portal endpoint configured."""

    def __init__(
        self,
        message: str,
        account_id: Optional[str] = None,
        endpoint: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_context(kwargs, account_id=account_id, endpoint=endpoint)
        kwargs.setdefault("error_code", "ENDPOINT_NOT_CONFIGURED")
        super().__init__(message, **kwargs)


class TokenAcquisitionError(AzureIdentityError):
    """Raised when the identity store returns no ARM token."""

    def __init__(
        self,
        message: str,
        account_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_context(kwargs, account_id=account_id, tenant_id=tenant_id)
        kwargs.setdefault("error_code", "TOKEN_ACQUISITION_FAILED")
        kwargs.setdefault(
            "recovery_suggestion",
            "Try running 'az login' or check the account credentials",
        )
        super().__init__(message, **kwargs)


# Management plane exceptions
class ManagementPlaneError(CosmosDbManagerError):
    """Base class for errors raised while talking to ARM."""

    pass


class AzureResourceNotFoundError(ManagementPlaneError):
    """Raised when resource discovery finds no matching database account."""

    def __init__(
        self, message: str, account_name: Optional[str] = None, **kwargs: Any
    ) -> None:
        kwargs = _with_context(kwargs, account_name=account_name)
        kwargs.setdefault("error_code", "AZURE_RESOURCE_NOT_FOUND")
        kwargs.setdefault(
            "recovery_suggestion",
            "Check the account name or set azure_resource_id on the server profile",
        )
        super().__init__(message, **kwargs)


class NoConnectionStringsFoundError(ManagementPlaneError):
    """Raised when ARM returns no connection strings for an account."""

    def __init__(
        self, message: str, account_name: Optional[str] = None, **kwargs: Any
    ) -> None:
        kwargs = _with_context(kwargs, account_name=account_name)
        kwargs.setdefault("error_code", "NO_CONNECTION_STRINGS")
        super().__init__(message, **kwargs)


class MissingConnectionStringError(ManagementPlaneError):
    """Raised when no usable connection string was chosen."""

    def __init__(
        self,
        message: str,
        account_name: Optional[str] = None,
        attempts: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_context(kwargs, account_name=account_name, attempts=attempts)
        kwargs.setdefault("error_code", "MISSING_CONNECTION_STRING")
        super().__init__(message, **kwargs)


# Data plane exceptions
class ConnectionFailedError(CosmosDbManagerError):
    """Raised when the data-plane client cannot open a connection."""

    retryable = True

    def __init__(self, message: str, server: Optional[str] = None, **kwargs: Any) -> None:
        kwargs = _with_context(kwargs, server=server)
        kwargs.setdefault("error_code", "CONNECTION_FAILED")
        super().__init__(message, **kwargs)


class DataPlaneOperationError(CosmosDbManagerError):
    """Raised when an operation over a live connection fails."""

    def __init__(
        self,
        message: str,
        server: Optional[str] = None,
        database: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_context(kwargs, server=server, database=database)
        kwargs.setdefault("error_code", "DATA_PLANE_OPERATION_FAILED")
        super().__init__(message, **kwargs)


# Configuration exceptions
class ConfigurationError(CosmosDbManagerError):
    """Raised when configuration is missing or invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "CONFIGURATION_ERROR")
        super().__init__(message, **kwargs)


def wrap_azure_exception(
    exc: Exception, context: Optional[Dict[str, Any]] = None
) -> CosmosDbManagerError:
    """
    Wrap a raw Azure SDK exception in our exception hierarchy.

    Args:
        exc: The original exception
        context: Optional context information

    Returns:
        CosmosDbManagerError: Wrapped exception with enhanced context
    """
    error_message = str(exc)
    lowered = error_message.lower()

    if "authentication" in lowered or "unauthorized" in lowered:
        return TokenAcquisitionError(
            f"Azure authentication failed: {error_message}", context=context, cause=exc
        )
    if "resourcenotfound" in lowered or "was not found" in lowered:
        return AzureResourceNotFoundError(
            f"Azure resource not found: {error_message}", context=context, cause=exc
        )
    return ManagementPlaneError(
        f"Azure operation failed: {error_message}",
        error_code="AZURE_OPERATION_FAILED",
        context=context,
        cause=exc,
    )
