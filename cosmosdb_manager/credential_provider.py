"""
Credential Provider Module

This module wraps the Azure account store: it lists the registered accounts,
resolves an account by id, exposes the account's cloud endpoints and exchanges
(account, tenant) for an ARM bearer token. Tokens are acquired fresh on every
call and are never cached.
"""

import logging
import os
from typing import Any, List, Optional, Protocol, Sequence

from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import CredentialUnavailableError
from azure.identity.aio import (
    AzureCliCredential,
    ClientSecretCredential,
    DefaultAzureCredential,
)

from .config.models import AccountConfig
from .exceptions import (
    AccountNotFoundError,
    EndpointNotConfiguredError,
    TokenAcquisitionError,
)
from .models import AccountAuthKind, AccountIdentity, ProviderSettings, Token

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    """Identity store holding the Azure accounts known to the tool."""

    async def list_accounts(self) -> List[AccountIdentity]: ...

    async def get_token(
        self, account: AccountIdentity, tenant_id: str, scope: str
    ) -> Optional[Token]: ...


class AzureIdentityAccountStore:
    """
    Account store backed by configured accounts and ``azure.identity.aio``.

    Each token request builds a credential for the account's auth kind,
    exchanges it for a token and closes it again.
    """

    def __init__(
        self,
        accounts: Sequence[AccountConfig],
        credential_factory: Optional[Any] = None,
    ) -> None:
        """
        Initialize the account store.

        Args:
            accounts: Accounts from the configuration file
            credential_factory: Optional callable (account, tenant_id) -> async
                credential (for dependency injection/testing)
        """
        self._accounts = [self._to_identity(account) for account in accounts]
        self._credential_factory = credential_factory or self._create_credential

    async def list_accounts(self) -> List[AccountIdentity]:
        return list(self._accounts)

    async def get_token(
        self, account: AccountIdentity, tenant_id: str, scope: str
    ) -> Optional[Token]:
        credential = self._credential_factory(account, tenant_id)
        async with credential:
            access_token: Optional[AccessToken] = await credential.get_token(
                scope, tenant_id=tenant_id
            )
        if access_token is None or not access_token.token:
            return None
        return Token(value=access_token.token, expires_on=access_token.expires_on)

    @staticmethod
    def _create_credential(account: AccountIdentity, tenant_id: str) -> Any:
        if account.auth_kind == AccountAuthKind.CLIENT_SECRET:
            secret = os.getenv(account.client_secret_env or "")
            if not secret:
                raise TokenAcquisitionError(
                    f"Client secret variable {account.client_secret_env} is not set",
                    account_id=account.account_id,
                    tenant_id=tenant_id,
                )
            return ClientSecretCredential(
                tenant_id=tenant_id,
                client_id=account.client_id,
                client_secret=secret,
            )
        if account.auth_kind == AccountAuthKind.DEFAULT:
            return DefaultAzureCredential(additionally_allowed_tenants=["*"])
        return AzureCliCredential(tenant_id=tenant_id)

    @staticmethod
    def _to_identity(account: AccountConfig) -> AccountIdentity:
        return AccountIdentity(
            account_id=account.id,
            display_name=account.display_name or account.id,
            auth_kind=account.auth,
            provider_settings=ProviderSettings(
                arm_endpoint=account.arm_endpoint,
                portal_endpoint=account.portal_endpoint,
            ),
            tenant_ids=tuple(account.tenant_ids),
            client_id=account.client_id,
            client_secret_env=account.client_secret_env,
        )


class StaticTokenCredential:
    """
    Async token credential serving one pre-acquired ARM token.

    Lets the Azure management clients authenticate with the token acquired at
    the start of a pipeline run instead of re-running the identity exchange.
    """

    def __init__(self, token: Token) -> None:
        self._token = token

    @property
    def token_type(self) -> str:
        return self._token.token_type

    async def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        return AccessToken(self._token.value, self._token.expires_on)

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "StaticTokenCredential":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


class CredentialProvider:
    """
    Resolves Azure accounts and acquires ARM tokens through an account store.

    Attributes:
        account_store: Store listing accounts and exchanging tokens
    """

    def __init__(self, account_store: AccountStore) -> None:
        self.account_store = account_store

    async def list_accounts(self) -> List[AccountIdentity]:
        """Return every account registered with the store."""
        return await self.account_store.list_accounts()

    async def find_account(self, account_id: str) -> AccountIdentity:
        """
        Resolve an account by id.

        Args:
            account_id: Account key to look up

        Returns:
            The first registered account with a matching id

        Raises:
            AccountNotFoundError: If no account matches
        """
        logger.debug(f"Retrieving Azure account {account_id}")
        accounts = [
            a for a in await self.account_store.list_accounts() if a.account_id == account_id
        ]
        if not accounts:
            raise AccountNotFoundError("No Azure account found", account_id=account_id)
        return accounts[0]

    async def acquire_token(self, account: AccountIdentity, tenant_id: str) -> Token:
        """
        Exchange (account, tenant) for an ARM bearer token.

        Raises:
            EndpointNotConfiguredError: If the account has no ARM endpoint
            TokenAcquisitionError: If the store returns no token
        """
        scope = f"{self.arm_endpoint(account).rstrip('/')}/.default"
        logger.debug(f"Retrieving Azure token for tenant {tenant_id}")
        try:
            token = await self.account_store.get_token(account, tenant_id, scope)
        except (ClientAuthenticationError, CredentialUnavailableError) as exc:
            raise TokenAcquisitionError(
                "Unable to retrieve ARM token",
                account_id=account.account_id,
                tenant_id=tenant_id,
                cause=exc,
            ) from exc

        if token is None:
            raise TokenAcquisitionError(
                "Unable to retrieve ARM token",
                account_id=account.account_id,
                tenant_id=tenant_id,
            )
        return token

    def arm_endpoint(self, account: AccountIdentity) -> str:
        """Return the account's ARM endpoint."""
        endpoint = account.provider_settings.arm_endpoint
        if not endpoint:
            raise EndpointNotConfiguredError(
                "Unable to retrieve ARM endpoint",
                account_id=account.account_id,
                endpoint="arm",
            )
        return endpoint

    def portal_endpoint(self, account: AccountIdentity) -> str:
        """Return the account's Azure portal endpoint."""
        endpoint = account.provider_settings.portal_endpoint
        if not endpoint:
            raise EndpointNotConfiguredError(
                "Unable to retrieve portal endpoint",
                account_id=account.account_id,
                endpoint="portal",
            )
        return endpoint
