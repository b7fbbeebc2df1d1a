"""
Tests for Credential Provider Module

Tests account resolution, endpoint lookup and ARM token acquisition through
the account store.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError
from fakes import FakeAccountStore

from cosmosdb_manager.config.models import AccountConfig
from cosmosdb_manager.credential_provider import (
    AzureIdentityAccountStore,
    CredentialProvider,
    StaticTokenCredential,
)
from cosmosdb_manager.exceptions import (
    AccountNotFoundError,
    EndpointNotConfiguredError,
    TokenAcquisitionError,
)
from cosmosdb_manager.models import AccountAuthKind, AccountIdentity, ProviderSettings, Token


class TestCredentialProvider:
    """Tests for CredentialProvider."""

    @pytest.mark.asyncio
    async def test_list_accounts(self, account_store, account_identity):
        provider = CredentialProvider(account_store)

        assert await provider.list_accounts() == [account_identity]

    @pytest.mark.asyncio
    async def test_find_account(self, account_store, account_identity):
        provider = CredentialProvider(account_store)

        assert await provider.find_account("me@contoso.com") == account_identity

    @pytest.mark.asyncio
    async def test_find_account_first_match_wins(self):
        first = AccountIdentity(account_id="dup", display_name="first")
        second = AccountIdentity(account_id="dup", display_name="second")
        provider = CredentialProvider(FakeAccountStore([first, second]))

        account = await provider.find_account("dup")

        assert account.display_name == "first"

    @pytest.mark.asyncio
    async def test_find_account_not_found(self, account_store):
        provider = CredentialProvider(account_store)

        with pytest.raises(AccountNotFoundError) as exc_info:
            await provider.find_account("someone@else.com")

        assert exc_info.value.message == "No Azure account found"
        assert exc_info.value.context["account_id"] == "someone@else.com"

    @pytest.mark.asyncio
    async def test_acquire_token_uses_arm_scope(self, account_store, account_identity):
        provider = CredentialProvider(account_store)

        token = await provider.acquire_token(account_identity, "tenant-1")

        assert token.value == "arm-token"
        assert account_store.token_requests == [
            ("me@contoso.com", "tenant-1", "https://management.azure.com/.default")
        ]

    @pytest.mark.asyncio
    async def test_acquire_token_is_not_cached(self, account_store, account_identity):
        provider = CredentialProvider(account_store)

        await provider.acquire_token(account_identity, "tenant-1")
        await provider.acquire_token(account_identity, "tenant-1")

        assert len(account_store.token_requests) == 2

    @pytest.mark.asyncio
    async def test_acquire_token_missing(self, account_identity):
        provider = CredentialProvider(FakeAccountStore([account_identity], token=None))

        with pytest.raises(TokenAcquisitionError) as exc_info:
            await provider.acquire_token(account_identity, "tenant-1")

        assert exc_info.value.message == "Unable to retrieve ARM token"

    @pytest.mark.asyncio
    async def test_acquire_token_authentication_failure(self, account_identity):
        store = FakeAccountStore([account_identity])
        store.get_token = AsyncMock(side_effect=ClientAuthenticationError("expired"))
        provider = CredentialProvider(store)

        with pytest.raises(TokenAcquisitionError) as exc_info:
            await provider.acquire_token(account_identity, "tenant-1")

        assert isinstance(exc_info.value.cause, ClientAuthenticationError)

    def test_endpoints(self, account_store, account_identity):
        provider = CredentialProvider(account_store)

        assert provider.arm_endpoint(account_identity) == "https://management.azure.com"
        assert provider.portal_endpoint(account_identity) == "https://portal.azure.com"

    def test_missing_endpoints(self, account_store):
        provider = CredentialProvider(account_store)
        account = AccountIdentity(account_id="bare", provider_settings=ProviderSettings())

        with pytest.raises(EndpointNotConfiguredError):
            provider.arm_endpoint(account)
        with pytest.raises(EndpointNotConfiguredError):
            provider.portal_endpoint(account)

    @pytest.mark.asyncio
    async def test_acquire_token_without_arm_endpoint(self, account_store):
        provider = CredentialProvider(account_store)
        account = AccountIdentity(account_id="bare")

        with pytest.raises(EndpointNotConfiguredError):
            await provider.acquire_token(account, "tenant-1")

        assert account_store.token_requests == []


class TestAzureIdentityAccountStore:
    """Tests for the azure-identity backed account store."""

    @pytest.fixture
    def accounts(self):
        return [
            AccountConfig(id="me@contoso.com", display_name="Contoso", tenant_ids=["t1"]),
            AccountConfig(
                id="sp",
                auth="client_secret",
                client_id="client-id",
                client_secret_env="COSMOS_SP_SECRET",
            ),
        ]

    @pytest.mark.asyncio
    async def test_list_accounts_converts_config(self, accounts):
        store = AzureIdentityAccountStore(accounts)

        identities = await store.list_accounts()

        assert [i.account_id for i in identities] == ["me@contoso.com", "sp"]
        assert identities[0].tenant_ids == ("t1",)
        assert identities[0].provider_settings.arm_endpoint == "https://management.azure.com"
        assert identities[1].auth_kind == AccountAuthKind.CLIENT_SECRET

    @pytest.mark.asyncio
    async def test_get_token_closes_credential(self, accounts):
        credential = MagicMock()
        credential.__aenter__ = AsyncMock(return_value=credential)
        credential.__aexit__ = AsyncMock(return_value=None)
        credential.get_token = AsyncMock(return_value=AccessToken("tok", 123))
        store = AzureIdentityAccountStore(accounts, credential_factory=lambda a, t: credential)
        account = (await store.list_accounts())[0]

        token = await store.get_token(account, "t1", "https://management.azure.com/.default")

        assert token == Token(value="tok", expires_on=123)
        credential.get_token.assert_awaited_once_with(
            "https://management.azure.com/.default", tenant_id="t1"
        )
        credential.__aexit__.assert_awaited_once()

    @patch("cosmosdb_manager.credential_provider.AzureCliCredential")
    def test_cli_credential_for_tenant(self, mock_cli_credential):
        account = AccountIdentity(account_id="me@contoso.com")

        AzureIdentityAccountStore._create_credential(account, "t1")

        mock_cli_credential.assert_called_once_with(tenant_id="t1")

    @patch("cosmosdb_manager.credential_provider.ClientSecretCredential")
    def test_client_secret_credential(self, mock_secret_credential, monkeypatch):
        monkeypatch.setenv("COSMOS_SP_SECRET", "s3cret")
        account = AccountIdentity(
            account_id="sp",
            auth_kind=AccountAuthKind.CLIENT_SECRET,
            client_id="client-id",
            client_secret_env="COSMOS_SP_SECRET",
        )

        AzureIdentityAccountStore._create_credential(account, "t1")

        mock_secret_credential.assert_called_once_with(
            tenant_id="t1", client_id="client-id", client_secret="s3cret"
        )

    def test_client_secret_missing(self, monkeypatch):
        monkeypatch.delenv("COSMOS_SP_SECRET", raising=False)
        account = AccountIdentity(
            account_id="sp",
            auth_kind=AccountAuthKind.CLIENT_SECRET,
            client_id="client-id",
            client_secret_env="COSMOS_SP_SECRET",
        )

        with pytest.raises(TokenAcquisitionError):
            AzureIdentityAccountStore._create_credential(account, "t1")


class TestStaticTokenCredential:
    @pytest.mark.asyncio
    async def test_serves_token(self):
        credential = StaticTokenCredential(Token(value="tok", expires_on=99))

        async with credential:
            access_token = await credential.get_token("https://management.azure.com/.default")

        assert access_token.token == "tok"
        assert access_token.expires_on == 99
        assert credential.token_type == "Bearer"

    def test_token_repr_hides_value(self):
        assert "tok-secret" not in repr(Token(value="tok-secret"))
