"""
Connection String Selector

Lists the data-plane connection strings ARM exposes for a database account and
resolves them to exactly one. When several exist a human chooser is asked,
with the first candidate pre-selected. A dismissed chooser is shown again, up
to a bounded number of attempts, so a pipeline run can never hang on it.
"""

import asyncio
import logging
from typing import Any, List, Optional, Protocol, Sequence

import click
from azure.core.exceptions import AzureError

from ..constants import PICK_MAX_ATTEMPTS
from ..exceptions import (
    MissingConnectionStringError,
    NoConnectionStringsFoundError,
    wrap_azure_exception,
)
from ..models import ConnectionStringCandidate

logger = logging.getLogger(__name__)


class ConnectionStringChooser(Protocol):
    """Asks a human to pick one candidate; returns None when dismissed."""

    async def choose(
        self,
        candidates: Sequence[ConnectionStringCandidate],
        default_index: int,
        account_name: str,
    ) -> Optional[ConnectionStringCandidate]: ...


class PromptConnectionStringChooser:
    """
    Terminal chooser: numbered list with the pre-selected entry marked.

    The answer is read on a worker thread so the event loop keeps running
    other pipelines while the prompt waits. A blank or invalid answer
    dismisses.
    """

    def __init__(self, echo: Any = None, prompt: Any = None) -> None:
        self._echo = echo or click.echo
        self._prompt = prompt or click.prompt

    async def choose(
        self,
        candidates: Sequence[ConnectionStringCandidate],
        default_index: int,
        account_name: str,
    ) -> Optional[ConnectionStringCandidate]:
        self._echo("Select connection string:")
        for index, candidate in enumerate(candidates, start=1):
            marker = "*" if index - 1 == default_index else " "
            self._echo(f" {marker} {index}. {candidate.label(account_name)}")

        answer = await asyncio.to_thread(
            self._prompt,
            "Connection string (blank to cancel)",
            default="",
            show_default=False,
        )
        answer = str(answer).strip()
        if not answer.isdigit():
            return None
        choice = int(answer) - 1
        if 0 <= choice < len(candidates):
            return candidates[choice]
        return None


class ConnectionStringSelector:
    """
    Resolves a database account's connection strings to a single string.

    Attributes:
        chooser: Human chooser used when several candidates exist
        max_attempts: Times the chooser is shown before giving up
    """

    def __init__(
        self,
        chooser: ConnectionStringChooser,
        max_attempts: int = PICK_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.chooser = chooser
        self.max_attempts = max_attempts

    async def list_candidates(
        self, management_client: Any, resource_group: str, account_name: str
    ) -> List[ConnectionStringCandidate]:
        """Fetch the account's connection strings from the management plane."""
        logger.info(f"🔑 Retrieving connection strings for {account_name}")
        try:
            response = await management_client.database_accounts.list_connection_strings(
                resource_group, account_name
            )
        except AzureError as exc:
            raise wrap_azure_exception(
                exc, {"resource_group": resource_group, "account_name": account_name}
            ) from exc

        connection_strings = getattr(response, "connection_strings", None) or []
        return [
            ConnectionStringCandidate(
                description=getattr(cs, "description", None) or "",
                connection_string=getattr(cs, "connection_string", None),
            )
            for cs in connection_strings
        ]

    async def select_connection_string(
        self, management_client: Any, resource_group: str, account_name: str
    ) -> str:
        """
        Resolve the account's connection strings to exactly one.

        Raises:
            NoConnectionStringsFoundError: If ARM returns no connection strings
            MissingConnectionStringError: If no candidate was chosen within
                the attempt budget or the chosen one is empty
        """
        candidates = await self.list_candidates(
            management_client, resource_group, account_name
        )
        if not candidates:
            raise NoConnectionStringsFoundError(
                "No Connection strings found for this account",
                account_name=account_name,
            )

        if len(candidates) == 1:
            chosen: Optional[ConnectionStringCandidate] = candidates[0]
        else:
            chosen = await self._ask(candidates, account_name)

        if chosen is None or not chosen.connection_string:
            raise MissingConnectionStringError(
                "Error: missing connection string", account_name=account_name
            )
        return chosen.connection_string

    async def _ask(
        self, candidates: List[ConnectionStringCandidate], account_name: str
    ) -> Optional[ConnectionStringCandidate]:
        for attempt in range(1, self.max_attempts + 1):
            chosen = await self.chooser.choose(candidates, 0, account_name)
            if chosen is not None:
                return chosen
            logger.warning(
                f"No connection string selected for {account_name} "
                f"(attempt {attempt}/{self.max_attempts})"
            )
        return None
