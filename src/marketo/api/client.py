"""Marketo API Client - async wrapper for the Marketo REST API."""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from ..config import MarketoSettings
from ..errors import AuthError
from ..oauth.credentials import CredentialManager
from .activities import ActivitiesAPI
from .bulk import BulkImportCoordinator
from .campaigns import CampaignsAPI
from .commands import CommandTable
from .dispatcher import CommandDispatcher
from .emails import EmailsAPI
from .leads import LeadsAPI
from .lists import ListsAPI
from .opportunities import OpportunitiesAPI
from .paging import PagingCursor
from .response import ResponseEnvelope


class MarketoClient:
    """Marketo API client with domain-specific sub-APIs.

    Usage:
        async with MarketoClient.from_settings() as mkto:
            resp = await mkto.leads.create_or_update([{"email": "x@y.com"}])
            if resp.is_success():
                print(resp.get_result())

            batch = await mkto.bulk.submit("leads.csv")

    Any command in the table can also be run directly:
        envelope = await mkto.execute("getLead", {"id": 42})
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        version: int = 1,
        timeout: float = 30.0,
        token_safety_margin: float = 60,
        commands: CommandTable | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not client_id or not client_secret:
            raise AuthError(
                "Marketo credentials not set. Set MARKETO_CLIENT_ID and "
                "MARKETO_CLIENT_SECRET in the environment or .env"
            )

        self.base_url = base_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

        self.credentials = CredentialManager(
            self.base_url,
            client_id,
            client_secret,
            http_client=self._http,
            safety_margin=token_safety_margin,
            timeout=timeout,
        )
        self.dispatcher = CommandDispatcher(
            self.credentials,
            self._http,
            commands=commands,
            version=version,
            base_url=self.base_url,
        )

        # Sub-clients for different resources
        self.leads = LeadsAPI(self)
        self.lists = ListsAPI(self)
        self.campaigns = CampaignsAPI(self)
        self.activities = ActivitiesAPI(self)
        self.opportunities = OpportunitiesAPI(self)
        self.emails = EmailsAPI(self)
        self.bulk = BulkImportCoordinator(self.dispatcher)
        self.paging = PagingCursor(self.dispatcher)

    @classmethod
    def from_settings(
        cls,
        settings: MarketoSettings | None = None,
        **kwargs: Any,
    ) -> "MarketoClient":
        """Create a client from ``MARKETO_*`` environment variables / .env."""
        settings = settings or MarketoSettings()
        return cls(
            base_url=settings.base_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            version=settings.version,
            timeout=settings.timeout,
            token_safety_margin=settings.token_safety_margin,
            **kwargs,
        )

    async def __aenter__(self) -> "MarketoClient":
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    @property
    def commands(self) -> CommandTable:
        return self.dispatcher.commands

    async def execute(
        self,
        command_name: str,
        args: Mapping[str, Any] | None = None,
        *,
        fix_array_params: bool = False,
        raw: bool = False,
        strict: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Run a command from the command table. See CommandDispatcher.execute."""
        return await self.dispatcher.execute(
            command_name,
            args,
            fix_array_params=fix_array_params,
            raw=raw,
            strict=strict,
        )
