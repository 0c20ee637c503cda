"""Campaigns API - smart campaign lookup, triggering and scheduling."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, TYPE_CHECKING

from .encoding import id_list
from .response import ResponseEnvelope

if TYPE_CHECKING:
    from .client import MarketoClient


def _tokens(tokens: Mapping[str, Any] | Iterable[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Accept ``{"{{my.token}}": "value"}`` or a ready ``[{name, value}]`` list."""
    if not tokens:
        return []
    if isinstance(tokens, Mapping):
        return [{"name": name, "value": value} for name, value in tokens.items()]
    return list(tokens)


class CampaignsAPI:
    """Campaigns API for Marketo.

    Usage:
        async with MarketoClient.from_settings() as mkto:
            campaign = await mkto.campaigns.get(1001)
            await mkto.campaigns.request(1001, [42, 43], {"{{my.offer}}": "20%"})
    """

    def __init__(self, client: "MarketoClient"):
        self._client = client

    async def get(self, campaign_id: int, raw: bool = False) -> ResponseEnvelope | bytes:
        """Get campaign details."""
        return await self._client.execute("getCampaign", {"id": campaign_id}, raw=raw)

    async def list(
        self,
        ids: int | Iterable[int] | None = None,
        name: str | None = None,
        program_name: str | None = None,
        workspace_name: str | None = None,
        batch_size: int | None = None,
        next_page_token: str | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """List campaigns, optionally restricted to ``ids``."""
        args: dict[str, Any] = {
            "name": name,
            "programName": program_name,
            "workspaceName": workspace_name,
            "batchSize": batch_size,
            "nextPageToken": next_page_token,
        }
        many = ids is not None and not isinstance(ids, (int, str))
        if ids:
            args["id"] = list(ids) if many else ids
        return await self._client.execute("getCampaigns", args, fix_array_params=many, raw=raw)

    async def request(
        self,
        campaign_id: int,
        lead_ids: int | Iterable[int],
        tokens: Mapping[str, Any] | Iterable[dict[str, Any]] | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Trigger a campaign for one or more leads."""
        leads = id_list(lead_ids)
        data: dict[str, Any] = {"leads": [{"id": lead_id} for lead_id in leads]}
        if tokens:
            data["tokens"] = _tokens(tokens)
        return await self._client.execute(
            "requestCampaign", {"id": campaign_id, "input": data}, raw=raw
        )

    async def schedule(
        self,
        campaign_id: int,
        run_at: datetime | None = None,
        tokens: Mapping[str, Any] | Iterable[dict[str, Any]] | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Schedule a batch campaign. Without ``run_at`` it runs in five minutes."""
        data: dict[str, Any] = {}
        if run_at is not None:
            data["runAt"] = run_at.isoformat()
        if tokens:
            data["tokens"] = _tokens(tokens)
        return await self._client.execute(
            "scheduleCampaign", {"id": campaign_id, "input": data or None}, raw=raw
        )
