"""Opportunities API - create or update opportunities and their roles."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from .response import ResponseEnvelope

if TYPE_CHECKING:
    from .client import MarketoClient


class OpportunitiesAPI:
    """Opportunities API for Marketo."""

    def __init__(self, client: "MarketoClient"):
        self._client = client

    async def _sync(
        self,
        command: str,
        records: list[dict[str, Any]],
        dedupe_by: str | None,
        action: str,
        raw: bool,
    ) -> ResponseEnvelope | bytes:
        return await self._client.execute(
            command,
            {"action": action, "dedupeBy": dedupe_by, "input": list(records)},
            raw=raw,
        )

    async def add(
        self,
        opportunities: list[dict[str, Any]],
        dedupe_by: str | None = "dedupeFields",
        action: str = "createOrUpdate",
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Create or update opportunities."""
        return await self._sync("addOpportunities", opportunities, dedupe_by, action, raw)

    async def add_roles(
        self,
        roles: list[dict[str, Any]],
        dedupe_by: str | None = "dedupeFields",
        action: str = "createOrUpdate",
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Create or update opportunity roles."""
        return await self._sync("addOpportunitiesRole", roles, dedupe_by, action, raw)
