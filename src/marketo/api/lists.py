"""Lists API - static list lookup and membership."""

from __future__ import annotations

from typing import Any, Iterable, TYPE_CHECKING

from .encoding import id_list
from .response import ResponseEnvelope

if TYPE_CHECKING:
    from .client import MarketoClient


class ListsAPI:
    """Static lists API for Marketo.

    Every id list below goes out as repeated ``id=`` parameters.
    """

    def __init__(self, client: "MarketoClient"):
        self._client = client

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
        """Get multiple lists, optionally filtered."""
        args: dict[str, Any] = {
            "name": name,
            "programName": program_name,
            "workspaceName": workspace_name,
            "batchSize": batch_size,
            "nextPageToken": next_page_token,
        }
        many = ids is not None and not isinstance(ids, (int, str))
        if ids:
            args["id"] = id_list(ids) if many else ids
        return await self._client.execute("getLists", args, fix_array_params=many, raw=raw)

    async def get(self, list_id: int, raw: bool = False) -> ResponseEnvelope | bytes:
        return await self._client.execute("getList", {"id": list_id}, raw=raw)

    async def add_leads(self, list_id: int, lead_ids: int | Iterable[int], raw: bool = False):
        """Add one or more leads to a list."""
        return await self._client.execute(
            "addLeadsToList",
            {"listId": list_id, "id": id_list(lead_ids)},
            fix_array_params=True,
            raw=raw,
        )

    async def remove_leads(self, list_id: int, lead_ids: int | Iterable[int], raw: bool = False):
        """Remove one or more leads from a list."""
        return await self._client.execute(
            "removeLeadsFromList",
            {"listId": list_id, "id": id_list(lead_ids)},
            fix_array_params=True,
            raw=raw,
        )

    async def is_member(self, list_id: int, lead_ids: int | Iterable[int], raw: bool = False):
        """Check list membership; decode with ``response.is_member``."""
        return await self._client.execute(
            "isMemberOfList",
            {"listId": list_id, "id": id_list(lead_ids)},
            fix_array_params=True,
            raw=raw,
        )
