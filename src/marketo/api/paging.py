"""Paging-token traversal of the lead change feed.

A paging token is a single-use cursor: pass it to ``next`` exactly once and
continue with the token that comes back. Nothing here caches tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Iterable, TYPE_CHECKING

from ..errors import MalformedResponseError, ValidationError

if TYPE_CHECKING:
    from .dispatcher import CommandDispatcher


@dataclass(frozen=True)
class PagingToken:
    """Opaque cursor returned by the API."""

    value: str

    def __str__(self) -> str:
        return self.value


def _fields_arg(fields: str | Iterable[str]) -> str:
    names = [fields] if isinstance(fields, str) else list(fields)
    names = [n.strip() for name in names for n in name.split(",") if n.strip()]
    if not names:
        raise ValidationError("At least one field name is required")
    return ",".join(names)


class PagingCursor:
    """Incremental retrieval of lead changes.

    Usage:
        token = await client.paging.start(datetime(2024, 1, 1))
        records, token = await client.paging.next(token, ["email", "firstName"])
    """

    def __init__(self, dispatcher: "CommandDispatcher"):
        self._dispatcher = dispatcher

    async def start(self, since: datetime | str) -> PagingToken:
        """Get the first paging token for changes after ``since``."""
        since_arg = since.isoformat() if isinstance(since, datetime) else str(since)
        envelope = await self._dispatcher.execute(
            "getPagingToken", {"sinceDatetime": since_arg}, strict=True
        )
        if not envelope.next_page_token:
            raise MalformedResponseError("getPagingToken response has no nextPageToken")
        return PagingToken(envelope.next_page_token)

    async def next(
        self,
        token: PagingToken | str,
        fields: str | Iterable[str],
        list_id: int | None = None,
        batch_size: int | None = None,
    ) -> tuple[list[dict[str, Any]], PagingToken]:
        """Fetch one page of changes.

        Returns:
            ``(records, next_token)``; an empty ``records`` list means the feed
            is exhausted for now.
        """
        args = {
            "nextPageToken": str(token),
            "fields": _fields_arg(fields),
            "listId": list_id,
            "batchSize": batch_size,
        }
        envelope = await self._dispatcher.execute(
            "getLeadChanges", args, fix_array_params=True, strict=True
        )
        if not envelope.next_page_token:
            raise MalformedResponseError("getLeadChanges response has no nextPageToken")
        return envelope.get_result(), PagingToken(envelope.next_page_token)

    async def iterate(
        self,
        since: datetime | str,
        fields: str | Iterable[str],
        list_id: int | None = None,
        batch_size: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield change records from ``since`` until an empty page."""
        token = await self.start(since)
        while True:
            records, token = await self.next(token, fields, list_id, batch_size)
            if not records:
                return
            for record in records:
                yield record
