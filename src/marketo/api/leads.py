"""Leads API - create, update, look up, delete and merge leads."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, TYPE_CHECKING

from ..errors import ValidationError
from .encoding import id_list
from .response import ResponseEnvelope

if TYPE_CHECKING:
    from .client import MarketoClient


def _join(values: str | Iterable[Any] | None) -> str | None:
    if values is None:
        return None
    if isinstance(values, str):
        return values
    joined = ",".join(str(v) for v in values)
    return joined or None


class LeadsAPI:
    """Leads API for Marketo.

    Usage:
        async with MarketoClient.from_settings() as mkto:
            # Create or update by email
            resp = await mkto.leads.create_or_update([{"email": "x@y.com"}])

            # Look up
            resp = await mkto.leads.get_by_filter_type("email", ["x@y.com"])

            # Merge two losers into a winner
            await mkto.leads.merge(100, [101, 102])
    """

    def __init__(self, client: "MarketoClient"):
        self._client = client

    async def _write(
        self,
        action: str,
        leads: list[dict[str, Any]],
        lookup_field: str | None,
        partition_name: str | None,
        raw: bool,
    ) -> ResponseEnvelope | bytes:
        return await self._client.execute(
            "createOrUpdateLeads",
            {
                "action": action,
                "lookupField": lookup_field,
                "partitionName": partition_name,
                "input": list(leads),
            },
            raw=raw,
        )

    async def create(self, leads, lookup_field=None, partition_name=None, raw=False):
        """Create leads; fails per record if the lookup field already matches."""
        return await self._write("createOnly", leads, lookup_field, partition_name, raw)

    async def create_or_update(self, leads, lookup_field=None, partition_name=None, raw=False):
        """Update leads matched on the lookup field, create the rest."""
        return await self._write("createOrUpdate", leads, lookup_field, partition_name, raw)

    async def update(self, leads, lookup_field=None, partition_name=None, raw=False):
        """Update existing leads only."""
        return await self._write("updateOnly", leads, lookup_field, partition_name, raw)

    async def create_duplicates(self, leads, lookup_field=None, partition_name=None, raw=False):
        """Create leads even when the lookup field already matches."""
        return await self._write("createDuplicate", leads, lookup_field, partition_name, raw)

    async def get(
        self,
        lead_id: int,
        fields: Iterable[str] | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Get a lead by ID."""
        return await self._client.execute(
            "getLead", {"id": lead_id, "fields": _join(fields)}, raw=raw
        )

    async def get_by_filter_type(
        self,
        filter_type: str,
        filter_values: Iterable[Any],
        fields: Iterable[str] | None = None,
        next_page_token: str | None = None,
        batch_size: int | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Get leads whose ``filter_type`` field matches any of ``filter_values``.

        Args:
            filter_type: Field to filter on, e.g. ``id``, ``email``, ``cookie``
            filter_values: Plain values, or records carrying the value under
                ``filter_type``
        """
        values = []
        problems = []
        for index, value in enumerate(id_list(filter_values)):
            if isinstance(value, Mapping):
                if value.get(filter_type) is None:
                    problems.append(f'Record {index} has no "{filter_type}" value.')
                    continue
                value = value[filter_type]
            values.append(value)
        if problems:
            raise ValidationError.from_problems(problems)

        return await self._client.execute(
            "getLeadsByFilterType",
            {
                "filterType": filter_type,
                "filterValues": _join(values),
                "fields": _join(fields),
                "nextPageToken": next_page_token,
                "batchSize": batch_size,
            },
            raw=raw,
        )

    async def get_one_by_filter_type(
        self,
        filter_type: str,
        filter_value: Any,
        fields: Iterable[str] | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Single-value form of get_by_filter_type. See ``first_record``."""
        return await self._client.execute(
            "getLeadByFilterType",
            {"filterType": filter_type, "filterValues": filter_value, "fields": _join(fields)},
            raw=raw,
        )

    async def get_by_list(
        self,
        list_id: int,
        fields: Iterable[str] | None = None,
        next_page_token: str | None = None,
        batch_size: int | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Get the leads in a static list."""
        return await self._client.execute(
            "getLeadsByList",
            {
                "listId": list_id,
                "fields": _join(fields),
                "nextPageToken": next_page_token,
                "batchSize": batch_size,
            },
            raw=raw,
        )

    async def get_partitions(self, raw: bool = False) -> ResponseEnvelope | bytes:
        return await self._client.execute("getLeadPartitions", {}, raw=raw)

    async def delete(self, lead_ids: int | Iterable[int], raw: bool = False):
        """Delete one or more leads."""
        ids = id_list(lead_ids)
        return await self._client.execute(
            "deleteLead", {"id": ids}, fix_array_params=True, raw=raw
        )

    async def associate(self, lead_id: int, cookie: str | None = None, raw: bool = False):
        """Associate a Munchkin cookie with a known lead."""
        return await self._client.execute(
            "associateLead", {"id": lead_id, "cookie": cookie or None}, raw=raw
        )

    async def merge(
        self,
        winner_id: int,
        loser_ids: int | Iterable[int],
        merge_in_crm: bool | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Merge loser leads into the winner.

        A single loser is sent as ``leadId``, several as comma-joined ``leadIds``.
        """
        losers = id_list(loser_ids)
        if not losers:
            raise ValidationError("merge requires at least one losing lead id")

        args: dict[str, Any] = {"id": winner_id, "mergeInCRM": merge_in_crm}
        if len(losers) > 1:
            args["leadIds"] = _join(losers)
        else:
            args["leadId"] = losers[0]
        return await self._client.execute("mergeLead", args, raw=raw)
