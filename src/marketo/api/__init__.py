"""Marketo API client module.

Usage:
    from marketo.api import MarketoClient

    async with MarketoClient.from_settings() as mkto:
        # Leads
        await mkto.leads.create_or_update([{"email": "j@example.com"}])

        # Lists
        await mkto.lists.add_leads(1001, [1, 2, 3])

        # Bulk import
        batch = await mkto.bulk.submit("leads.csv")
        batch = await mkto.bulk.poll_status(batch)

        # Change feed
        async for change in mkto.paging.iterate(since, ["email"]):
            ...
"""

from .client import MarketoClient
from .commands import CommandDescriptor, Placement, load_command_table
from .dispatcher import CommandDispatcher
from .encoding import PreparedRequest, build_request, repeat_array_keys
from .response import ResponseEnvelope, first_record, is_member, record_status
from .bulk import BatchStatus, BulkBatch, BulkImportCoordinator
from .paging import PagingCursor, PagingToken
from .leads import LeadsAPI
from .lists import ListsAPI
from .campaigns import CampaignsAPI
from .activities import ActivitiesAPI, validate_activity
from .opportunities import OpportunitiesAPI
from .emails import EmailsAPI

__all__ = [
    "MarketoClient",
    "CommandDescriptor",
    "Placement",
    "load_command_table",
    "CommandDispatcher",
    "PreparedRequest",
    "build_request",
    "repeat_array_keys",
    "ResponseEnvelope",
    "first_record",
    "is_member",
    "record_status",
    "BatchStatus",
    "BulkBatch",
    "BulkImportCoordinator",
    "PagingCursor",
    "PagingToken",
    "LeadsAPI",
    "ListsAPI",
    "CampaignsAPI",
    "ActivitiesAPI",
    "validate_activity",
    "OpportunitiesAPI",
    "EmailsAPI",
]
