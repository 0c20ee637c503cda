"""Tests for the command table."""

import json
from types import MappingProxyType

import pytest

from marketo.api.commands import (
    CommandDescriptor,
    Placement,
    load_command_table,
    lookup,
)
from marketo.errors import UnknownCommandError, ValidationError


class TestCommandDescriptor:
    """Tests for CommandDescriptor."""

    def test_from_dict_defaults_post_to_body(self):
        descriptor = CommandDescriptor.from_dict("x", {"method": "post", "path": "/x.json"})

        assert descriptor.http_method == "POST"
        assert descriptor.api == "rest"
        assert descriptor.body_format == "json"
        assert descriptor.default_placement is Placement.BODY

    def test_from_dict_defaults_get_to_query(self):
        descriptor = CommandDescriptor.from_dict("x", {"method": "GET", "path": "/x.json"})
        assert descriptor.default_placement is Placement.QUERY

    def test_from_dict_rejects_unknown_api(self):
        with pytest.raises(ValueError):
            CommandDescriptor.from_dict("x", {"method": "GET", "path": "/x", "api": "soap"})

    def test_from_dict_rejects_unknown_body_format(self):
        with pytest.raises(ValueError):
            CommandDescriptor.from_dict(
                "x", {"method": "GET", "path": "/x", "bodyFormat": "xml"}
            )

    def test_path_parameters_win_over_declared_placement(self):
        """Should route path-template names to the path."""
        descriptor = CommandDescriptor.from_dict(
            "x",
            {"method": "POST", "path": "/lists/{listId}/leads.json", "parameters": {"id": "query"}},
        )

        assert descriptor.path_parameters == ("listId",)
        assert descriptor.placement_for("listId") is Placement.PATH
        assert descriptor.placement_for("id") is Placement.QUERY
        assert descriptor.placement_for("other") is Placement.BODY

    def test_render_path_uses_api_root(self):
        table = load_command_table()

        assert table["getLead"].render_path({"id": 7}, 1) == "/rest/v1/lead/7.json"
        assert (
            table["getBulkUploadStatus"].render_path({"batchId": 12}, 1)
            == "/bulk/v1/leads/batch/12.json"
        )
        assert (
            table["approveEmailbyId"].render_path({"id": 3}, 1)
            == "/rest/asset/v1/email/3/approveDraft.json"
        )

    def test_render_path_escapes_reserved_characters(self):
        """Should keep each path value inside its own segment."""
        descriptor = load_command_table()["updateEmailContentInEditableSection"]

        path = descriptor.render_path({"id": 5, "htmlId": "hero?x=1#frag/../6"}, 1)

        assert path == "/rest/asset/v1/email/5/content/hero%3Fx%3D1%23frag%2F..%2F6.json"

    def test_render_path_missing_parameter(self):
        """Should raise ValidationError naming the missing path parameter."""
        descriptor = load_command_table()["updateEmailContentInEditableSection"]

        with pytest.raises(ValidationError) as exc_info:
            descriptor.render_path({"id": 1}, 1)

        assert "htmlId" in exc_info.value.message


class TestLoadCommandTable:
    """Tests for loading command tables."""

    def test_bundled_table_is_read_only(self):
        table = load_command_table()

        assert isinstance(table, MappingProxyType)
        with pytest.raises(TypeError):
            table["getLead"] = None

    def test_bundled_table_covers_core_commands(self):
        table = load_command_table()

        for name in (
            "createOrUpdateLeads",
            "getLeadsByFilterType",
            "deleteLead",
            "mergeLead",
            "addLeadsToList",
            "isMemberOfList",
            "requestCampaign",
            "getPagingToken",
            "getLeadChanges",
            "addActivities",
            "importLeadsCsv",
            "getBulkUploadStatus",
            "getBulkUploadFailures",
            "getBulkUploadWarnings",
        ):
            assert name in table

    def test_import_is_multipart_bulk(self):
        descriptor = load_command_table()["importLeadsCsv"]

        assert descriptor.is_bulk
        assert descriptor.body_format == "multipart"
        assert descriptor.placement_for("file") is Placement.FILE

    def test_load_from_dict(self):
        table = load_command_table(
            {"commands": {"ping": {"method": "GET", "path": "/ping.json"}}}
        )
        assert list(table) == ["ping"]

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "service.json"
        path.write_text(json.dumps({"commands": {"ping": {"method": "GET", "path": "/p.json"}}}))

        table = load_command_table(path)

        assert table["ping"].path_template == "/p.json"

    def test_lookup_unknown(self):
        """Should raise UnknownCommandError for a missing name."""
        with pytest.raises(UnknownCommandError) as exc_info:
            lookup(load_command_table(), "getUnicorns")

        assert exc_info.value.command == "getUnicorns"
