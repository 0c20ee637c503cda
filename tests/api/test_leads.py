"""Tests for the Leads API."""

import pytest

from marketo.api.response import first_record, record_status
from marketo.errors import ValidationError

from tests.conftest import envelope

LEADS_PATH = "/rest/v1/leads.json"


class TestLeadsWrite:
    """Tests for createOrUpdateLeads wrappers."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,action",
        [
            ("create", "createOnly"),
            ("create_or_update", "createOrUpdate"),
            ("update", "updateOnly"),
            ("create_duplicates", "createDuplicate"),
        ],
    )
    async def test_action(self, marketo, fake_marketo, method, action):
        """Should send the matching action value."""
        fake_marketo.add("POST", LEADS_PATH, envelope([{"id": 1, "status": "created"}]))

        resp = await getattr(marketo.leads, method)([{"email": "x@y.com"}], lookup_field="email")

        assert record_status(resp) == "created"
        assert fake_marketo.last_json() == {
            "action": action,
            "lookupField": "email",
            "input": [{"email": "x@y.com"}],
        }

    @pytest.mark.asyncio
    async def test_partition(self, marketo, fake_marketo):
        fake_marketo.add("POST", LEADS_PATH, envelope([]))

        await marketo.leads.create_or_update([{"email": "x@y.com"}], partition_name="EMEA")

        assert fake_marketo.last_json()["partitionName"] == "EMEA"

    @pytest.mark.asyncio
    async def test_raw(self, marketo, fake_marketo):
        fake_marketo.add("POST", LEADS_PATH, b'{"success":true,"result":[]}')

        body = await marketo.leads.create([{"email": "x@y.com"}], raw=True)

        assert body == b'{"success":true,"result":[]}'


class TestLeadsRead:
    """Tests for lead lookups."""

    @pytest.mark.asyncio
    async def test_get(self, marketo, fake_marketo):
        fake_marketo.add("GET", "/rest/v1/lead/318581.json", envelope([{"id": 318581}]))

        resp = await marketo.leads.get(318581, fields=["email", "firstName"])

        assert first_record(resp) == {"id": 318581}
        assert fake_marketo.last_request.url.params["fields"] == "email,firstName"

    @pytest.mark.asyncio
    async def test_get_by_filter_type(self, marketo, fake_marketo):
        """Should comma-join values, including values taken from records."""
        fake_marketo.add("GET", LEADS_PATH, envelope([{"id": 1}, {"id": 2}]))

        await marketo.leads.get_by_filter_type(
            "email", ["a@x.com", {"email": "b@x.com"}], fields=["id"], batch_size=50
        )

        params = fake_marketo.last_request.url.params
        assert params["filterType"] == "email"
        assert params["filterValues"] == "a@x.com,b@x.com"
        assert params["fields"] == "id"
        assert params["batchSize"] == "50"
        assert "nextPageToken" not in params

    @pytest.mark.asyncio
    async def test_get_by_filter_type_record_without_key(self, marketo, fake_marketo):
        """Should raise ValidationError for records lacking the filter field."""
        with pytest.raises(ValidationError) as exc_info:
            await marketo.leads.get_by_filter_type(
                "email", [{"email": "a@x.com"}, {"id": 1}, {"email": None}]
            )

        assert exc_info.value.problems == [
            'Record 1 has no "email" value.',
            'Record 2 has no "email" value.',
        ]
        assert fake_marketo.token_calls == 0
        assert fake_marketo.requests == []

    @pytest.mark.asyncio
    async def test_get_by_filter_type_single_string(self, marketo, fake_marketo):
        fake_marketo.add("GET", LEADS_PATH, envelope([]))

        await marketo.leads.get_by_filter_type("email", "a@x.com")

        assert fake_marketo.last_request.url.params["filterValues"] == "a@x.com"

    @pytest.mark.asyncio
    async def test_get_one_by_filter_type(self, marketo, fake_marketo):
        fake_marketo.add("GET", LEADS_PATH, envelope([{"id": 9, "email": "a@x.com"}]))

        resp = await marketo.leads.get_one_by_filter_type("email", "a@x.com")

        assert first_record(resp)["id"] == 9
        assert fake_marketo.last_request.url.params["filterValues"] == "a@x.com"

    @pytest.mark.asyncio
    async def test_get_by_list(self, marketo, fake_marketo):
        fake_marketo.add("GET", "/rest/v1/list/77/leads.json", envelope([{"id": 1}]))

        resp = await marketo.leads.get_by_list(77, next_page_token="NPT")

        assert resp.is_success()
        assert fake_marketo.last_request.url.params["nextPageToken"] == "NPT"

    @pytest.mark.asyncio
    async def test_get_partitions(self, marketo, fake_marketo):
        fake_marketo.add(
            "GET", "/rest/v1/leads/partitions.json", envelope([{"id": 1, "name": "Default"}])
        )

        resp = await marketo.leads.get_partitions()

        assert resp.get_result()[0]["name"] == "Default"


class TestLeadsModify:
    """Tests for delete, associate and merge."""

    @pytest.mark.asyncio
    async def test_delete_repeats_id(self, marketo, fake_marketo):
        """Should send each id as a bare repeated key."""
        fake_marketo.add("DELETE", LEADS_PATH, envelope([{"id": 1, "status": "deleted"}]))

        await marketo.leads.delete([1, 2, 3])

        request = fake_marketo.last_request
        assert request.url.params.get_list("id") == ["1", "2", "3"]
        assert "%5B" not in str(request.url)

    @pytest.mark.asyncio
    async def test_delete_single(self, marketo, fake_marketo):
        fake_marketo.add("DELETE", LEADS_PATH, envelope([{"id": 1, "status": "deleted"}]))

        await marketo.leads.delete(1)

        assert fake_marketo.last_request.url.params.get_list("id") == ["1"]

    @pytest.mark.asyncio
    async def test_associate(self, marketo, fake_marketo):
        fake_marketo.add("POST", "/rest/v1/leads/5/associate.json", envelope([]))

        await marketo.leads.associate(5, cookie="id:123-ABC-456&token:_mch-x")

        params = fake_marketo.last_request.url.params
        assert params["cookie"] == "id:123-ABC-456&token:_mch-x"

    @pytest.mark.asyncio
    async def test_merge_single_loser(self, marketo, fake_marketo):
        """Should send one loser as leadId."""
        fake_marketo.add("POST", "/rest/v1/leads/100/merge.json", envelope([]))

        await marketo.leads.merge(100, [101])

        params = fake_marketo.last_request.url.params
        assert params["leadId"] == "101"
        assert "leadIds" not in params
        assert "mergeInCRM" not in params

    @pytest.mark.asyncio
    async def test_merge_many_losers(self, marketo, fake_marketo):
        """Should send several losers as comma-joined leadIds."""
        fake_marketo.add("POST", "/rest/v1/leads/100/merge.json", envelope([]))

        await marketo.leads.merge(100, [101, 102], merge_in_crm=True)

        params = fake_marketo.last_request.url.params
        assert params["leadIds"] == "101,102"
        assert params["mergeInCRM"] == "true"
        assert "leadId" not in params

    @pytest.mark.asyncio
    async def test_delete_string_id(self, marketo, fake_marketo):
        """Should treat a string id as one id, not a sequence of characters."""
        fake_marketo.add("DELETE", LEADS_PATH, envelope([{"id": 101, "status": "deleted"}]))

        await marketo.leads.delete("101")

        assert fake_marketo.last_request.url.params.get_list("id") == ["101"]

    @pytest.mark.asyncio
    async def test_merge_string_loser(self, marketo, fake_marketo):
        fake_marketo.add("POST", "/rest/v1/leads/100/merge.json", envelope([]))

        await marketo.leads.merge(100, "101")

        params = fake_marketo.last_request.url.params
        assert params["leadId"] == "101"
        assert "leadIds" not in params

    @pytest.mark.asyncio
    async def test_merge_requires_loser(self, marketo, fake_marketo):
        with pytest.raises(ValidationError):
            await marketo.leads.merge(100, [])

        assert fake_marketo.requests == []
