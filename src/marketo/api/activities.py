"""Activities API - custom activity posting and activity type lookup."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, TYPE_CHECKING

from ..errors import ValidationError
from .response import ResponseEnvelope

if TYPE_CHECKING:
    from .client import MarketoClient

REQUIRED_ACTIVITY_FIELDS = ("leadId", "activityTypeId", "primaryAttributeValue")
REQUIRED_ATTRIBUTE_FIELDS = ("name", "value")


def _attribute_value(value: Any) -> Any:
    # JSON scalars pass through untouched; anything else is sent as text.
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def validate_activity(
    activity: Mapping[str, Any],
    now: datetime | None = None,
) -> tuple[dict[str, Any] | None, list[str]]:
    """Check one custom activity and build its wire form.

    ``activityDate`` is required by the API; it defaults to ``now`` here.

    Returns:
        ``(input, problems)``; ``input`` is None whenever ``problems`` is not empty
    """
    problems = [
        f'Required parameter "{name}" is missing.'
        for name in REQUIRED_ACTIVITY_FIELDS
        if activity.get(name) is None
    ]

    activity_date = activity.get("activityDate")
    if activity_date is None:
        activity_date = now or datetime.now().astimezone()
    elif not isinstance(activity_date, datetime):
        problems.append('Required parameter "activityDate" must be a datetime.')

    attributes = activity.get("attributes")
    built_attributes: list[dict[str, Any]] = []
    if attributes is not None:
        if isinstance(attributes, (str, bytes, Mapping)) or not isinstance(attributes, Iterable):
            problems.append('Optional parameter "attributes" must be a list.')
        else:
            for attribute in attributes:
                if not isinstance(attribute, Mapping):
                    problems.append('The "attributes" parameter must contain mappings.')
                    continue
                missing = [k for k in REQUIRED_ATTRIBUTE_FIELDS if attribute.get(k) is None]
                if missing:
                    problems.extend(
                        f'Required key "{k}" is missing in the "attributes" parameter.'
                        for k in missing
                    )
                    continue
                item = {
                    "name": str(attribute["name"]),
                    "value": _attribute_value(attribute["value"]),
                }
                if attribute.get("apiName") is not None:
                    item["apiName"] = str(attribute["apiName"])
                built_attributes.append(item)

    if problems:
        return None, problems

    try:
        data: dict[str, Any] = {
            "leadId": int(activity["leadId"]),
            "activityTypeId": int(activity["activityTypeId"]),
            "primaryAttributeValue": str(activity["primaryAttributeValue"]),
            "activityDate": activity_date.isoformat(),
        }
    except (TypeError, ValueError):
        return None, ['"leadId" and "activityTypeId" must be integers.']

    for optional in ("apiName", "status"):
        if activity.get(optional) is not None:
            data[optional] = str(activity[optional])
    if attributes is not None:
        data["attributes"] = built_attributes
    return data, []


class ActivitiesAPI:
    """Activities API for Marketo."""

    def __init__(self, client: "MarketoClient"):
        self._client = client

    async def add(
        self,
        activities: Iterable[Mapping[str, Any]],
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Post custom activities.

        All activities are validated before anything is sent; decode per
        activity status with ``response.record_status``.

        Raises:
            ValidationError: Listing every problem found
        """
        inputs: list[dict[str, Any]] = []
        problems: list[str] = []
        for index, activity in enumerate(activities):
            data, errors = validate_activity(activity)
            if errors:
                problems.extend(f"activity {index}: {e}" for e in errors)
            else:
                inputs.append(data)

        if problems:
            raise ValidationError.from_problems(problems)
        if not inputs:
            raise ValidationError("At least one activity is required")

        return await self._client.execute("addActivities", {"input": inputs}, raw=raw)

    async def get_types(self, raw: bool = False) -> ResponseEnvelope | bytes:
        """List activity types available on the instance."""
        return await self._client.execute("getActivityTypes", {}, raw=raw)
