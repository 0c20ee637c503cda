"""Uniform response envelope.

Every Marketo REST response has the shape::

    {"requestId": "...", "success": true, "result": [...], "errors": [...]}

``ResponseEnvelope`` is the single parsed form of that body. Behaviour that
used to live on per-command response classes is provided by the plain
decoder functions at the bottom of this module.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..errors import ApiError, ApiErrorDetail, MalformedResponseError


@dataclass(frozen=True)
class ResponseEnvelope:
    """Parsed API response. Immutable once built."""

    success: bool
    result: tuple[dict[str, Any], ...]
    errors: tuple[ApiErrorDetail, ...]
    raw_body: bytes
    request_id: str | None = None
    next_page_token: str | None = None
    more_result: bool = False
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_body(cls, body: bytes | str) -> "ResponseEnvelope":
        """Parse a raw response body.

        Raises:
            MalformedResponseError: If the body is not JSON or not an envelope
        """
        raw = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise MalformedResponseError(f"Response body is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
            raise MalformedResponseError(
                "Response body lacks a boolean 'success' field",
                response=data if isinstance(data, dict) else None,
            )

        result = data.get("result", [])
        errors = data.get("errors", [])
        warnings = data.get("warnings", [])
        if not isinstance(result, list) or not isinstance(errors, list):
            raise MalformedResponseError("'result' and 'errors' must be arrays", response=data)
        if not all(isinstance(e, dict) for e in errors):
            raise MalformedResponseError("'errors' entries must be objects", response=data)

        return cls(
            success=data["success"],
            result=tuple(r if isinstance(r, dict) else {"value": r} for r in result),
            errors=tuple(ApiErrorDetail.from_dict(e) for e in errors),
            raw_body=raw,
            request_id=data.get("requestId"),
            next_page_token=data.get("nextPageToken"),
            more_result=bool(data.get("moreResult", False)),
            warnings=tuple(str(w) for w in warnings) if isinstance(warnings, list) else (),
        )

    def is_success(self) -> bool:
        return self.success and not self.errors

    def get_result(self) -> list[dict[str, Any]]:
        """Result records, or an empty list if the call failed."""
        return list(self.result) if self.is_success() else []

    def get_errors(self) -> list[ApiErrorDetail]:
        return list(self.errors)

    def has_error_code(self, *codes: str) -> bool:
        return any(e.code in codes for e in self.errors)

    def raise_for_errors(self) -> "ResponseEnvelope":
        """Raise ApiError unless successful; returns self for chaining."""
        if not self.is_success():
            detail = ", ".join(f"{e.code}: {e.message}" for e in self.errors) or "success=false"
            raise ApiError(f"API call failed ({detail})", errors=self.errors)
        return self


# Decoders for command-specific response shapes


def first_record(envelope: ResponseEnvelope) -> dict[str, Any] | None:
    """First result record (getLead, getCampaign, getLeadByFilterType...)."""
    result = envelope.get_result()
    return result[0] if result else None


def record_status(envelope: ResponseEnvelope, record_id: Any = None) -> str | None:
    """Per-record status from write commands (addActivities, createOrUpdateLeads...).

    Without ``record_id`` the status of the first record is returned.
    """
    result = envelope.get_result()
    if not result:
        return None
    if record_id is None:
        return result[0].get("status")
    for row in result:
        if str(row.get("id")) == str(record_id):
            return row.get("status")
    return None


def is_member(envelope: ResponseEnvelope, lead_id: Any) -> bool:
    """Decode isMemberOfList for one lead."""
    return record_status(envelope, lead_id) == "memberof"
