"""Emails API - asset endpoints for email content and approval."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from .response import ResponseEnvelope

if TYPE_CHECKING:
    from .client import MarketoClient


class EmailsAPI:
    """Email asset API for Marketo (form-encoded, under /rest/asset)."""

    def __init__(self, client: "MarketoClient"):
        self._client = client

    async def update_content(
        self,
        email_id: int,
        subject: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
        reply_to: str | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Update header content of a draft email."""
        args: dict[str, Any] = {
            "id": email_id,
            "subject": subject,
            "fromEmail": from_email,
            "fromName": from_name,
            "replyTo": reply_to,
        }
        return await self._client.execute("updateEmailContent", args, raw=raw)

    async def update_section(
        self,
        email_id: int,
        html_id: str,
        value: str,
        type: str = "Text",
        text_value: str | None = None,
        raw: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Update one editable section of a draft email."""
        return await self._client.execute(
            "updateEmailContentInEditableSection",
            {"id": email_id, "htmlId": html_id, "type": type, "value": value, "textValue": text_value},
            raw=raw,
        )

    async def approve(self, email_id: int, raw: bool = False) -> ResponseEnvelope | bytes:
        """Approve the draft of an email."""
        return await self._client.execute("approveEmailbyId", {"id": email_id}, raw=raw)
