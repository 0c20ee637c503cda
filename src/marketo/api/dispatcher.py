"""Command dispatch: name + arguments in, ResponseEnvelope (or raw bytes) out."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from ..errors import ApiError, ApiErrorDetail, AuthError, TransportError
from ..oauth.credentials import CredentialManager
from .commands import CommandTable, load_command_table, lookup
from .encoding import PreparedRequest, build_request, repeat_array_keys
from .response import ResponseEnvelope

logger = logging.getLogger(__name__)

# Marketo reports dead tokens in a 200 envelope: 601 invalid, 602 expired.
TOKEN_ERROR_CODES = frozenset({"601", "602"})


class CommandDispatcher:
    """Resolves commands against the command table and sends them.

    Usage:
        dispatcher = CommandDispatcher(credentials, http_client)
        envelope = await dispatcher.execute("getLead", {"id": 42})
        body = await dispatcher.execute("getLead", {"id": 42}, raw=True)
    """

    def __init__(
        self,
        credentials: CredentialManager,
        http_client: httpx.AsyncClient,
        commands: CommandTable | None = None,
        version: int = 1,
        base_url: str | None = None,
    ):
        self._credentials = credentials
        self._http = http_client
        self.commands = commands if commands is not None else load_command_table()
        self.version = version
        self.base_url = (base_url or credentials.base_url).rstrip("/")

    def prepare(
        self,
        command_name: str,
        args: Mapping[str, Any] | None = None,
        fix_array_params: bool = False,
    ) -> PreparedRequest:
        """Build the request model for a command without sending it.

        Raises:
            UnknownCommandError: If the command is not in the table
            ValidationError: If a path parameter is missing
        """
        descriptor = lookup(self.commands, command_name)
        prepared = build_request(descriptor, args or {}, self.version)
        if fix_array_params:
            prepared = repeat_array_keys(prepared)
        return prepared

    def build_http_request(self, prepared: PreparedRequest, token: str) -> httpx.Request:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            **prepared.headers(),
        }
        url = f"{self.base_url}{prepared.path}"

        if prepared.body_format == "multipart":
            files = {
                name: (part.filename, part.content, part.content_type)
                for name, part in (prepared.files or {}).items()
            }
            return self._http.build_request(
                prepared.method,
                url,
                params=list(prepared.query),
                data=prepared.multipart_data(),
                files=files or None,
                headers=headers,
            )

        return self._http.build_request(
            prepared.method,
            url,
            params=list(prepared.query),
            content=prepared.content(),
            headers=headers,
        )

    async def execute(
        self,
        command_name: str,
        args: Mapping[str, Any] | None = None,
        *,
        fix_array_params: bool = False,
        raw: bool = False,
        strict: bool = False,
    ) -> ResponseEnvelope | bytes:
        """Execute a command.

        Args:
            command_name: Key in the command table
            args: Argument map; routed to path, query or body by the table
            fix_array_params: Send list arguments as repeated bare keys
            raw: Return the response body verbatim instead of an envelope
            strict: Raise ApiError if the envelope reports failure

        Raises:
            UnknownCommandError, ValidationError: Before any network call
            AuthError: Credentials rejected, or a token refused twice
            TransportError: Network failure
            MalformedResponseError: Body is not a response envelope
            ApiError: Non-2xx status, or unsuccessful envelope when strict
        """
        prepared = self.prepare(command_name, args, fix_array_params)

        token = await self._credentials.get_valid_token()
        response = await self._send(command_name, prepared, token)

        if _token_rejected(response):
            token = await self._credentials.force_refresh(token)
            response = await self._send(command_name, prepared, token)
            if _token_rejected(response):
                raise AuthError(
                    f"{command_name}: access token rejected after refresh",
                    response.status_code,
                )

        if response.status_code >= 400:
            raise _status_error(command_name, response)

        if raw:
            return response.content

        envelope = ResponseEnvelope.from_body(response.content)
        if not envelope.is_success():
            logger.debug(
                "%s returned errors: %s",
                command_name,
                ", ".join(e.code for e in envelope.errors) or "success=false",
            )
        if strict:
            envelope.raise_for_errors()
        return envelope

    async def _send(self, command_name: str, prepared: PreparedRequest, token: str) -> httpx.Response:
        request = self.build_http_request(prepared, token)
        logger.debug("%s -> %s %s", command_name, request.method, request.url.path)
        try:
            response = await self._http.send(request)
        except httpx.TransportError as e:
            raise TransportError(f"{command_name}: {e.__class__.__name__}: {e}") from e
        logger.debug("%s <- %s", command_name, response.status_code)
        return response


def _token_rejected(response: httpx.Response) -> bool:
    if response.status_code == 401:
        return True
    if response.status_code != 200 or not response.content.lstrip().startswith(b"{"):
        return False
    try:
        data = json.loads(response.content)
    except ValueError:
        return False
    if not isinstance(data, dict) or data.get("success") is not False:
        return False
    errors = data.get("errors") or []
    return any(
        isinstance(e, dict) and str(e.get("code")) in TOKEN_ERROR_CODES for e in errors
    )


def _status_error(command_name: str, response: httpx.Response) -> ApiError:
    errors: list[ApiErrorDetail] = []
    data: dict | None = None
    try:
        parsed = response.json() if response.content else None
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        data = parsed
        errors = [
            ApiErrorDetail.from_dict(e) for e in parsed.get("errors", []) if isinstance(e, dict)
        ]
    if not errors:
        errors = [ApiErrorDetail(code=str(response.status_code), message=response.reason_phrase)]
    return ApiError(
        f"{command_name}: HTTP {response.status_code}",
        errors=errors,
        status_code=response.status_code,
        response=data,
    )
