"""OAuth 2.0 client-credentials token lifecycle for Marketo.

Marketo issues short-lived access tokens from the identity service of each
instance. The manager here:
1. Exchanges client id/secret for an access token on first use
2. Reuses the cached token until it is within the safety margin of expiry
3. Refreshes at most once for any number of concurrent callers
4. Forces a refresh when the API rejects a token it had accepted before
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from ..errors import AuthError, MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/identity/oauth/token"
DEFAULT_SAFETY_MARGIN = 60


@dataclass(frozen=True)
class AccessToken:
    """Access token returned from the identity endpoint."""

    access_token: str
    expires_at: float  # clock() value, not wall time
    token_type: str = "bearer"
    scope: str = ""

    def is_valid(self, now: float, margin: float = 0) -> bool:
        return now < self.expires_at - margin

    def __str__(self) -> str:
        return self.access_token


class CredentialManager:
    """Owns the client-credentials grant and the cached bearer token.

    Usage:
        manager = CredentialManager(
            base_url="https://123-ABC-456.mktorest.com",
            client_id="...",
            client_secret="...",
        )
        token = await manager.get_valid_token()

    The client secret and token never leave this object except as the
    ``Authorization`` header value handed to the dispatcher.
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        http_client: httpx.AsyncClient | None = None,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not client_id or not client_secret:
            raise AuthError("client_id and client_secret are required")

        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self._client_secret = client_secret
        self.safety_margin = safety_margin
        self._timeout = timeout
        self._clock = clock
        self._http_client = http_client

        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()
        self.exchange_count = 0

    @property
    def token_url(self) -> str:
        return f"{self.base_url}{TOKEN_PATH}"

    @property
    def expires_in(self) -> float | None:
        """Seconds until the cached token expires, or None if there is none."""
        if not self._token:
            return None
        return max(0.0, self._token.expires_at - self._clock())

    def _cached(self) -> AccessToken | None:
        if self._token and self._token.is_valid(self._clock(), self.safety_margin):
            return self._token
        return None

    async def get_valid_token(self) -> str:
        """Return a usable access token, exchanging credentials if needed.

        Raises:
            AuthError: If the identity service rejects the credentials
            TransportError: If the identity service is unreachable
        """
        token = self._cached()
        if token:
            logger.debug("Reusing cached access token")
            return token.access_token

        async with self._lock:
            # Another task may have refreshed while we waited.
            token = self._cached()
            if token:
                return token.access_token
            self._token = await self._exchange()
            return self._token.access_token

    async def force_refresh(self, rejected_token: str) -> str:
        """Replace a token the API refused.

        If a concurrent caller already replaced ``rejected_token``, the newer
        token is returned without another exchange.
        """
        async with self._lock:
            if self._token and self._token.access_token != rejected_token:
                if self._token.is_valid(self._clock(), self.safety_margin):
                    return self._token.access_token
            logger.warning("Access token rejected by API, forcing refresh")
            self._token = None
            self._token = await self._exchange()
            return self._token.access_token

    def invalidate(self) -> None:
        """Drop the cached token; the next call performs an exchange."""
        self._token = None

    async def _exchange(self) -> AccessToken:
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self._client_secret,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        self.exchange_count += 1
        logger.info("Requesting access token from %s", self.token_url)
        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.token_url, data=data, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.token_url, data=data, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {"raw_response": response.text[:500]}
            raise AuthError(
                f"Token exchange failed: {response.status_code} "
                f"{error_data.get('error_description') or error_data.get('error', '')}".rstrip(),
                response.status_code,
                error_data,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Token endpoint returned non-JSON body", response.status_code
            ) from e

        return self._parse_token_response(payload)

    def _parse_token_response(self, data: Any) -> AccessToken:
        """Parse the identity service response.

        Raises:
            AuthError: If the response carries an error instead of a token
            MalformedResponseError: If required fields are missing
        """
        if not isinstance(data, dict):
            raise MalformedResponseError("Token response is not a JSON object")
        if "error" in data and "access_token" not in data:
            raise AuthError(
                f"Token exchange rejected: {data.get('error_description', data['error'])}",
                response=data,
            )
        try:
            access_token = data["access_token"]
            expires_in = float(data.get("expires_in", 3600))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"Invalid token response: missing or bad {e}",
                response={"response_keys": list(data.keys())},
            ) from e

        return AccessToken(
            access_token=access_token,
            expires_at=self._clock() + expires_in,
            token_type=data.get("token_type", "bearer"),
            scope=data.get("scope", ""),
        )
