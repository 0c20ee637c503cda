"""OAuth module for Marketo client-credentials authentication.

Usage:
    from marketo.oauth import CredentialManager

    manager = CredentialManager(base_url, client_id, client_secret)
    token = await manager.get_valid_token()  # cached until near expiry
"""

from .credentials import AccessToken, CredentialManager

__all__ = [
    "AccessToken",
    "CredentialManager",
]
