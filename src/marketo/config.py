"""Client configuration via pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from .errors import ValidationError


class MarketoSettings(BaseSettings):
    client_id: str = ""
    client_secret: str = ""
    # Either an explicit instance URL or the Munchkin account id it is derived from.
    url: str | None = None
    munchkin_id: str | None = None
    version: int = 1
    timeout: float = 30.0
    token_safety_margin: int = 60

    model_config = {"env_prefix": "MARKETO_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_url(self) -> str:
        if self.url:
            return self.url.rstrip("/")
        if self.munchkin_id:
            return f"https://{self.munchkin_id}.mktorest.com"
        raise ValidationError("Must provide either a URL or Munchkin code.")

    @property
    def credentials_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)
