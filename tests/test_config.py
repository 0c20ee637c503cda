"""Tests for MarketoSettings."""

import pytest

from marketo.config import MarketoSettings
from marketo.errors import ValidationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and .env file."""
    for name in (
        "MARKETO_CLIENT_ID",
        "MARKETO_CLIENT_SECRET",
        "MARKETO_URL",
        "MARKETO_MUNCHKIN_ID",
        "MARKETO_VERSION",
        "MARKETO_TIMEOUT",
        "MARKETO_TOKEN_SAFETY_MARGIN",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestMarketoSettings:
    """Tests for MarketoSettings."""

    def test_defaults(self):
        settings = MarketoSettings()

        assert settings.version == 1
        assert settings.timeout == 30.0
        assert settings.token_safety_margin == 60
        assert not settings.credentials_configured

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("MARKETO_CLIENT_ID", "id")
        monkeypatch.setenv("MARKETO_CLIENT_SECRET", "secret")
        monkeypatch.setenv("MARKETO_MUNCHKIN_ID", "123-ABC-456")
        monkeypatch.setenv("MARKETO_TIMEOUT", "5")

        settings = MarketoSettings()

        assert settings.credentials_configured
        assert settings.timeout == 5.0
        assert settings.base_url == "https://123-ABC-456.mktorest.com"

    def test_from_env_file(self, tmp_path):
        (tmp_path / ".env").write_text(
            "MARKETO_CLIENT_ID=file-id\nMARKETO_URL=https://example.mktorest.com/\n"
        )

        settings = MarketoSettings()

        assert settings.client_id == "file-id"
        assert settings.base_url == "https://example.mktorest.com"

    def test_url_wins_over_munchkin(self):
        settings = MarketoSettings(url="https://custom.example.com", munchkin_id="123-ABC-456")
        assert settings.base_url == "https://custom.example.com"

    def test_base_url_required(self):
        """Should raise when neither a URL nor a Munchkin id is configured."""
        with pytest.raises(ValidationError) as exc_info:
            MarketoSettings().base_url

        assert "Munchkin" in exc_info.value.message
