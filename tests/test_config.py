"""Tests for application settings."""

import pytest

from inventory.config import Settings


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.environment == "dev"
        assert settings.default_currency == "EUR"
        assert settings.default_volume_unit == "mL"
        assert settings.upload_field_name == "file"

    def test_database_url_from_parts(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DB_USER", "alice")
        monkeypatch.setenv("DB_PASSWORD", "secret")
        monkeypatch.setenv("DB_HOST", "db")
        monkeypatch.setenv("DB_NAME", "catalog")
        monkeypatch.delenv("DATABASE_URL_OVERRIDE", raising=False)

        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql+asyncpg://alice:secret@db:5432/catalog"

    def test_database_url_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DATABASE_URL_OVERRIDE", "postgresql+asyncpg://u:p@h/d")

        assert Settings(_env_file=None).database_url == "postgresql+asyncpg://u:p@h/d"

    def test_cors_origins_from_json_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://admin.example.com"]')

        assert Settings(_env_file=None).cors_origins == ["https://admin.example.com"]
