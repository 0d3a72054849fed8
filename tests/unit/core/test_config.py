"""Unit tests for src/core/config.py."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.core.config import (
    DEFAULT_REFERENCE_PATH,
    CatalogConfig,
    DatabaseConfig,
    LedgerConfig,
    Settings,
    get_settings,
)


@pytest.mark.unit
class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        settings = Settings()

        assert settings.app_name == "Consecutivo"
        assert settings.environment == "development"
        assert settings.log_config.log_formatter_type == "console"
        assert settings.ledger_config.max_counter == 9_999_999_999
        assert settings.catalog_config.placeholder == "-"

    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LEDGER_CONFIG__MAX_COUNTER", "999")
        monkeypatch.setenv("LEDGER_CONFIG__READ_RETRY_ATTEMPTS", "5")
        monkeypatch.setenv("CATALOG_CONFIG__REFERENCE_PATH", "/srv/data/cabys.json")

        settings = Settings()

        assert settings.ledger_config.max_counter == 999
        assert settings.ledger_config.read_retry_attempts == 5
        assert str(settings.catalog_config.reference_path) == "/srv/data/cabys.json"

    def test_production_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.delenv("LOG_CONFIG__LOG_FORMATTER_TYPE", raising=False)

        settings = Settings()

        assert settings.log_config.log_formatter_type == "json"
        assert settings.observability_config.exporter_type == "otlp"
        assert settings.observability_config.trace_sample_rate == 0.1

    def test_empty_docs_url_disables_docs(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DOCS_URL", "")

        assert Settings().docs_url is None

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()


@pytest.mark.unit
class TestSections:
    def test_database_url_requires_asyncpg(self) -> None:
        with pytest.raises(PydanticValidationError, match="asyncpg"):
            DatabaseConfig(database_url="postgresql://u:p@localhost/db")

    def test_test_database_url(self) -> None:
        config = DatabaseConfig()

        assert config.get_test_database_url().endswith("/consecutivo_test")

    def test_test_database_url_keeps_query(self) -> None:
        config = DatabaseConfig(
            database_url="postgresql+asyncpg://u:p@db:5432/numbers?ssl=require"
        )

        assert config.get_test_database_url() == (
            "postgresql+asyncpg://u:p@db:5432/numbers_test?ssl=require"
        )

    def test_ledger_limits(self) -> None:
        with pytest.raises(PydanticValidationError):
            LedgerConfig(read_retry_attempts=0)
        with pytest.raises(PydanticValidationError):
            LedgerConfig(max_counter=0)

    def test_reference_dataset_ships_with_project(self) -> None:
        assert CatalogConfig().reference_path == DEFAULT_REFERENCE_PATH
        assert DEFAULT_REFERENCE_PATH.is_file()
