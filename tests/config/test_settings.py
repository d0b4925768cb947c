"""Tests for process-level settings (``deposit_config.settings``)."""

import pytest

from deposit_config import load_settings
from deposit_kernel.exceptions import ConfigurationError


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings(env={})

        assert settings.database.url == "sqlite:///./deposit.db"
        assert settings.database.pool_size == 10
        assert settings.log_level == "INFO"
        assert settings.create_tables is True

    def test_file_values(self, tmp_path):
        path = tmp_path / "deposit.yaml"
        path.write_text(
            "database:\n"
            "  url: postgresql://billing@db/deposit\n"
            "  echo: true\n"
            "  pool_size: 3\n"
            "log_level: debug\n"
            "create_tables: false\n"
        )

        settings = load_settings(path, env={})

        assert settings.database.url == "postgresql://billing@db/deposit"
        assert settings.database.echo is True
        assert settings.database.pool_size == 3
        assert settings.log_level == "DEBUG"
        assert settings.create_tables is False

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "deposit.yaml"
        path.write_text("database:\n  url: sqlite:///file.db\n  pool_size: 3\n")

        settings = load_settings(
            path,
            env={
                "DEPOSIT_DATABASE_URL": "sqlite:///env.db",
                "DEPOSIT_DB_POOL_SIZE": "7",
                "DEPOSIT_DB_ECHO": "yes",
                "DEPOSIT_LOG_LEVEL": "warning",
            },
        )

        assert settings.database.url == "sqlite:///env.db"
        assert settings.database.pool_size == 7
        assert settings.database.echo is True
        assert settings.log_level == "WARNING"

    def test_settings_file_from_environment(self, tmp_path):
        path = tmp_path / "deposit.yaml"
        path.write_text("log_level: ERROR\n")

        settings = load_settings(env={"DEPOSIT_SETTINGS_FILE": str(path)})

        assert settings.log_level == "ERROR"

    def test_bad_integer(self):
        with pytest.raises(ConfigurationError):
            load_settings(env={"DEPOSIT_DB_POOL_SIZE": "many"})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(tmp_path / "absent.yaml", env={})

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "deposit.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_settings(path, env={})
