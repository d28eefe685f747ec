"""Tests for application configuration management."""

import os
import tempfile
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from fire_planner.config import (
    DEVELOPMENT_SECRET_KEY,
    Settings,
    get_global_settings,
    get_settings,
    reset_global_settings,
)


class TestSettings:
    """Test cases for Settings class."""

    def test_settings_loads_from_env_file(self):
        """Test that settings can load from an env file."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".env", delete=False) as f:
            f.write("APP_ENV=development\n")
            f.write("SECRET_KEY=test-secret-key-123\n")
            f.write("SIMULATION_MAX_PATHS=5000\n")
            f.write("SIMULATION_MAX_WORKERS=4\n")
            f.write("LOG_LEVEL=DEBUG\n")
            temp_env_file = f.name

        try:
            with patch.dict(os.environ, {}, clear=True):
                settings = Settings(_env_file=temp_env_file)

                assert settings.app_env == "development"
                assert settings.secret_key == "test-secret-key-123"
                assert settings.simulation_max_paths == 5000
                assert settings.simulation_max_workers == 4
                assert settings.log_level == "DEBUG"
        finally:
            os.unlink(temp_env_file)

    def test_development_secret_key_by_default(self):
        """Test that development runs without an explicit SECRET_KEY."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.secret_key == DEVELOPMENT_SECRET_KEY

    def test_production_requires_secret_key(self):
        """Test that production refuses the development SECRET_KEY."""
        with patch.dict(os.environ, {"APP_ENV": "production"}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "SECRET_KEY must be set explicitly in production" in str(
                exc_info.value
            )

    def test_placeholder_secret_key_raises_exception(self):
        """Test that placeholder SECRET_KEY raises ValidationError."""
        with patch.dict(
            os.environ,
            {"SECRET_KEY": "your-secret-key-here-change-in-production"},
            clear=True,
        ):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "SECRET_KEY must be set to a secure value" in str(exc_info.value)

    def test_app_env_validation(self):
        """Test APP_ENV validation."""
        with patch.dict(
            os.environ,
            {"SECRET_KEY": "valid-secret-key-123", "APP_ENV": "invalid-env"},
            clear=True,
        ):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "APP_ENV must be one of" in str(exc_info.value)

    def test_log_level_validation(self):
        """Test LOG_LEVEL validation."""
        with patch.dict(
            os.environ,
            {"SECRET_KEY": "valid-secret-key-123", "LOG_LEVEL": "INVALID_LEVEL"},
            clear=True,
        ):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "LOG_LEVEL must be one of" in str(exc_info.value)

    def test_log_level_case_insensitive(self):
        """Test that LOG_LEVEL is case insensitive."""
        with patch.dict(
            os.environ,
            {"SECRET_KEY": "valid-secret-key-123", "LOG_LEVEL": "debug"},
            clear=True,
        ):
            settings = Settings(_env_file=None)
            assert settings.log_level == "DEBUG"

    def test_default_values(self):
        """Test default values when environment variables are not set."""
        with patch.dict(os.environ, {"SECRET_KEY": "valid-secret-key-123"}, clear=True):
            settings = Settings(_env_file=None)

            assert settings.app_env == "development"
            assert settings.flask_app == "wsgi.py"
            assert settings.flask_env == "development"
            assert settings.simulation_max_paths == 100000
            assert settings.simulation_default_paths == 1000
            assert settings.simulation_max_workers == 1
            assert settings.simulation_chunk_size is None
            assert settings.simulation_executor == "thread"
            assert settings.log_level == "INFO"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("SIMULATION_MAX_PATHS", "0"),
            ("SIMULATION_DEFAULT_PATHS", "-5"),
            ("SIMULATION_MAX_WORKERS", "0"),
            ("SIMULATION_CHUNK_SIZE", "0"),
        ],
    )
    def test_simulation_limits_must_be_positive(self, name, value):
        """Test simulation limits reject non-positive values."""
        with patch.dict(os.environ, {name: value}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_simulation_executor_validation(self):
        """Test SIMULATION_EXECUTOR validation."""
        with patch.dict(os.environ, {"SIMULATION_EXECUTOR": "cluster"}, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "SIMULATION_EXECUTOR must be one of" in str(exc_info.value)

    def test_environment_variable_aliases(self):
        """Test that environment variable aliases work correctly."""
        with patch.dict(
            os.environ,
            {
                "SECRET_KEY": "valid-secret-key-123",
                "APP_ENV": "production",
                "SIMULATION_DEFAULT_PATHS": "250",
                "SIMULATION_CHUNK_SIZE": "64",
                "SIMULATION_EXECUTOR": "Process",
                "LOG_LEVEL": "ERROR",
            },
            clear=True,
        ):
            settings = Settings(_env_file=None)

            assert settings.app_env == "production"
            assert settings.simulation_default_paths == 250
            assert settings.simulation_chunk_size == 64
            assert settings.simulation_executor == "process"
            assert settings.log_level == "ERROR"


class TestSettingsAccessors:
    """Test module-level settings accessors."""

    def test_get_settings_function(self):
        """Test the get_settings function."""
        with patch.dict(os.environ, {"SECRET_KEY": "valid-secret-key-123"}, clear=True):
            settings = get_settings()
            assert isinstance(settings, Settings)
            assert settings.secret_key == "valid-secret-key-123"

    def test_global_settings_cached_until_reset(self, clean_settings):
        """Test the global instance is reused until reset."""
        first = get_global_settings()
        assert get_global_settings() is first

        reset_global_settings()

        assert get_global_settings() is not first
