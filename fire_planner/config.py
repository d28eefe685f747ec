"""Application configuration management using Pydantic Settings."""

from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_SECRET_KEY = "dev-secret-key"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")

    # Flask Configuration
    secret_key: str = Field(
        default=DEVELOPMENT_SECRET_KEY, alias="SECRET_KEY", validate_default=True
    )
    flask_app: str = Field(default="wsgi.py", alias="FLASK_APP")
    flask_env: str = Field(default="development", alias="FLASK_ENV")

    # Simulation Configuration
    simulation_max_paths: int = Field(
        default=100000, gt=0, alias="SIMULATION_MAX_PATHS"
    )
    simulation_default_paths: int = Field(
        default=1000, gt=0, alias="SIMULATION_DEFAULT_PATHS"
    )
    simulation_max_workers: int = Field(default=1, ge=1, alias="SIMULATION_MAX_WORKERS")
    simulation_chunk_size: Optional[int] = Field(
        default=None, ge=1, alias="SIMULATION_CHUNK_SIZE"
    )
    simulation_executor: str = Field(default="thread", alias="SIMULATION_EXECUTOR")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v, info: ValidationInfo):
        """Ensure SECRET_KEY is provided and not a placeholder."""
        if not v or v == "your-secret-key-here-change-in-production":
            raise ValueError("SECRET_KEY must be set to a secure value")
        if v == DEVELOPMENT_SECRET_KEY and info.data.get("app_env") == "production":
            raise ValueError("SECRET_KEY must be set explicitly in production")
        return v

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v):
        """Validate application environment."""
        allowed_envs = {"development", "testing", "production"}
        if v not in allowed_envs:
            raise ValueError(f"APP_ENV must be one of {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("simulation_executor")
    @classmethod
    def validate_simulation_executor(cls, v):
        """Validate the batch worker pool kind."""
        allowed_executors = {"thread", "process"}
        if v.lower() not in allowed_executors:
            raise ValueError(f"SIMULATION_EXECUTOR must be one of {allowed_executors}")
        return v.lower()


def get_settings(env_file: Optional[str] = None) -> Settings:
    """Get application settings instance."""
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()


# Global settings instance - created on first use
_settings: Optional[Settings] = None


def get_global_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None
